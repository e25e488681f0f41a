"""
Ecasound Control Interface (ECI) client.

Talks to one long-lived ``ecasound -c -d:256`` subprocess over its stdin/stdout
pipes. Each command is a single text line; at debug level 256 ecasound frames
every reply as::

    256 <byte-count> <type>\\r\\n
    <content>\\r\\n
    \\r\\n

Reply types: ``-`` (none), ``s`` (string), ``S`` (string list), ``i``/``li``
(integer), ``f`` (float) and ``e`` (error). Anything else on stdout (banner,
prompt, log lines) is skipped while looking for the next header.
"""

import logging
import re
import subprocess
import time
from typing import Any, Callable, List

from ecaradio.config import Config
from ecaradio.errors import EngineCommandError, EngineError, EngineStuck, EngineUnavailable

logger = logging.getLogger(__name__)

RUNNING = "running"

_HEADER = re.compile(r"256 (\d+) (\S+)\s*$")
_LIST_SPLIT = re.compile(r"(?<!\\),")


def _decode_reply(command: str, kind: str, body: str) -> Any:
    if kind == "-":
        return None
    if kind == "s":
        return body
    if kind == "S":
        if not body:
            return []
        return [item.replace("\\,", ",") for item in _LIST_SPLIT.split(body)]
    if kind in ("i", "li"):
        return int(body)
    if kind == "f":
        return float(body)
    if kind == "e":
        raise EngineCommandError(command, body.strip())
    raise EngineUnavailable(f"Unknown reply type '{kind}' for '{command}'")


class EngineClient:
    """Synchronous request/response client for one ecasound process."""

    def __init__(self, config: Config, popen: Callable = subprocess.Popen):
        """
        Args:
            config: Configuration; the ``engine.command`` argv is used to spawn ecasound
            popen: Process factory (swapped out in tests)
        """
        self.argv: List[str] = list(config.get("engine", "command"))
        self._popen = popen
        self._process = None

    @property
    def running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    def _ensure_process(self):
        if self._process is not None:
            if self._process.poll() is None:
                return self._process
            raise EngineUnavailable(
                f"Engine exited with code {self._process.returncode}; reinit required"
            )

        logger.info(f"Starting engine: {' '.join(self.argv)}")
        try:
            self._process = self._popen(
                self.argv,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise EngineUnavailable(f"Cannot start engine {self.argv[0]}: {e}") from e
        return self._process

    def command(self, line) -> Any:
        """
        Send one ECI command and return its decoded reply.

        Args:
            line: Command text, or an object whose str() is the command text

        Returns:
            None, str, list of str, int or float depending on the reply type

        Raises:
            EngineUnavailable: Pipe closed or reply framing broken
            EngineCommandError: Engine replied with an error
        """
        text = str(line)
        process = self._ensure_process()

        logger.debug(f"ECI > {text}")
        try:
            process.stdin.write((text + "\n").encode("utf-8"))
            process.stdin.flush()
        except (BrokenPipeError, OSError, ValueError) as e:
            raise EngineUnavailable(f"Cannot send '{text}' to engine: {e}") from e

        kind, body = self._read_reply(process, text)
        value = _decode_reply(text, kind, body)
        logger.debug(f"ECI < [{kind}] {body!r}")
        return value

    def _read_reply(self, process, command: str):
        while True:
            raw = process.stdout.readline()
            if not raw:
                raise EngineUnavailable(f"Engine closed its output while answering '{command}'")
            match = _HEADER.search(raw.decode("utf-8", "replace"))
            if match:
                break

        size, kind = int(match.group(1)), match.group(2)
        body = process.stdout.read(size) if size else b""
        if len(body) < size:
            raise EngineUnavailable(
                f"Truncated reply to '{command}': expected {size} bytes, got {len(body)}"
            )
        return kind, body.decode("utf-8", "replace")

    def engine_status(self) -> str:
        return self.command("engine-status")

    def close(self) -> None:
        """Ask ecasound to quit and reap the process."""
        process, self._process = self._process, None
        if process is None:
            return

        try:
            if process.poll() is None:
                process.stdin.write(b"quit\n")
                process.stdin.flush()
            process.stdin.close()
        except (BrokenPipeError, OSError, ValueError) as e:
            logger.warning(f"Engine pipe already closed: {e}")

        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            logger.warning("Engine did not quit in time; killing it")
            process.kill()
            process.wait()
        logger.info("Engine stopped")


def wait_until_stopped(
    engine,
    settle_delay: float = 0.5,
    interval: float = 0.1,
    max_interval: float = 1.0,
    backoff: float = 1.5,
    timeout: float = 3600.0,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> str:
    """
    Block until the engine leaves the running state.

    ecasound gives no completion notification over ECI, so after ``start`` the
    caller waits ``settle_delay`` and then polls ``engine-status`` at a growing
    interval. A chain that finishes during the settle delay is reported as
    finished on the first poll.

    Args:
        engine: Anything with an ``engine_status()`` method
        settle_delay: Seconds to wait before the first poll
        interval: Initial poll interval in seconds
        max_interval: Upper bound for the poll interval
        backoff: Multiplier applied to the interval after each poll
        timeout: Seconds after which the wait gives up

    Returns:
        The first status that was not "running"

    Raises:
        EngineStuck: Still running after ``timeout`` seconds
        EngineError: Engine reported an error status
    """
    deadline = clock() + timeout
    sleep(settle_delay)

    while True:
        status = engine.engine_status()
        if status != RUNNING:
            break
        if clock() >= deadline:
            raise EngineStuck(f"Engine still running after {timeout:.1f}s")
        sleep(interval)
        interval = min(interval * backoff, max_interval)

    logger.debug(f"Engine status: {status}")
    if status == "error":
        raise EngineError("Engine reported error status")
    return status


def poll_settings(config: Config) -> dict:
    """Keyword arguments for wait_until_stopped() taken from config."""
    engine = config["engine"]
    return {
        "settle_delay": engine["settle_delay_seconds"],
        "interval": engine["poll_interval_seconds"],
        "max_interval": engine["max_poll_interval_seconds"],
        "backoff": engine["poll_backoff"],
        "timeout": engine["poll_timeout_seconds"],
    }
