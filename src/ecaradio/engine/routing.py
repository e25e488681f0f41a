"""
JACK routing fabric collaborator.

Connections are queued on the AppContext while commands are emitted and only
applied once the engine chain is running, because ecasound's JACK ports do not
exist before that.
"""

import logging
import subprocess
from dataclasses import dataclass

from ecaradio.errors import EngineUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoutingConnection:
    """One port-to-port connection: (source owner, source port) -> (sink owner, sink port)."""

    source_owner: str
    source_port: str
    sink_owner: str
    sink_port: str

    @property
    def source(self) -> str:
        return f"{self.source_owner}:{self.source_port}"

    @property
    def sink(self) -> str:
        return f"{self.sink_owner}:{self.sink_port}"


def split_port(tag: str, channel: int = 1, kind: str = "capture"):
    """
    Turn a routing tag into (owner, port).

    ``"system:capture_3"`` names a port directly. A bare client name such as
    ``"system"`` is expanded per channel to ``<kind>_<channel>``.
    """
    if ":" in tag:
        owner, port = tag.split(":", 1)
        return owner, port
    return tag, f"{kind}_{channel}"


class JackPortGraph:
    """Connects JACK ports with the ``jack_connect`` tool."""

    def __init__(self, tool: str = "jack_connect", timeout_seconds: float = 10.0):
        self.tool = tool
        self.timeout_seconds = timeout_seconds

    def connect(self, source_owner: str, source_port: str, sink_owner: str, sink_port: str) -> None:
        """
        Connect two ports.

        Raises:
            EngineUnavailable: If jack_connect is missing or refuses the connection
        """
        source = f"{source_owner}:{source_port}"
        sink = f"{sink_owner}:{sink_port}"
        try:
            result = subprocess.run(
                [self.tool, source, sink],
                timeout=self.timeout_seconds,
                capture_output=True,
                text=True,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            raise EngineUnavailable(f"Cannot run {self.tool}: {e}") from e

        if result.returncode != 0:
            raise EngineUnavailable(
                f"{self.tool} {source} {sink} failed: {result.stderr.strip() or result.returncode}"
            )
        logger.info(f"Connected {source} -> {sink}")
