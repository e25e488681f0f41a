"""
Length measurement: how long is each source file?

MeasurementPass plays every file into a null output so ecasound opens and
reads each one, then asks for each input's length. header_durations() reads
the same information from file headers with mutagen, for callers that want
to supply lengths without running the engine.
"""

import logging
from typing import List, Sequence

from mutagen import File as MutagenFile
from mutagen import MutagenError

from ecaradio.engine.eci import poll_settings, wait_until_stopped
from ecaradio.errors import MeasurementError
from ecaradio.render import commands as cmd

logger = logging.getLogger(__name__)

NULL_OUTPUT = "null"


class MeasurementPass:
    """Measures file lengths through the engine."""

    def __init__(self, ctx, chainsetup: str = "measure"):
        """
        Args:
            ctx: AppContext owning the engine connection
            chainsetup: Name of the throwaway chainsetup
        """
        self.ctx = ctx
        self.chainsetup = chainsetup

    def _chain_name(self, index: int) -> str:
        return f"measure-{index}"

    def measure(self, files: Sequence[str]) -> List[float]:
        """
        Measure every file, in input order.

        Returns:
            Lengths in seconds, one per file

        Raises:
            EngineUnavailable: Engine cannot be reached
            EngineStuck: Playback never finished
            MeasurementError: The engine reported no usable length for a file
        """
        files = [str(f) for f in files]
        if not files:
            return []

        commands = [cmd.disconnect_chainsetup(), cmd.add_chainsetup(self.chainsetup)]
        for index, path in enumerate(files):
            commands.extend([
                cmd.add_chain(self._chain_name(index)),
                cmd.add_audio_input(path),
                cmd.add_audio_output(NULL_OUTPUT),
            ])
        commands.extend([cmd.connect_chainsetup(), cmd.start()])

        logger.info(f"Measuring {len(files)} files")
        with self.ctx.exclusive_engine() as engine:
            cmd.execute(engine, commands)
            wait_until_stopped(engine, **poll_settings(self.ctx.config))

            lengths = []
            for index, path in enumerate(files):
                cmd.execute(engine, [
                    cmd.select_chain(self._chain_name(index)),
                    cmd.select_audio_input(path),
                ])
                length = engine.command(cmd.get_audio_input_length().to_line())
                if length is None or float(length) <= 0.0:
                    raise MeasurementError(f"No usable length for {path}: {length!r}")
                lengths.append(float(length))
                logger.debug(f"{path}: {float(length):.3f}s")

        logger.info(f"Measured {len(lengths)} files, {sum(lengths):.1f}s total")
        return lengths


def header_durations(files: Sequence[str]) -> List[float]:
    """
    Read durations from file headers with mutagen.

    Raises:
        MeasurementError: A file is unreadable or reports no duration
    """
    lengths = []
    for path in files:
        try:
            audio = MutagenFile(str(path))
        except (MutagenError, OSError) as e:
            raise MeasurementError(f"Cannot read {path}: {e}") from e

        if audio is None or audio.info is None or not getattr(audio.info, "length", 0):
            raise MeasurementError(f"No duration in headers of {path}")
        lengths.append(float(audio.info.length))
    return lengths
