"""
Marker splitting: cut one recording into segments between marker times.

Marker 0 is the session start and never opens a segment. Each later marker
opens a segment that runs to the next marker.
"""

import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ecaradio.engine.eci import poll_settings, wait_until_stopped
from ecaradio.errors import ConfigurationError
from ecaradio.render import commands as cmd

logger = logging.getLogger(__name__)


def segment_bounds(markers: Sequence[float], include_tail: bool = False) -> List[Tuple[float, Optional[float]]]:
    """
    (start, end) pairs for a marker list.

    With markers [0, 10, 25, 40] the segments are (10, 25) and (25, 40).
    ``include_tail`` adds (40, None): from the last marker to end of file.

    Raises:
        ConfigurationError: Markers out of order
    """
    markers = [float(m) for m in markers]
    for earlier, later in zip(markers, markers[1:]):
        if later < earlier:
            raise ConfigurationError(f"Markers out of order: {later} after {earlier}")

    bounds = [(markers[i], markers[i + 1]) for i in range(1, len(markers) - 1)]
    if include_tail and len(markers) > 1:
        bounds.append((markers[-1], None))
    return bounds


class MarkerSplitter:
    """Drives the engine to write one file per marker segment."""

    def __init__(self, ctx):
        self.ctx = ctx
        self.channel_index = ctx.config.get("split", "channel_index", 1)
        self.output_template = ctx.config.get("split", "output_template", "{stem}-{index:02d}.wav")

    def output_path(self, source: Path, index: int, output_dir: Optional[Path] = None) -> Path:
        directory = Path(output_dir) if output_dir is not None else source.parent
        return directory / self.output_template.format(stem=source.stem, index=index)

    def split(self, file, markers: Sequence[float], output_dir=None,
              include_tail: bool = False) -> List[Path]:
        """
        Write each segment of ``file`` to its own numbered file, in marker order.

        Args:
            file: Source recording
            markers: Non-decreasing marker times in seconds
            output_dir: Where segments go (default: next to the source)
            include_tail: Also write the last marker to end of file

        Returns:
            Paths of the written segments

        Raises:
            ConfigurationError: Markers out of order
            EngineUnavailable / EngineStuck: Engine failures
        """
        source = Path(file)
        bounds = segment_bounds(markers, include_tail)
        written = []

        with self.ctx.exclusive_engine() as engine:
            for index, (start_at, end_at) in enumerate(bounds, start=1):
                target = self.output_path(source, index, output_dir)
                chainsetup = f"split-{index}"

                commands = [
                    cmd.disconnect_chainsetup(),
                    cmd.add_chainsetup(chainsetup),
                    cmd.add_chain(chainsetup),
                    cmd.add_audio_input(source),
                    cmd.add_audio_output(target),
                    cmd.connect_chainsetup(),
                    cmd.select_audio_input_index(self.channel_index),
                    cmd.set_position(start_at),
                ]
                if end_at is not None:
                    commands.append(cmd.set_length(end_at - start_at))
                commands.append(cmd.start())

                end_label = f"{end_at:.3f}" if end_at is not None else "end"
                logger.info(f"Segment {index}: {start_at:.3f} -> {end_label} into {target}")
                cmd.execute(engine, commands)
                wait_until_stopped(engine, **poll_settings(self.ctx.config))
                written.append(target)

        logger.info(f"Split {source} into {len(written)} segments")
        return written
