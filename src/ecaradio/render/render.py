"""
Radio Render Engine.

Measures sources, sequences them on a crossfaded timeline, writes the .ewf
clip descriptors and drives ecasound to mix everything into one output file.
"""

import logging
import random
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Union

from mutagen import MutagenError
from mutagen.easyid3 import EasyID3
from mutagen.flac import FLAC
from mutagen.id3 import TALB, TCON, TDRC
from mutagen.wave import WAVE

from ecaradio.analyze.measure import MeasurementPass
from ecaradio.engine.eci import poll_settings, wait_until_stopped
from ecaradio.errors import ConfigurationError, EcaradioError, EngineError
from ecaradio.render import commands as cmd
from ecaradio.render.ewf import ewf_path, write_ewf
from ecaradio.render.sequencer import PlacementPlan, RenderTrack, StaticBed, sequence

logger = logging.getLogger(__name__)

ALBUM_PREFIX = "Radio Mix"
GENRE = "Radio"


def static_bed_from_config(config) -> Optional[StaticBed]:
    """StaticBed from the render section, or None when no bed source is set."""
    source = config.get("render", "static_bed_source")
    if not source:
        return None
    return StaticBed(
        source=str(Path(source).expanduser()),
        amplitude_pct=config.get("render", "static_bed_amplitude_pct"),
        jitter=config.get("render", "bed_jitter_seconds"),
    )


def write_clips(plans: Sequence[PlacementPlan], work_dir: Path) -> list:
    """
    Write every plan's .ewf descriptors into ``work_dir``.

    Returns:
        Per plan, (track descriptor path, bed descriptor path or None)
    """
    work_dir.mkdir(parents=True, exist_ok=True)
    paths = []
    for plan in plans:
        clip_path = write_ewf(ewf_path(work_dir, plan.index, plan.source), plan.clip)
        bed_path = None
        if plan.bed is not None:
            bed_path = write_ewf(ewf_path(work_dir, plan.index, plan.source, "-bed"), plan.bed.clip)
        paths.append((clip_path, bed_path))
    logger.debug(f"Wrote {len(paths)} clip descriptors to {work_dir}")
    return paths


def _validate_output_file(output_path: str, min_size_bytes: int) -> bool:
    """
    Validate rendered output file.

    Args:
        output_path: Path to output file
        min_size_bytes: Smallest acceptable file size

    Returns:
        True if valid, False otherwise
    """
    output_file = Path(output_path)

    if not output_file.exists():
        logger.error(f"Output file does not exist: {output_path}")
        return False

    file_size = output_file.stat().st_size
    if file_size < min_size_bytes:
        logger.error(f"Output file too small: {file_size} bytes (minimum {min_size_bytes})")
        return False

    logger.debug(f"Output validation passed: {output_path} ({file_size} bytes)")
    return True


def _write_mix_metadata(output_path: str, timestamp: str) -> bool:
    """
    Write album/genre/date tags to the rendered mix.

    Tagging is best effort: a failure is logged and the mix is kept.

    Args:
        output_path: Path to output file
        timestamp: Generation timestamp (ISO format)

    Returns:
        True if tags were written, False otherwise
    """
    year = timestamp[:4]
    album_name = f"{ALBUM_PREFIX} {timestamp[:10]}"
    lower = output_path.lower()

    try:
        if lower.endswith(".mp3"):
            audio = EasyID3(output_path)
            audio["album"] = album_name
            audio["genre"] = GENRE
            audio["date"] = year
            audio.save()
        elif lower.endswith(".flac"):
            audio = FLAC(output_path)
            audio["album"] = album_name
            audio["genre"] = GENRE
            audio["date"] = year
            audio.save()
        elif lower.endswith(".wav"):
            audio = WAVE(output_path)
            if audio.tags is None:
                audio.add_tags()
            audio.tags.add(TALB(encoding=3, text=album_name))
            audio.tags.add(TCON(encoding=3, text=GENRE))
            audio.tags.add(TDRC(encoding=3, text=year))
            audio.save()
        else:
            logger.debug(f"Unsupported format for metadata: {output_path}")
            return False
    except (MutagenError, OSError) as e:
        logger.warning(f"Failed to write tags to {output_path}: {e}")
        return False

    logger.debug(f"Added metadata to {output_path}")
    return True


def _cleanup_partial_output(output_path: str) -> None:
    """
    Remove a partial or failed output file.

    Args:
        output_path: Path to output file to remove
    """
    output_file = Path(output_path)
    try:
        if output_file.exists():
            output_file.unlink()
            logger.debug(f"Cleaned up partial output: {output_path}")
    except OSError as e:
        logger.warning(f"Failed to clean up output file {output_path}: {e}")


class RadioRenderer:
    """Offline crossfade mix orchestrator."""

    def __init__(self, ctx):
        """
        Args:
            ctx: AppContext owning config and the engine connection
        """
        self.ctx = ctx
        self.config = ctx.config
        logger.debug("RadioRenderer initialized")

    def plan(
        self,
        files: Sequence[str],
        lengths: Optional[Sequence[float]] = None,
        static_bed: Optional[StaticBed] = None,
        rng: Optional[random.Random] = None,
    ) -> List[PlacementPlan]:
        """
        Sequence ``files``, measuring them first if no lengths are given.

        Raises:
            ConfigurationError: Length count does not match file count, or the
                timeline cannot be built
        """
        files = [str(f) for f in files]
        if not files:
            raise ConfigurationError("Nothing to render: no input files")

        if lengths is None:
            lengths = MeasurementPass(self.ctx).measure(files)
        elif len(lengths) != len(files):
            raise ConfigurationError(f"{len(lengths)} lengths given for {len(files)} files")

        tracks = [RenderTrack(file=f, length=float(n)) for f, n in zip(files, lengths)]
        crossfade = self.config.get("render", "crossfade_duration_seconds")
        return sequence(tracks, crossfade, static_bed=static_bed, rng=rng)

    def render(
        self,
        files: Sequence[str],
        output_path: Union[str, Path],
        lengths: Optional[Sequence[float]] = None,
        static_bed: Optional[StaticBed] = None,
        rng: Optional[random.Random] = None,
        work_dir: Optional[Path] = None,
    ) -> Path:
        """
        Render ``files`` into one crossfaded mix.

        Args:
            files: Source files in play order
            output_path: Mixed output file
            lengths: Known lengths in seconds; measured through the engine if None
            static_bed: Noise bed under each fade-out, or None
            rng: Random source for bed jitter
            work_dir: Where .ewf descriptors go (default: render.work_dir)

        Returns:
            Path of the rendered mix

        Raises:
            ConfigurationError: Bad inputs or an unbuildable timeline
            EngineError: Any engine failure, or output that failed validation
            OSError: Descriptors or the output directory could not be written
        """
        output_path = Path(output_path)
        work_dir = Path(work_dir) if work_dir is not None else self.config.path("render", "work_dir")

        logger.info(f"Starting render: {output_path}")
        with self.ctx.exclusive_engine() as engine:
            try:
                plans = self.plan(files, lengths, static_bed, rng)
                clip_paths = write_clips(plans, work_dir)
                commands = cmd.emit_render_commands(
                    plans,
                    clip_paths,
                    output_path,
                    self.config.get("render", "audio_format"),
                )
                commands.extend([cmd.connect_chainsetup(), cmd.start()])

                output_path.parent.mkdir(parents=True, exist_ok=True)
                cmd.execute(engine, commands)
                wait_until_stopped(engine, **poll_settings(self.config))
            except (EcaradioError, OSError) as e:
                logger.error(f"Render failed: {e}")
                _cleanup_partial_output(str(output_path))
                raise

        min_size = self.config.get("render", "min_output_bytes")
        if not _validate_output_file(str(output_path), min_size):
            _cleanup_partial_output(str(output_path))
            raise EngineError(f"Rendered output failed validation: {output_path}")

        _write_mix_metadata(str(output_path), datetime.now().isoformat())

        logger.info(f"Render complete: {output_path}")
        return output_path
