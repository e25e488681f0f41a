"""
Ecasound wave files (.ewf): windowed, offset or looping views onto a source.

ecasound reads an .ewf in place of the audio file it names, so a clip can be
placed on the timeline without touching the original media. The format is one
``key = value`` directive per line.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ecaradio.errors import ConfigurationError

logger = logging.getLogger(__name__)

EWF_SUFFIX = ".ewf"
KEYS = ("source", "offset", "start-position", "length", "looping")


@dataclass(frozen=True)
class VirtualFile:
    """
    One .ewf descriptor.

    Attributes:
        source: Audio file played through the window
        offset: Timeline position (seconds) where the source starts
        start_position: Position inside the source to start from (default: 0)
        length: Seconds of the source to play (default: until its end)
        looping: Loop the window while the chain runs
    """

    source: str
    offset: float = 0.0
    start_position: Optional[float] = None
    length: Optional[float] = None
    looping: bool = False

    def __post_init__(self):
        if not self.source:
            raise ConfigurationError("Virtual file needs a source")
        if self.offset < 0:
            raise ConfigurationError(f"Negative offset {self.offset} for {self.source}")
        if self.start_position is not None and self.start_position < 0:
            raise ConfigurationError(
                f"Negative start position {self.start_position} for {self.source}"
            )
        if self.length is not None and self.length <= 0:
            raise ConfigurationError(f"Non-positive length {self.length} for {self.source}")

    def render(self) -> str:
        lines = [
            f"source = {self.source}",
            f"offset = {_fmt(self.offset)}",
        ]
        if self.start_position is not None:
            lines.append(f"start-position = {_fmt(self.start_position)}")
        if self.length is not None:
            lines.append(f"length = {_fmt(self.length)}")
        if self.looping:
            lines.append("looping = true")
        return "\n".join(lines) + "\n"


def _fmt(value: float) -> str:
    # repr() is the shortest string that parses back to the same float
    return repr(float(value))


def write_ewf(path: Union[str, Path], vfile: VirtualFile) -> Path:
    """
    Write ``vfile`` to ``path``, replacing whatever was there.

    Raises:
        OSError: If the path is not writable
    """
    path = Path(path)
    path.write_text(vfile.render())
    logger.debug(f"Wrote {path}")
    return path


def parse_ewf(text: str) -> VirtualFile:
    """
    Parse .ewf text back into a VirtualFile.

    Raises:
        ConfigurationError: On unknown keys, malformed lines or a missing source
    """
    fields = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            raise ConfigurationError(f"Malformed ewf line {lineno}: {raw!r}")
        key, value = (part.strip() for part in line.split("=", 1))
        if key not in KEYS:
            raise ConfigurationError(f"Unknown ewf key on line {lineno}: {key}")
        fields[key] = value

    if "source" not in fields:
        raise ConfigurationError("ewf has no source")

    try:
        return VirtualFile(
            source=fields["source"],
            offset=float(fields.get("offset", 0.0)),
            start_position=float(fields["start-position"]) if "start-position" in fields else None,
            length=float(fields["length"]) if "length" in fields else None,
            looping=fields.get("looping", "false").lower() == "true",
        )
    except ValueError as e:
        raise ConfigurationError(f"Bad number in ewf: {e}") from e


def read_ewf(path: Union[str, Path]) -> VirtualFile:
    return parse_ewf(Path(path).read_text())


def ewf_path(work_dir: Union[str, Path], index: int, source: str, suffix: str = "") -> Path:
    """Descriptor path for the index-th clip: <work_dir>/<NNN>_<stem><suffix>.ewf"""
    return Path(work_dir) / f"{index:03d}_{Path(source).stem}{suffix}{EWF_SUFFIX}"
