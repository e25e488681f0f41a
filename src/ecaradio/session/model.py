"""
Sessions and tracks for live recording.

A Session is a directory of takes plus a set of named Tracks. Each Track
records into numbered takes: ``<track>.take-<N>.wav``. Take numbers only ever
go up, and only take completion (after a recording stop) advances them.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from ecaradio.errors import ConfigurationError
from ecaradio.session.iospec import Master, parse_iospec

logger = logging.getLogger(__name__)

_SAFE_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def validate_name(name: str, what: str = "name") -> str:
    """Names double as file and directory names."""
    if not isinstance(name, str) or not _SAFE_NAME.match(name):
        raise ConfigurationError(f"Invalid {what} {name!r}: use letters, digits, '.', '_' or '-'")
    return name


@dataclass
class Track:
    """One recordable/monitorable track."""

    name: str
    channels: int = 1
    input: Any = None
    output: Any = field(default_factory=Master)
    operators: List[str] = field(default_factory=list)
    record: bool = False
    monitor: bool = False
    selected_take: int = 0
    next_take: int = 1
    dirty: bool = False

    def __post_init__(self):
        validate_name(self.name, "track name")
        if self.channels < 1:
            raise ConfigurationError(f"Track {self.name}: channels must be >= 1")
        if self.selected_take < 0:
            raise ConfigurationError(f"Track {self.name}: selected take must be >= 0")
        if self.next_take < 1 or self.next_take <= self.selected_take:
            raise ConfigurationError(
                f"Track {self.name}: next take {self.next_take} must be >= 1 "
                f"and above selected take {self.selected_take}"
            )
        if self.input is not None:
            self.input = parse_iospec(self.input)
        if self.output is not None:
            self.output = parse_iospec(self.output)

    def take_filename(self, take: int) -> str:
        return f"{self.name}.take-{take}.wav"

    def complete_take(self) -> int:
        """Select the take just recorded and move on to the next number."""
        self.dirty = True
        self.selected_take = self.next_take
        self.next_take += 1
        return self.selected_take


class Session:
    """Named collection of tracks rooted at one directory."""

    def __init__(self, name: str, directory: Path):
        self.name = validate_name(name, "session name")
        self.directory = Path(directory)
        self.tracks: Dict[str, Track] = {}
        self.selected_track_name: Optional[str] = None

    def track(self, name: str) -> Track:
        """Look up a track, creating it on first reference."""
        track = self.tracks.get(name)
        if track is None:
            track = Track(name=name)
            self.tracks[name] = track
            logger.debug(f"Session {self.name}: created track {name}")
        return track

    def add_track(self, track: Track) -> Track:
        if track.name in self.tracks:
            raise ConfigurationError(f"Session {self.name} already has a track named {track.name}")
        self.tracks[track.name] = track
        return track

    def remove_track(self, name: str) -> None:
        self.tracks = {n: t for n, t in self.tracks.items() if n != name}
        if self.selected_track_name == name:
            self.selected_track_name = None

    def select_track(self, name: str) -> Track:
        track = self.track(name)
        self.selected_track_name = name
        return track

    @property
    def selected_track(self) -> Optional[Track]:
        if self.selected_track_name is None:
            return None
        return self.tracks.get(self.selected_track_name)

    def ordered_tracks(self) -> List[Track]:
        return [self.tracks[name] for name in sorted(self.tracks)]

    def take_path(self, track: Track, take: int) -> Path:
        return self.directory / track.take_filename(take)

    def existing_takes(self, track: Track) -> List[int]:
        """Take numbers already on disk for ``track``, ascending."""
        if not self.directory.is_dir():
            return []
        pattern = re.compile(rf"^{re.escape(track.name)}\.take-(\d+)\.wav$")
        takes = []
        for path in self.directory.iterdir():
            match = pattern.match(path.name)
            if match:
                takes.append(int(match.group(1)))
        return sorted(takes)

    def complete_takes(self, record_armed: bool,
                       recorded: Optional[Iterable[str]] = None) -> List[Track]:
        """
        Advance take numbers after a recording stop.

        Only tracks that were actually recording move on: the global arm flag
        and the track's own record flag must both be set. When ``recorded``
        names the tracks that got a record chain, those names are used instead
        of the tracks' current record flags.

        Returns:
            Tracks whose take advanced
        """
        if not record_armed:
            return []

        if recorded is not None:
            recorded = set(recorded)

        advanced = []
        for track in self.ordered_tracks():
            if recorded is None and not track.record:
                continue
            if recorded is not None and track.name not in recorded:
                continue
            take = track.complete_take()
            advanced.append(track)
            logger.info(f"Session {self.name}: {track.name} take {take} recorded")
        return advanced

    def __repr__(self) -> str:
        return f"Session(name={self.name}, tracks={len(self.tracks)})"
