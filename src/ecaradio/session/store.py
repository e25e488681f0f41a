"""
Session directory layout: one directory per Session under a root.
"""

import logging
from pathlib import Path
from typing import Dict, Union

import toml

from ecaradio.errors import ConfigurationError
from ecaradio.session.model import Session, Track, validate_name

logger = logging.getLogger(__name__)

_TRACK_KEYS = {"name", "channels", "input", "output", "operators", "record", "monitor",
               "selected_take", "next_take"}


class SessionStore:
    """Looks up or creates Sessions under ``root``."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root).expanduser()
        self._sessions: Dict[str, Session] = {}

    def open(self, name: str) -> Session:
        """
        Return the Session called ``name``, creating its directory if needed.

        Raises:
            ConfigurationError: Invalid name, or a non-directory already at the path
        """
        validate_name(name, "session name")
        session = self._sessions.get(name)
        if session is not None:
            return session

        directory = self.root / name
        if directory.exists() and not directory.is_dir():
            raise ConfigurationError(f"Cannot use {directory} for session {name}: not a directory")
        directory.mkdir(parents=True, exist_ok=True)

        session = Session(name, directory)
        self._sessions[name] = session
        logger.info(f"Opened session {name} at {directory}")
        return session


def load_tracks(session: Session, tracks_path: Union[str, Path]) -> Session:
    """
    Add the tracks described in a TOML file to ``session``.

    The file holds one ``[[track]]`` table per track::

        [[track]]
        name = "vocals"
        channels = 1
        input = { port = "system:capture_1" }
        output = { master = true }
        operators = ["-eadb:-3"]
        record = true
        monitor = true

    Raises:
        ConfigurationError: Unreadable file, unknown keys or invalid values
    """
    tracks_path = Path(tracks_path)
    try:
        data = toml.load(tracks_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigurationError(f"Failed to load tracks from {tracks_path}: {e}")

    for entry in data.get("track", []):
        unknown = set(entry) - _TRACK_KEYS
        if unknown:
            raise ConfigurationError(f"Unknown track keys in {tracks_path}: {sorted(unknown)}")
        try:
            track = session.add_track(Track(**entry))
        except TypeError as e:
            raise ConfigurationError(f"Bad track entry in {tracks_path}: {e}")

        # Take numbers are never reused, even across runs
        takes = session.existing_takes(track)
        if takes and track.next_take <= takes[-1]:
            track.next_take = takes[-1] + 1
            if track.selected_take == 0:
                track.selected_take = takes[-1]

    logger.info(f"Loaded {len(session.tracks)} tracks into session {session.name}")
    return session
