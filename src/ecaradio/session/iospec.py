"""
Track input/output specifications and their resolution to engine I/O strings.

An IOSpec is one of:

    Direct("alsa,default")     engine-native string, passed through untouched
    RoutingPort("system")      JACK endpoint; a bare client name expands per channel
    File("vocals.wav")         file, relative paths resolve inside the session dir
    Loop()                     ecasound loop device; not supported
    Master()                   JACK hardware playback (outputs only)

A list of RoutingPort/Master specs fans out one element per channel.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from ecaradio.errors import ConfigurationError
from ecaradio.engine.routing import split_port

logger = logging.getLogger(__name__)

INPUT = "input"
OUTPUT = "output"

MASTER_CLIENT = "system"


@dataclass(frozen=True)
class Direct:
    value: str


@dataclass(frozen=True)
class RoutingPort:
    tag: str


@dataclass(frozen=True)
class File:
    path: str


@dataclass(frozen=True)
class Loop:
    pass


@dataclass(frozen=True)
class Master:
    pass


IOSpec = Union[Direct, RoutingPort, File, Loop, Master, List[Union[RoutingPort, Master]]]

_VARIANTS = (Direct, RoutingPort, File, Loop, Master)


def parse_iospec(obj) -> IOSpec:
    """
    Build an IOSpec from plain data.

    Accepts an IOSpec as-is, a string (Direct), a single-key dict
    ({"direct": s}, {"port": tag}, {"file": path}, {"loop": ...},
    {"master": ...}) or a list of those for per-channel fan-out.

    Raises:
        ConfigurationError: On anything else
    """
    if isinstance(obj, _VARIANTS):
        return obj
    if isinstance(obj, str):
        if not obj.strip():
            raise ConfigurationError("Empty I/O spec")
        return Direct(obj)
    if isinstance(obj, dict):
        if len(obj) != 1:
            raise ConfigurationError(f"I/O spec dict needs exactly one key: {obj!r}")
        (kind, value), = obj.items()
        if kind == "direct":
            return parse_iospec(str(value))
        if kind == "port":
            if not value:
                raise ConfigurationError("Routing port spec needs a tag")
            return RoutingPort(str(value))
        if kind == "file":
            if not value:
                raise ConfigurationError("File spec needs a path")
            return File(str(value))
        if kind == "loop":
            return Loop()
        if kind == "master":
            return Master()
        raise ConfigurationError(f"Unknown I/O spec kind: {kind}")
    if isinstance(obj, (list, tuple)):
        if not obj:
            raise ConfigurationError("Empty I/O spec list")
        specs = []
        for item in obj:
            if isinstance(item, (list, tuple)):
                raise ConfigurationError("Nested I/O spec lists are not allowed")
            specs.append(parse_iospec(item))
        return specs
    raise ConfigurationError(f"Malformed I/O spec: {obj!r}")


def _jack_object(track, ctx, direction: str, endpoints) -> str:
    """Engine-side JACK object for ``track`` with one queued connection per channel."""
    prefix = f"{track.name}_{ctx.next_port_suffix()}"
    client = ctx.engine_client_name
    for channel, (owner, port) in enumerate(endpoints, start=1):
        engine_port = f"{prefix}_{channel}"
        if direction == INPUT:
            ctx.queue_connection(owner, port, client, engine_port)
        else:
            ctx.queue_connection(client, engine_port, owner, port)
    return f"jack,,{prefix}"


def _endpoint(spec, channel: int, direction: str):
    kind = "capture" if direction == INPUT else "playback"
    if isinstance(spec, Master):
        if direction == INPUT:
            raise ConfigurationError("Master can only be used as an output")
        return MASTER_CLIENT, f"playback_{channel}"
    if isinstance(spec, RoutingPort):
        return split_port(spec.tag, channel, kind)
    raise ConfigurationError(
        f"{type(spec).__name__} cannot be part of a per-channel routing list"
    )


def resolve_io(spec: IOSpec, track, ctx, direction: str, session_dir: Path) -> str:
    """
    Resolve ``spec`` to the string ecasound expects after -i / -o.

    Routing variants queue their connections on ``ctx``; they are applied
    once the chain is running.

    Raises:
        ConfigurationError: Missing spec, Loop, Master as input, or a list whose
            length differs from the track's channel count
    """
    if spec is None:
        raise ConfigurationError(f"Track {track.name} has no {direction} spec")

    if isinstance(spec, list):
        if len(spec) != track.channels:
            raise ConfigurationError(
                f"Track {track.name}: {len(spec)} {direction} ports for {track.channels} channels"
            )
        endpoints = [_endpoint(item, ch, direction) for ch, item in enumerate(spec, start=1)]
        return _jack_object(track, ctx, direction, endpoints)

    if isinstance(spec, Direct):
        return spec.value
    if isinstance(spec, File):
        path = Path(spec.path)
        if not path.is_absolute():
            path = Path(session_dir) / path
        return str(path)
    if isinstance(spec, Loop):
        raise ConfigurationError(f"Track {track.name}: loop {direction} is not supported")
    if isinstance(spec, (RoutingPort, Master)):
        endpoints = [_endpoint(spec, ch, direction) for ch in range(1, track.channels + 1)]
        return _jack_object(track, ctx, direction, endpoints)

    raise ConfigurationError(f"Track {track.name}: unknown {direction} spec {spec!r}")
