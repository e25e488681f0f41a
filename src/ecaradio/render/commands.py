"""
Engine command emission.

Turns sequencer output (offline render) or Session state (live recording)
into an ordered list of ECI commands. Order within a chainsetup is always:

    cs-disconnect -> cs-add -> c-add -> format / inputs -> operators and
    controllers -> outputs

and for an offline render the tail selects every chain, attaches the one
output file to all of them and switches the chainsetup to summing mix mode.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Tuple, Union

from ecaradio.render.envelope import GAIN_OPERATOR
from ecaradio.session.iospec import INPUT, OUTPUT, resolve_io

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Command:
    """One ECI command line."""

    verb: str
    args: Tuple[str, ...] = ()

    def to_line(self) -> str:
        if not self.args:
            return self.verb
        return f"{self.verb} {','.join(self.args)}"

    def __str__(self) -> str:
        return self.to_line()


def _num(value: float) -> str:
    return repr(float(value))


# -- verbs -------------------------------------------------------------------

def disconnect_chainsetup() -> Command:
    return Command("cs-disconnect")


def add_chainsetup(name: str) -> Command:
    return Command("cs-add", (name,))


def connect_chainsetup() -> Command:
    return Command("cs-connect")


def add_chain(name: str) -> Command:
    return Command("c-add", (name,))


def select_chain(name: str) -> Command:
    return Command("c-select", (name,))


def select_all_chains() -> Command:
    return Command("c-select-all")


def add_audio_input(spec: str) -> Command:
    return Command("ai-add", (str(spec),))


def add_audio_output(spec: str) -> Command:
    return Command("ao-add", (str(spec),))


def select_audio_input(spec: str) -> Command:
    return Command("ai-select", (str(spec),))


def select_audio_input_index(index: int) -> Command:
    return Command("ai-iselect", (str(int(index)),))


def get_audio_input_length() -> Command:
    return Command("ai-get-length")


def attach_audio_output() -> Command:
    return Command("ao-attach")


def set_audio_format(spec: str) -> Command:
    return Command("cs-set-audio-format", (spec,))


def add_chain_operator(spec: str) -> Command:
    return Command("cop-add", (spec,))


def add_chain_operator_controller(spec: str) -> Command:
    return Command("ctrl-add", (spec,))


def set_position(seconds: float) -> Command:
    return Command("cs-set-position", (_num(seconds),))


def set_length(seconds: float) -> Command:
    return Command("cs-set-length", (_num(seconds),))


def set_chainsetup_option(key: str, value: str) -> Command:
    return Command("cs-option", (f"-{key}:{value}",))


def start() -> Command:
    return Command("start")


def stop() -> Command:
    return Command("stop")


# -- offline render ----------------------------------------------------------

def emit_render_commands(
    plans: Sequence,
    clip_paths: Sequence[Tuple[Path, Union[Path, None]]],
    output: Union[str, Path],
    audio_format: str,
    chainsetup: str = "radio",
) -> List[Command]:
    """
    Commands that mix every placed clip into ``output``.

    Args:
        plans: PlacementPlans from the sequencer
        clip_paths: Per plan, (track .ewf path, bed .ewf path or None)
        output: Mixed output file
        audio_format: ecasound -f string, e.g. "f32_le,2,44100"
        chainsetup: Name of the chainsetup to build

    Returns:
        Ordered command list
    """
    commands = [disconnect_chainsetup(), add_chainsetup(chainsetup)]

    for plan, (clip_path, bed_path) in zip(plans, clip_paths):
        commands.extend([
            add_chain(f"track-{plan.index}"),
            set_audio_format(audio_format),
            add_audio_input(clip_path),
            add_chain_operator(GAIN_OPERATOR),
            add_chain_operator_controller(plan.envelope.to_controller()),
        ])
        if plan.bed is not None:
            commands.extend([
                add_chain(f"bed-{plan.index}"),
                set_audio_format(audio_format),
                add_audio_input(bed_path),
                add_chain_operator(GAIN_OPERATOR),
                add_chain_operator_controller(plan.bed.envelope.to_controller()),
            ])

    commands.extend([
        add_audio_output(output),
        select_all_chains(),
        attach_audio_output(),
        set_chainsetup_option("z", "mixmode,sum"),
    ])
    logger.debug(f"Emitted {len(commands)} render commands for {len(plans)} tracks")
    return commands


# -- live session ------------------------------------------------------------

def track_audio_format(audio_format: str, channels: int) -> str:
    """Session format with its channel field set to the track's channel count."""
    fields = audio_format.split(",")
    if len(fields) < 2:
        return audio_format
    fields[1] = str(int(channels))
    return ",".join(fields)


def _track_chain(name: str, audio_format: str, source: str, sink: str,
                 operators: Sequence[str] = ()) -> List[Command]:
    commands = [
        add_chain(name),
        set_audio_format(audio_format),
        add_audio_input(source),
    ]
    commands.extend(add_chain_operator(op) for op in operators)
    commands.append(add_audio_output(sink))
    return commands


def emit_session_commands(session, ctx, audio_format: str) -> List[Command]:
    """
    Commands that set up monitoring and recording for every track.

    Resets the context's routing queue and port numbering first; routing
    connections queued here are applied by the transport once the chain runs.
    Per track, the monitor chain always precedes the record chain.

    Raises:
        ConfigurationError: A track's input or output spec cannot be resolved
    """
    ctx.reset_routing()
    commands = [disconnect_chainsetup(), add_chainsetup(session.name)]

    for track in session.ordered_tracks():
        recording = ctx.record_armed and track.record
        # JACK objects get one port per chain channel
        chain_format = track_audio_format(audio_format, track.channels)

        if track.monitor:
            if recording or track.selected_take == 0:
                source = resolve_io(track.input, track, ctx, INPUT, session.directory)
            else:
                source = str(session.take_path(track, track.selected_take))
            sink = resolve_io(track.output, track, ctx, OUTPUT, session.directory)
            commands.extend(_track_chain(
                f"{track.name}-monitor", chain_format, source, sink, track.operators
            ))

        if recording:
            source = resolve_io(track.input, track, ctx, INPUT, session.directory)
            sink = str(session.take_path(track, track.next_take))
            commands.extend(_track_chain(f"{track.name}-record", chain_format, source, sink))

    logger.debug(
        f"Emitted {len(commands)} session commands, "
        f"{len(ctx.pending_connections)} routing connections queued"
    )
    return commands


def execute(engine, commands: Iterable[Command]) -> None:
    """Send commands to the engine in order."""
    for command in commands:
        engine.command(command.to_line())
