"""Command-line entry point for ecaradio.

Subcommands
-----------
render    Mix files into one crossfaded radio show
plan      Print the crossfade timeline without rendering
measure   Print each file's length
split     Cut a recording into segments at marker times
markers   Detect split markers at silent gaps
record    Monitor and record a session's tracks into numbered takes
"""

import argparse
import json
import logging
import os
import random
import sys
from typing import List, Optional

from ecaradio.analyze.markers import MarkerSplitter
from ecaradio.analyze.measure import MeasurementPass, header_durations
from ecaradio.analyze.silence import detect_markers
from ecaradio.config import Config
from ecaradio.engine.context import AppContext
from ecaradio.errors import EcaradioError
from ecaradio.render.render import RadioRenderer, static_bed_from_config
from ecaradio.render.sequencer import StaticBed
from ecaradio.session.store import SessionStore, load_tracks
from ecaradio.session.transport import LiveTransport

logger = logging.getLogger(__name__)


def configure_logging(default_level: str = "INFO") -> int:
    """Configure process-wide logging from LOG_LEVEL and return the level."""
    level_name = os.environ.get("LOG_LEVEL", default_level).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
    )
    return level


def _load_config(args) -> Config:
    config = Config.load(args.config)
    crossfade = getattr(args, "crossfade", None)
    if crossfade is not None:
        config.data["render"]["crossfade_duration_seconds"] = crossfade
        config = Config(config.data)
    return config


def _static_bed(args, config: Config) -> Optional[StaticBed]:
    if args.static_bed:
        amplitude = args.bed_amplitude
        if amplitude is None:
            amplitude = config.get("render", "static_bed_amplitude_pct")
        return StaticBed(args.static_bed, amplitude, config.get("render", "bed_jitter_seconds"))
    return static_bed_from_config(config)


def _lengths(args) -> Optional[List[float]]:
    if args.lengths:
        return [float(x) for x in args.lengths.split(",")]
    if args.from_headers:
        return header_durations(args.files)
    return None


def _parse_markers(text: str) -> List[float]:
    return [float(x) for x in text.split(",") if x.strip()]


# -- subcommand handlers -----------------------------------------------------

def _cmd_render(args, ctx: AppContext) -> int:
    rng = random.Random(args.seed) if args.seed is not None else None
    renderer = RadioRenderer(ctx)
    output = renderer.render(
        args.files,
        args.output,
        lengths=_lengths(args),
        static_bed=_static_bed(args, ctx.config),
        rng=rng,
    )
    print(output)
    return 0


def _cmd_plan(args, ctx: AppContext) -> int:
    rng = random.Random(args.seed) if args.seed is not None else None
    plans = RadioRenderer(ctx).plan(
        args.files,
        lengths=_lengths(args),
        static_bed=_static_bed(args, ctx.config),
        rng=rng,
    )
    rows = []
    for plan in plans:
        row = {
            "index": plan.index,
            "source": plan.source,
            "length": plan.length,
            "start": plan.start,
            "fade_in": list(plan.fade_in),
            "fade_out": list(plan.fade_out),
            "controller": plan.envelope.to_controller(),
        }
        if plan.bed is not None:
            row["bed"] = {
                "offset": plan.bed.clip.offset,
                "start_position": plan.bed.clip.start_position,
                "controller": plan.bed.envelope.to_controller(),
            }
        rows.append(row)
    print(json.dumps(rows, indent=2))
    return 0


def _cmd_measure(args, ctx: AppContext) -> int:
    if args.from_headers:
        lengths = header_durations(args.files)
    else:
        lengths = MeasurementPass(ctx).measure(args.files)
    for path, length in zip(args.files, lengths):
        print(f"{length:.3f}\t{path}")
    return 0


def _cmd_split(args, ctx: AppContext) -> int:
    if args.markers:
        markers = _parse_markers(args.markers)
    else:
        markers = detect_markers(args.file, ctx.config["analysis"])
    written = MarkerSplitter(ctx).split(
        args.file, markers, output_dir=args.output_dir, include_tail=args.tail
    )
    for path in written:
        print(path)
    return 0


def _cmd_markers(args, ctx: AppContext) -> int:
    markers = detect_markers(args.file, ctx.config["analysis"])
    print(",".join(f"{m:g}" for m in markers))
    return 0


def _cmd_record(args, ctx: AppContext) -> int:
    store = SessionStore(args.root or ctx.config.path("session", "root"))
    session = load_tracks(store.open(args.session), args.tracks)
    ctx.select_session(session)
    ctx.record_armed = args.arm

    transport = LiveTransport(ctx)
    transport.start()
    try:
        input("Running - press Enter to stop\n")
    except (EOFError, KeyboardInterrupt):
        print()
    finally:
        advanced = transport.stop()

    for track in advanced:
        print(session.take_path(track, track.selected_take))
    return 0


# -- main --------------------------------------------------------------------

def _add_timeline_args(parser: argparse.ArgumentParser):
    parser.add_argument("files", nargs="+", help="Source files in play order")
    parser.add_argument("--crossfade", type=float, default=None,
                        help="Crossfade duration in seconds")
    parser.add_argument("--lengths", default=None,
                        help="Comma-separated lengths; skips measurement")
    parser.add_argument("--from-headers", action="store_true",
                        help="Read lengths from file headers instead of the engine")
    parser.add_argument("--static-bed", default=None, help="Noise file mixed under fades")
    parser.add_argument("--bed-amplitude", type=float, default=None,
                        help="Static bed peak amplitude in percent")
    parser.add_argument("--seed", type=int, default=None, help="Seed for bed jitter")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="ecaradio",
        description="ecaradio - crossfaded radio mixes rendered by ecasound")
    ap.add_argument("--config", default=None,
                    help="Config file (default: $ECARADIO_CONFIG_PATH or configs/ecaradio.toml)")
    sub = ap.add_subparsers(dest="command")

    sp_render = sub.add_parser("render", help="Render a crossfaded mix")
    _add_timeline_args(sp_render)
    sp_render.add_argument("-o", "--output", required=True, help="Output mix file")
    sp_render.set_defaults(func=_cmd_render)

    sp_plan = sub.add_parser("plan", help="Print the crossfade timeline as JSON")
    _add_timeline_args(sp_plan)
    sp_plan.set_defaults(func=_cmd_plan)

    sp_measure = sub.add_parser("measure", help="Print file lengths")
    sp_measure.add_argument("files", nargs="+")
    sp_measure.add_argument("--from-headers", action="store_true",
                            help="Read lengths from file headers instead of the engine")
    sp_measure.set_defaults(func=_cmd_measure)

    sp_split = sub.add_parser("split", help="Split a recording at markers")
    sp_split.add_argument("file")
    sp_split.add_argument("--markers", default=None,
                          help="Comma-separated marker times; detected from silence if omitted")
    sp_split.add_argument("--output-dir", default=None)
    sp_split.add_argument("--tail", action="store_true",
                          help="Also write the last marker to end of file")
    sp_split.set_defaults(func=_cmd_split)

    sp_markers = sub.add_parser("markers", help="Detect split markers at silent gaps")
    sp_markers.add_argument("file")
    sp_markers.set_defaults(func=_cmd_markers)

    sp_record = sub.add_parser("record", help="Monitor and record a session's tracks")
    sp_record.add_argument("session", help="Session name")
    sp_record.add_argument("--tracks", required=True, help="TOML file with [[track]] tables")
    sp_record.add_argument("--root", default=None, help="Sessions root directory")
    sp_record.add_argument("--arm", action="store_true", help="Record-arm (otherwise monitor only)")
    sp_record.set_defaults(func=_cmd_record)

    return ap


def main(argv: Optional[List[str]] = None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)
    if args.command is None:
        ap.error("a command is required: render, plan, measure, split, markers or record")

    configure_logging()
    ctx = None
    try:
        ctx = AppContext(_load_config(args))
        return args.func(args, ctx)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except EcaradioError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    except OSError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1
    finally:
        if ctx is not None:
            ctx.close()


if __name__ == "__main__":
    sys.exit(main())
