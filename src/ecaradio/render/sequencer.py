"""
Timeline sequencing for crossfaded radio mixes.

Lays tracks end to end so that neighbours overlap around each nominal
boundary, half a crossfade before it and half after. Each track gets a clip
(.ewf descriptor) placing it on the timeline and a fade envelope; with a static
bed configured, every fade-out also gets a short burst of noise underneath.

Worked example, crossfade 10s, lengths 100s and 80s:

    track 0: position 0,  overlap start -5 -> clamped to 0
             fade-in [0, 10], fade-out [90, 100]
    track 1: position 95, overlap start 90
             fade-in [90, 100], fade-out [160, 170]
"""

import logging
import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ecaradio.errors import ConfigurationError
from ecaradio.render.envelope import EnvelopeCurve, PERCENT, UNIT, build_fade_curve
from ecaradio.render.ewf import VirtualFile

logger = logging.getLogger(__name__)

# Static bed envelope, relative to the fade-out start
BED_RAMP_UP = 2.5
BED_RAMP_DOWN_START = 7.5
BED_RAMP_DOWN_END = 10.0


@dataclass(frozen=True)
class RenderTrack:
    """A source file and its length in seconds (authoritative once set)."""

    file: str
    length: float


@dataclass(frozen=True)
class StaticBed:
    """Noise layer mixed under every crossfade."""

    source: str
    amplitude_pct: float
    jitter: float = 40.0

    def __post_init__(self):
        if not 0.0 <= self.amplitude_pct <= 100.0:
            raise ConfigurationError(f"Bed amplitude {self.amplitude_pct}% outside [0, 100]")
        if self.jitter < 0:
            raise ConfigurationError(f"Negative bed jitter {self.jitter}")


@dataclass(frozen=True)
class BedPlacement:
    clip: VirtualFile
    envelope: EnvelopeCurve


@dataclass(frozen=True)
class PlacementPlan:
    """
    Where one track sits on the mix timeline.

    Attributes:
        index: Track number in the input order
        source: Source file
        length: Track length in seconds
        position: Running timeline position when the track was placed
        overlap_start: position - crossfade/2, before clamping
        start: Timeline start actually used (overlap_start, or position if that was negative)
        fade_in: (start, end) of the fade-in window
        fade_out: (start, end) of the fade-out window
        envelope: Unit-domain fade curve for the track
        clip: Descriptor placing the source at ``start``
        bed: Static bed clip and envelope, or None
    """

    index: int
    source: str
    length: float
    position: float
    overlap_start: float
    start: float
    fade_in: Tuple[float, float]
    fade_out: Tuple[float, float]
    envelope: EnvelopeCurve
    clip: VirtualFile
    bed: Optional[BedPlacement] = None


def _place_bed(bed: StaticBed, fade_out_start: float, crossfade: float,
               rng: random.Random) -> BedPlacement:
    clip = VirtualFile(
        source=bed.source,
        offset=fade_out_start,
        start_position=rng.uniform(0.0, bed.jitter),
        length=crossfade,
        looping=True,
    )
    envelope = build_fade_curve(
        fade_out_start,
        fade_out_start + BED_RAMP_UP,
        fade_out_start + BED_RAMP_DOWN_START,
        fade_out_start + BED_RAMP_DOWN_END,
        bed.amplitude_pct,
        domain=PERCENT,
    )
    return BedPlacement(clip=clip, envelope=envelope)


def sequence(
    tracks: Sequence[RenderTrack],
    crossfade: float,
    static_bed: Optional[StaticBed] = None,
    rng: Optional[random.Random] = None,
) -> List[PlacementPlan]:
    """
    Place tracks on a lap-overlap timeline.

    Args:
        tracks: Tracks in play order, lengths already known
        crossfade: Crossfade duration in seconds
        static_bed: Optional noise bed under each fade-out
        rng: Source of bed start jitter (a fresh Random if None)

    Returns:
        One PlacementPlan per track, in input order

    Raises:
        ConfigurationError: Non-positive crossfade, or a track whose length
            is missing, non-positive or shorter than the crossfade
    """
    if crossfade <= 0:
        raise ConfigurationError(f"Crossfade must be positive, got {crossfade}")
    if rng is None:
        rng = random.Random()

    half = crossfade / 2.0
    position = 0.0
    plans = []

    for index, track in enumerate(tracks):
        if track.length is None or track.length <= 0:
            raise ConfigurationError(f"Track {index} ({track.file}) has no usable length")
        if track.length < crossfade:
            # Fade-out would start inside the fade-in window
            raise ConfigurationError(
                f"Track {index} ({track.file}) is {track.length:.2f}s, "
                f"shorter than the {crossfade:.2f}s crossfade"
            )

        overlap_start = position - half
        start = overlap_start if overlap_start >= 0 else position

        fade_in = (start, start + crossfade)
        fade_out_start = start + (track.length - crossfade)
        fade_out = (fade_out_start, fade_out_start + crossfade)

        # Under two crossfades long the windows overlap: peak once, midway
        peak_in, peak_out = fade_in[1], fade_out[0]
        if peak_out < peak_in:
            peak_in = peak_out = (peak_in + peak_out) / 2.0
        envelope = build_fade_curve(fade_in[0], peak_in, peak_out, fade_out[1], 1.0, domain=UNIT)
        clip = VirtualFile(source=track.file, offset=start)

        bed = None
        if static_bed is not None:
            bed = _place_bed(static_bed, fade_out_start, crossfade, rng)

        plans.append(PlacementPlan(
            index=index,
            source=track.file,
            length=track.length,
            position=position,
            overlap_start=overlap_start,
            start=start,
            fade_in=fade_in,
            fade_out=fade_out,
            envelope=envelope,
            clip=clip,
            bed=bed,
        ))
        logger.debug(
            f"Track {index}: start={start:.3f} fade_in={fade_in} fade_out={fade_out}"
        )

        position = position + track.length - half

    logger.info(f"Sequenced {len(plans)} tracks, crossfade {crossfade}s, ends near {position + half:.1f}s")
    return plans
