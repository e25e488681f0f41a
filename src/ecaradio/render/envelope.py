"""
Gain envelopes for crossfades.

An EnvelopeCurve is a list of (time, amplitude) keyframes. Amplitudes live in
one of two domains: percent (0-100) for the static bed, unit (0.0-1.0) for
per-track fades. A curve never mixes the two.
"""

from dataclasses import dataclass
from typing import Tuple

from ecaradio.errors import ConfigurationError

PERCENT = "percent"
UNIT = "unit"

_DOMAIN_MAX = {PERCENT: 100.0, UNIT: 1.0}

# Paired with every envelope controller: the controller drives -ea's percentage.
GAIN_OPERATOR = "-ea:100"


@dataclass(frozen=True)
class EnvelopeCurve:
    """Keyframed gain curve."""

    keyframes: Tuple[Tuple[float, float], ...]
    shape: str = "linear"
    domain: str = UNIT

    def __post_init__(self):
        if self.domain not in _DOMAIN_MAX:
            raise ConfigurationError(f"Unknown envelope domain: {self.domain}")
        if self.shape != "linear":
            raise ConfigurationError(f"Unsupported envelope shape: {self.shape}")
        if not self.keyframes:
            raise ConfigurationError("Envelope needs at least one keyframe")

        ceiling = _DOMAIN_MAX[self.domain]
        previous = None
        for time, amplitude in self.keyframes:
            if not 0.0 <= amplitude <= ceiling:
                raise ConfigurationError(
                    f"Amplitude {amplitude} outside {self.domain} domain [0, {ceiling}]"
                )
            if previous is not None and time < previous:
                raise ConfigurationError(
                    f"Keyframe times must not decrease: {time} after {previous}"
                )
            previous = time

    def amplitude_at(self, time: float) -> float:
        """Evaluate the curve, holding the end values outside its span."""
        first_t, first_a = self.keyframes[0]
        if time <= first_t:
            return first_a

        for (t0, a0), (t1, a1) in zip(self.keyframes, self.keyframes[1:]):
            if time <= t1:
                if t1 == t0:
                    return a1
                return a0 + (a1 - a0) * (time - t0) / (t1 - t0)

        return self.keyframes[-1][1]

    def to_controller(self, param: int = 1) -> str:
        """
        Render as an ecasound generic linear envelope (-klg) controller.

        -klg takes positions in seconds and values in 0..1 which it scales to
        [low, high]; with low=0 and high=100 it drives GAIN_OPERATOR directly.
        """
        scale = _DOMAIN_MAX[self.domain]
        points = []
        for time, amplitude in self.keyframes:
            points.append(_fmt(time))
            points.append(_fmt(amplitude / scale))
        return f"-klg:{param},0,100,{len(self.keyframes)}," + ",".join(points)


def _fmt(value: float) -> str:
    text = f"{value:.6f}".rstrip("0").rstrip(".")
    return text if text not in ("", "-0") else "0"


def build_fade_curve(
    fade_in_start: float,
    fade_in_end: float,
    fade_out_start: float,
    fade_out_end: float,
    peak: float,
    domain: str = UNIT,
) -> EnvelopeCurve:
    """
    Build a fade-in / hold / fade-out curve.

    Args:
        fade_in_start: Time the curve leaves silence
        fade_in_end: Time it reaches ``peak``
        fade_out_start: Time it starts falling from ``peak``
        fade_out_end: Time it is silent again
        peak: Peak amplitude, in ``domain`` units
        domain: PERCENT or UNIT

    Returns:
        Four-keyframe linear EnvelopeCurve
    """
    return EnvelopeCurve(
        keyframes=(
            (fade_in_start, 0.0),
            (fade_in_end, peak),
            (fade_out_start, peak),
            (fade_out_end, 0.0),
        ),
        shape="linear",
        domain=domain,
    )
