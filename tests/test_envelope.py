"""
Unit tests for fade envelopes.
"""

import pytest

from ecaradio.errors import ConfigurationError
from ecaradio.render.envelope import (
    EnvelopeCurve,
    PERCENT,
    UNIT,
    build_fade_curve,
)


class TestBuildFadeCurve:
    """Test the four-keyframe fade builder."""

    def test_four_keyframes(self):
        """Fade curve has exactly the four expected keyframes."""
        curve = build_fade_curve(0.0, 10.0, 90.0, 100.0, 1.0)

        assert curve.keyframes == ((0.0, 0.0), (10.0, 1.0), (90.0, 1.0), (100.0, 0.0))
        assert curve.shape == "linear"
        assert curve.domain == UNIT

    def test_deterministic(self):
        """Same inputs give equal curves."""
        a = build_fade_curve(5.0, 15.0, 60.0, 70.0, 0.8)
        b = build_fade_curve(5.0, 15.0, 60.0, 70.0, 0.8)

        assert a == b

    def test_percent_domain(self):
        """Percent curves accept peaks up to 100."""
        curve = build_fade_curve(0.0, 2.5, 7.5, 10.0, 30.0, domain=PERCENT)

        assert curve.keyframes[1] == (2.5, 30.0)

    def test_unit_domain_rejects_percent_peak(self):
        """A percent-sized peak does not fit a unit curve."""
        with pytest.raises(ConfigurationError):
            build_fade_curve(0.0, 10.0, 90.0, 100.0, 30.0, domain=UNIT)

    def test_percent_domain_rejects_over_100(self):
        with pytest.raises(ConfigurationError):
            build_fade_curve(0.0, 10.0, 90.0, 100.0, 150.0, domain=PERCENT)


class TestEnvelopeCurve:
    """Test curve validation, evaluation and controller output."""

    def test_decreasing_times_rejected(self):
        with pytest.raises(ConfigurationError):
            EnvelopeCurve(keyframes=((10.0, 0.0), (5.0, 1.0)))

    def test_unknown_domain_rejected(self):
        with pytest.raises(ConfigurationError):
            EnvelopeCurve(keyframes=((0.0, 0.0),), domain="decibel")

    def test_empty_rejected(self):
        with pytest.raises(ConfigurationError):
            EnvelopeCurve(keyframes=())

    def test_amplitude_at_interpolates(self):
        """Linear interpolation inside each ramp, hold in between."""
        curve = build_fade_curve(0.0, 10.0, 90.0, 100.0, 1.0)

        assert curve.amplitude_at(5.0) == pytest.approx(0.5)
        assert curve.amplitude_at(50.0) == pytest.approx(1.0)
        assert curve.amplitude_at(95.0) == pytest.approx(0.5)

    def test_amplitude_at_outside_span(self):
        """End values hold before the first and after the last keyframe."""
        curve = build_fade_curve(10.0, 20.0, 30.0, 40.0, 1.0)

        assert curve.amplitude_at(0.0) == 0.0
        assert curve.amplitude_at(100.0) == 0.0

    def test_unit_controller(self):
        """Unit values go into -klg unchanged."""
        curve = build_fade_curve(0.0, 10.0, 90.0, 100.0, 1.0)

        assert curve.to_controller() == "-klg:1,0,100,4,0,0,10,1,90,1,100,0"

    def test_percent_controller_is_normalized(self):
        """Percent values are scaled into 0..1 for -klg."""
        curve = build_fade_curve(90.0, 92.5, 97.5, 100.0, 30.0, domain=PERCENT)

        assert curve.to_controller() == "-klg:1,0,100,4,90,0,92.5,0.3,97.5,0.3,100,0"

    def test_controller_param(self):
        curve = build_fade_curve(0.0, 1.0, 2.0, 3.0, 1.0)

        assert curve.to_controller(param=2).startswith("-klg:2,0,100,4,")
