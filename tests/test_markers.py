"""
Unit tests for marker splitting and silence detection.
"""

from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from ecaradio.analyze.markers import MarkerSplitter, segment_bounds
from ecaradio.analyze.silence import detect_markers
from ecaradio.errors import ConfigurationError


class TestSegmentBounds:
    """Test segment arithmetic."""

    def test_marker_zero_opens_nothing(self):
        assert segment_bounds([0, 10, 25, 40]) == [(10.0, 25.0), (25.0, 40.0)]

    def test_tail(self):
        assert segment_bounds([0, 10, 25, 40], include_tail=True) == [
            (10.0, 25.0),
            (25.0, 40.0),
            (40.0, None),
        ]

    def test_too_few_markers(self):
        assert segment_bounds([0, 10]) == []
        assert segment_bounds([0]) == []
        assert segment_bounds([0], include_tail=True) == []

    def test_out_of_order(self):
        with pytest.raises(ConfigurationError):
            segment_bounds([0, 25, 10])


class TestMarkerSplitter:
    """Test the per-segment engine passes."""

    def test_two_segments(self, ctx, fake_engine, tmp_path):
        source = tmp_path / "show.wav"

        written = MarkerSplitter(ctx).split(source, [0, 10, 25, 40])

        assert written == [tmp_path / "show-01.wav", tmp_path / "show-02.wav"]
        assert fake_engine.verbs.count("start") == 2

    def test_segment_commands(self, ctx, fake_engine, tmp_path):
        """Each segment: own chainsetup, channel, position and length, then start."""
        source = tmp_path / "show.wav"

        MarkerSplitter(ctx).split(source, [0, 10, 25, 40])

        first = fake_engine.lines[:fake_engine.index("start") + 1]
        assert first == [
            "cs-disconnect",
            "cs-add split-1",
            "c-add split-1",
            f"ai-add {source}",
            f"ao-add {tmp_path / 'show-01.wav'}",
            "cs-connect",
            "ai-iselect 1",
            "cs-set-position 10.0",
            "cs-set-length 15.0",
            "start",
        ]
        assert "cs-set-position 25.0" in fake_engine.lines
        assert "cs-set-length 15.0" in fake_engine.lines[fake_engine.index("cs-add split-2"):]

    def test_waits_between_segments(self, ctx, fake_engine, tmp_path):
        MarkerSplitter(ctx).split(tmp_path / "show.wav", [0, 10, 25, 40])

        assert fake_engine.index("engine-status") < fake_engine.index("cs-add split-2")

    def test_tail_has_no_length(self, ctx, fake_engine, tmp_path):
        written = MarkerSplitter(ctx).split(tmp_path / "show.wav", [0, 10, 25], include_tail=True)

        assert len(written) == 2
        tail = fake_engine.lines[fake_engine.index("cs-add split-2"):]
        assert "cs-set-position 25.0" in tail
        assert not any(line.startswith("cs-set-length") for line in tail)

    def test_output_dir_and_channel(self, ctx, fake_engine, tmp_path):
        ctx.config["split"]["channel_index"] = 2
        out = tmp_path / "segments"

        written = MarkerSplitter(ctx).split(Path("/rec/show.wav"), [0, 5, 9], output_dir=out)

        assert written == [out / "show-01.wav"]
        assert "ai-iselect 2" in fake_engine.lines

    def test_no_segments(self, ctx, fake_engine, tmp_path):
        assert MarkerSplitter(ctx).split(tmp_path / "show.wav", [0, 10]) == []
        assert fake_engine.lines == []


class FakeSource:
    """aubio.source stand-in yielding one scripted amplitude per hop."""

    samplerate = 1000

    def __init__(self, amplitudes, hop_size):
        self.amplitudes = list(amplitudes)
        self.hop_size = hop_size

    def __call__(self):
        if not self.amplitudes:
            return np.zeros(self.hop_size, dtype=np.float32), 0
        level = self.amplitudes.pop(0)
        return np.full(self.hop_size, level, dtype=np.float32), self.hop_size


class TestDetectMarkers:
    """Test silence-gap marker detection."""

    CONFIG = {"hop_size": 100, "silence_threshold_db": -50.0, "min_silence_seconds": 1.5}

    def _detect(self, amplitudes, config=None):
        def make_source(path, hop_size):
            return FakeSource(amplitudes, hop_size)

        with patch("ecaradio.analyze.silence.aubio.source", side_effect=make_source):
            return detect_markers("show.wav", config or self.CONFIG)

    def test_gap_midpoint(self):
        """Two seconds of silence between hops 10 and 30 give a marker at 2.0s."""
        assert self._detect([0.5] * 10 + [0.0] * 20 + [0.5] * 10) == [0.0, 2.0]

    def test_short_gap_ignored(self):
        assert self._detect([0.5] * 10 + [0.0] * 5 + [0.5] * 10) == [0.0]

    def test_leading_and_trailing_silence_ignored(self):
        assert self._detect([0.0] * 20 + [0.5] * 10 + [0.0] * 20) == [0.0]

    def test_several_gaps(self):
        amplitudes = [0.5] * 10 + [0.0] * 20 + [0.5] * 10 + [0.0] * 16 + [0.5] * 4
        assert self._detect(amplitudes) == [0.0, 2.0, 4.8]
