"""
Unit tests for length measurement.
"""

from unittest.mock import MagicMock, patch

import pytest

from ecaradio.analyze.measure import MeasurementPass, header_durations
from ecaradio.errors import EngineStuck, MeasurementError


class TestMeasurementPass:
    """Test the engine-driven measurement pass."""

    def test_lengths_in_input_order(self, ctx, fake_engine):
        fake_engine.lengths.update({"b.wav": 80.0, "a.wav": 100.0})

        assert MeasurementPass(ctx).measure(["a.wav", "b.wav"]) == [100.0, 80.0]

    def test_command_sequence(self, ctx, fake_engine):
        """One chain per file into the null output, then query after playback."""
        fake_engine.lengths.update({"a.wav": 100.0, "b.wav": 80.0})

        MeasurementPass(ctx).measure(["a.wav", "b.wav"])

        assert fake_engine.lines[:8] == [
            "cs-disconnect",
            "cs-add measure",
            "c-add measure-0",
            "ai-add a.wav",
            "ao-add null",
            "c-add measure-1",
            "ai-add b.wav",
            "ao-add null",
        ]
        assert fake_engine.index("start") < fake_engine.index("engine-status")
        assert fake_engine.index("engine-status") < fake_engine.index("ai-get-length")
        assert fake_engine.index("c-select measure-0") < fake_engine.index("ai-select a.wav")

    def test_waits_through_running(self, ctx, fake_engine):
        fake_engine.lengths["a.wav"] = 12.0
        fake_engine.statuses.extend(["running", "running"])

        MeasurementPass(ctx).measure(["a.wav"])

        assert fake_engine.verbs.count("engine-status") == 3

    def test_empty_input(self, ctx, fake_engine):
        assert MeasurementPass(ctx).measure([]) == []
        assert fake_engine.lines == []

    def test_zero_length_rejected(self, ctx, fake_engine):
        """An input the engine reports as empty fails the pass."""
        fake_engine.lengths["a.wav"] = 0.0

        with pytest.raises(MeasurementError):
            MeasurementPass(ctx).measure(["a.wav"])

    def test_stuck_engine(self, ctx, fake_engine):
        """Never leaving "running" hits the (one second) poll timeout."""
        fake_engine.default_status = "running"

        with pytest.raises(EngineStuck):
            MeasurementPass(ctx).measure(["a.wav"])


class TestHeaderDurations:
    """Test header-based durations via mutagen."""

    def test_reads_lengths(self):
        audio = MagicMock()
        audio.info.length = 212.5
        with patch("ecaradio.analyze.measure.MutagenFile", return_value=audio):
            assert header_durations(["a.mp3", "b.mp3"]) == [212.5, 212.5]

    def test_unrecognised_file(self):
        with patch("ecaradio.analyze.measure.MutagenFile", return_value=None):
            with pytest.raises(MeasurementError):
                header_durations(["notes.txt"])

    def test_unreadable_file(self):
        with patch("ecaradio.analyze.measure.MutagenFile", side_effect=OSError("gone")):
            with pytest.raises(MeasurementError, match="gone"):
                header_durations(["missing.mp3"])
