"""
Tests for the command-line entry point.
"""

import json
from unittest.mock import patch

import pytest

from ecaradio import cli


@pytest.fixture
def no_config(tmp_path):
    return ["--config", str(tmp_path / "missing.toml")]


class TestPlanCommand:
    """Test the JSON timeline dump."""

    def test_plan_with_lengths(self, no_config, capsys):
        code = cli.main(no_config + ["plan", "a.wav", "b.wav", "--lengths", "100,80"])

        rows = json.loads(capsys.readouterr().out)
        assert code == 0
        assert [row["start"] for row in rows] == [0.0, 90.0]
        assert rows[1]["fade_out"] == [160.0, 170.0]
        assert "bed" not in rows[0]

    def test_crossfade_override(self, no_config, capsys):
        cli.main(no_config + ["plan", "a.wav", "b.wav", "--lengths", "100,80", "--crossfade", "4"])

        rows = json.loads(capsys.readouterr().out)
        assert rows[0]["fade_in"] == [0.0, 4.0]

    def test_static_bed_with_seed(self, no_config, capsys):
        args = ["plan", "a.wav", "--lengths", "100", "--static-bed", "static.wav",
                "--bed-amplitude", "20", "--seed", "3"]
        cli.main(no_config + args)
        first = json.loads(capsys.readouterr().out)
        cli.main(no_config + args)
        second = json.loads(capsys.readouterr().out)

        assert first == second
        assert first[0]["bed"]["offset"] == 90.0
        assert first[0]["bed"]["controller"].endswith("90,0,92.5,0.2,97.5,0.2,100,0")

    def test_bad_input_returns_1(self, no_config, capsys):
        code = cli.main(no_config + ["plan", "a.wav", "b.wav", "--lengths", "100"])

        assert code == 1
        assert capsys.readouterr().out == ""


class TestOtherCommands:
    """Test measure and markers wiring."""

    def test_measure_from_headers(self, no_config, capsys):
        with patch("ecaradio.cli.header_durations", return_value=[12.5]):
            code = cli.main(no_config + ["measure", "--from-headers", "a.mp3"])

        assert code == 0
        assert capsys.readouterr().out == "12.500\ta.mp3\n"

    def test_markers(self, no_config, capsys):
        with patch("ecaradio.cli.detect_markers", return_value=[0.0, 12.5, 30.0]):
            cli.main(no_config + ["markers", "show.wav"])

        assert capsys.readouterr().out == "0,12.5,30\n"

    def test_render_filesystem_error_returns_1(self, no_config, tmp_path, capsys):
        with patch("ecaradio.cli.RadioRenderer") as renderer:
            renderer.return_value.render.side_effect = PermissionError("read-only output dir")
            code = cli.main(no_config + ["render", "a.wav", "--lengths", "100",
                                         "-o", str(tmp_path / "mix.wav")])

        assert code == 1
        assert capsys.readouterr().out == ""

    def test_no_command(self):
        with pytest.raises(SystemExit):
            cli.main([])

    def test_parser_lists_subcommands(self):
        help_text = cli.build_parser().format_help()

        for name in ("render", "plan", "measure", "split", "markers", "record"):
            assert name in help_text
