"""
Unit tests for configuration loading and validation.
"""

import copy

import pytest

from ecaradio.config import Config
from ecaradio.errors import ConfigurationError


def _data(**overrides):
    data = copy.deepcopy(Config.DEFAULT_CONFIG)
    for dotted, value in overrides.items():
        section, param = dotted.split("__")
        data[section][param] = value
    return data


class TestValidation:
    """Test bounds and type checks."""

    def test_defaults_are_valid(self):
        config = Config.defaults()

        assert config.get("render", "crossfade_duration_seconds") == 10.0
        assert config["engine"]["command"] == ["ecasound", "-c", "-d:256"]

    def test_defaults_not_shared(self):
        config = Config.defaults()
        config["render"]["crossfade_duration_seconds"] = 3.0

        assert Config.DEFAULT_CONFIG["render"]["crossfade_duration_seconds"] == 10.0

    def test_crossfade_out_of_bounds(self):
        with pytest.raises(ConfigurationError, match="crossfade_duration_seconds"):
            Config(_data(render__crossfade_duration_seconds=0.0))

    def test_bed_amplitude_out_of_bounds(self):
        with pytest.raises(ConfigurationError):
            Config(_data(render__static_bed_amplitude_pct=150.0))

    def test_non_numeric(self):
        with pytest.raises(ConfigurationError, match="not a number"):
            Config(_data(engine__poll_backoff="fast"))

    def test_bool_is_not_a_number(self):
        with pytest.raises(ConfigurationError):
            Config(_data(split__channel_index=True))

    def test_empty_engine_command(self):
        with pytest.raises(ConfigurationError, match="non-empty list"):
            Config(_data(engine__command=[]))

    def test_max_poll_below_poll(self):
        with pytest.raises(ConfigurationError):
            Config(_data(engine__poll_interval_seconds=2.0, engine__max_poll_interval_seconds=1.0))

    def test_missing_section_filled(self):
        data = _data()
        del data["analysis"]

        config = Config(data)

        assert config.get("analysis", "hop_size") == 1024

    def test_missing_param_filled(self):
        data = _data()
        del data["render"]["bed_jitter_seconds"]

        assert Config(data).get("render", "bed_jitter_seconds") == 40.0


class TestLoad:
    """Test TOML loading."""

    def test_load_file(self, tmp_path):
        path = tmp_path / "ecaradio.toml"
        path.write_text('[render]\ncrossfade_duration_seconds = 6.0\n')

        config = Config.load(str(path))

        assert config.get("render", "crossfade_duration_seconds") == 6.0
        assert config.get("render", "audio_format") == "f32_le,2,44100"

    def test_missing_file_gives_defaults(self, tmp_path):
        config = Config.load(str(tmp_path / "nope.toml"))

        assert config.data == Config.DEFAULT_CONFIG

    def test_env_var(self, tmp_path, monkeypatch):
        path = tmp_path / "env.toml"
        path.write_text('[split]\nchannel_index = 2\n')
        monkeypatch.setenv("ECARADIO_CONFIG_PATH", str(path))

        assert Config.load().get("split", "channel_index") == 2

    def test_bad_toml(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[render\n")

        with pytest.raises(ConfigurationError):
            Config.load(str(path))

    def test_path_expands_user(self, monkeypatch, tmp_path):
        monkeypatch.setenv("HOME", str(tmp_path))

        assert Config.defaults().path("render", "work_dir") == tmp_path / ".cache" / "ecaradio" / "ewf"
