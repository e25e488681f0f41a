"""
Configuration management for ecaradio.

Loads a TOML config and validates every tunable parameter against fixed
bounds at startup. Missing sections and parameters fall back to defaults.
"""

import copy
import os
from pathlib import Path
from typing import Dict, Any, Optional
import toml
import logging

from ecaradio.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Config:
    """Configuration loader and validator."""

    PARAM_BOUNDS = {
        "engine": {
            "command": None,  # List type
            "settle_delay_seconds": (0.0, 10.0),
            "poll_interval_seconds": (0.01, 5.0),
            "max_poll_interval_seconds": (0.01, 30.0),
            "poll_backoff": (1.0, 4.0),
            "poll_timeout_seconds": (1.0, 86400.0),
        },
        "render": {
            "crossfade_duration_seconds": (0.5, 60.0),
            "static_bed_amplitude_pct": (0.0, 100.0),
            "bed_jitter_seconds": (0.0, 600.0),
            "min_output_bytes": (0, 1024 * 1024 * 1024),
        },
        "split": {
            "channel_index": (1, 64),
        },
        "analysis": {
            "hop_size": (128, 8192),
            "silence_threshold_db": (-120.0, 0.0),
            "min_silence_seconds": (0.05, 30.0),
        },
    }

    DEFAULT_CONFIG = {
        "config_version": "1.0",
        "engine": {
            "command": ["ecasound", "-c", "-d:256"],
            "client_name": "ecasound",
            "settle_delay_seconds": 0.5,
            "poll_interval_seconds": 0.1,
            "max_poll_interval_seconds": 1.0,
            "poll_backoff": 1.5,
            "poll_timeout_seconds": 3600.0,
        },
        "render": {
            "crossfade_duration_seconds": 10.0,
            "audio_format": "f32_le,2,44100",
            "static_bed_source": "",
            "static_bed_amplitude_pct": 30.0,
            "bed_jitter_seconds": 40.0,
            "work_dir": "~/.cache/ecaradio/ewf",
            "min_output_bytes": 1024,
        },
        "session": {
            "root": "~/ecaradio/sessions",
            "audio_format": "s16_le,1,44100",
        },
        "split": {
            "channel_index": 1,
            "output_template": "{stem}-{index:02d}.wav",
        },
        "analysis": {
            "hop_size": 1024,
            "silence_threshold_db": -50.0,
            "min_silence_seconds": 1.5,
        },
    }

    def __init__(self, config_dict: Dict[str, Any]):
        """Initialize config from dictionary."""
        self.data = config_dict
        self._validate()

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """
        Load config from TOML file.

        Args:
            config_path: Path to ecaradio.toml. If None, uses ECARADIO_CONFIG_PATH
                        env var or defaults to configs/ecaradio.toml.

        Returns:
            Config instance.

        Raises:
            ConfigurationError: If config is invalid.
        """
        if config_path is None:
            config_path = os.getenv("ECARADIO_CONFIG_PATH", "configs/ecaradio.toml")

        config_path = Path(config_path)

        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}. Using defaults.")
            return cls.defaults()

        try:
            config_dict = toml.load(config_path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigurationError(f"Failed to load config from {config_path}: {e}")

        logger.info(f"Loaded config from {config_path}")
        return cls(config_dict)

    @classmethod
    def defaults(cls) -> "Config":
        """Config built purely from DEFAULT_CONFIG."""
        return cls(copy.deepcopy(cls.DEFAULT_CONFIG))

    def _validate(self) -> None:
        """
        Fill missing values from defaults and check numeric bounds.

        Raises:
            ConfigurationError: If any parameter is out of bounds.
        """
        for section, defaults in self.DEFAULT_CONFIG.items():
            if not isinstance(defaults, dict):
                self.data.setdefault(section, defaults)
                continue

            if section not in self.data:
                logger.warning(f"Missing config section: {section}. Using defaults.")
                self.data[section] = copy.deepcopy(defaults)
                continue

            section_data = self.data[section]
            for param, default_val in defaults.items():
                if param not in section_data:
                    logger.warning(f"Missing param {section}.{param}. Using default: {default_val}")
                    section_data[param] = copy.deepcopy(default_val)

        for section, params in self.PARAM_BOUNDS.items():
            section_data = self.data[section]

            for param, bounds in params.items():
                value = section_data[param]

                # Handle list types (no bounds check needed)
                if bounds is None:
                    if not isinstance(value, list) or not value:
                        raise ConfigurationError(
                            f"Parameter {section}.{param} must be a non-empty list"
                        )
                    continue

                min_val, max_val = bounds
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ConfigurationError(
                        f"Parameter {section}.{param}={value!r} is not a number"
                    )
                if not (min_val <= value <= max_val):
                    raise ConfigurationError(
                        f"Parameter {section}.{param}={value} out of bounds "
                        f"[{min_val}, {max_val}]"
                    )

        engine = self.data["engine"]
        if engine["max_poll_interval_seconds"] < engine["poll_interval_seconds"]:
            raise ConfigurationError(
                "engine.max_poll_interval_seconds must not be below "
                "engine.poll_interval_seconds"
            )

        logger.debug("Config validation passed")

    def get(self, section: str, param: str, default: Any = None) -> Any:
        """Get a config parameter safely."""
        return self.data.get(section, {}).get(param, default)

    def path(self, section: str, param: str) -> Path:
        """Get a config parameter as an expanded filesystem path."""
        return Path(self.get(section, param)).expanduser()

    def __getitem__(self, section: str) -> Dict[str, Any]:
        """Allow dict-like access: config["render"]"""
        return self.data.get(section, {})

    def __repr__(self) -> str:
        version = self.data.get('config_version', 'unknown')
        return f"Config(version={version})"
