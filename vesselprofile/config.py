"""Configuration module for VesselProfile.

This module handles loading and validating configuration from YAML files and
builds the explicit ``ProfileLimits`` value handed to the parser and cleaner.
"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, NamedTuple, Optional, Union

import yaml

# Set up logging
logger = logging.getLogger(__name__)


class ProfileLimits(NamedTuple):
    """Point and sampling limits for one parse of a profile source.

    ``time_budget_ms`` of ``None`` disables the interpreter's wall-clock guard.
    """

    point_cap: int = 400
    target_points: int = 220
    min_curve_samples: int = 4
    max_curve_samples: int = 40
    time_budget_ms: Optional[float] = 50.0
    arc_segment_length: float = 10.0
    interpreter_cap_factor: int = 3

    @property
    def interpreter_point_ceiling(self) -> int:
        return self.point_cap * self.interpreter_cap_factor

    @classmethod
    def preset(cls, name: str) -> "ProfileLimits":
        """Build one of the named presets ("default", "safe", "editor").

        Args:
            name: Preset name

        Returns:
            ProfileLimits for that preset
        """
        try:
            values = Config.DEFAULT_CONFIG["presets"][name]
        except KeyError:
            raise ValueError(f"Unknown profile preset: {name}") from None
        return cls(**values)


class Config:
    """Configuration handler for VesselProfile."""

    # Default configuration values
    DEFAULT_CONFIG = {
        "profile": {
            "preset": "default",
            "dedupe_epsilon": 0.01,
            "fallback_epsilon": 0.0001,
            "collinear_tolerance": 0.05,
            "resample_target": None,  # points, None keeps the cleaned profile
        },
        "presets": {
            "default": {
                "point_cap": 400,
                "target_points": 220,
                "min_curve_samples": 4,
                "max_curve_samples": 40,
                "time_budget_ms": 50.0,
            },
            "safe": {
                "point_cap": 300,
                "target_points": 180,
                "min_curve_samples": 4,
                "max_curve_samples": 16,
                "time_budget_ms": 16.0,
            },
            # Hand-drawn curves from the editor: denser sampling, no time guard
            "editor": {
                "point_cap": 4000,
                "target_points": 220,
                "min_curve_samples": 10,
                "max_curve_samples": 120,
                "time_budget_ms": None,
            },
        },
        "svg": {
            "apply_transforms": True,
        },
        "editor": {
            "lock_right": True,
            "mirror_preview": True,
            "history_limit": 100,
            "drag_threshold": 1.5,  # canvas units
            "hit_tolerance": 10.0,  # canvas units
            "smooth_factor": 0.3,
            "screen_width": 800,  # px
            "screen_height": 600,  # px
        },
    }

    LIMIT_FIELDS = ("point_cap", "target_points", "min_curve_samples", "max_curve_samples")

    def __init__(self, config_file: Optional[Union[str, Path]] = None):
        """Initialize configuration.

        Args:
            config_file: Path to YAML configuration file (optional)
        """
        self.config = copy.deepcopy(self.DEFAULT_CONFIG)

        if config_file:
            self.load_config(config_file)

    def load_config(self, config_file: Union[str, Path]) -> bool:
        """Load configuration from YAML file.

        Args:
            config_file: Path to YAML configuration file

        Returns:
            True if config was loaded successfully, False otherwise
        """
        config_path = Path(config_file)

        if not config_path.exists():
            logger.error(f"Configuration file not found: {config_path}")
            return False

        try:
            with open(config_path, "r") as f:
                user_config = yaml.safe_load(f)

            if not user_config:
                logger.warning(f"Empty configuration file: {config_path}")
                return False

            self._merge_config(self.config, user_config)
            logger.info(f"Loaded configuration from {config_path}")
            return True

        except yaml.YAMLError as e:
            logger.error(f"Error parsing YAML configuration: {e}")
            return False
        except OSError as e:
            logger.error(f"Error loading configuration: {e}")
            return False

    def _merge_config(self, target: Dict, source: Dict) -> None:
        """Recursively merge source dict into target dict.

        Args:
            target: Target dictionary to merge into
            source: Source dictionary to merge from
        """
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_config(target[key], value)
            else:
                target[key] = value

    def get(self, path: str, default: Any = None) -> Any:
        """Get configuration value using dot notation path.

        Args:
            path: Configuration path (e.g., "presets.safe.point_cap")
            default: Default value if path not found

        Returns:
            Configuration value or default
        """
        parts = path.split(".")
        value = self.config

        try:
            for part in parts:
                value = value[part]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, path: str, value: Any) -> None:
        """Set configuration value using dot notation path.

        Args:
            path: Configuration path (e.g., "editor.lock_right")
            value: Value to set
        """
        parts = path.split(".")
        config = self.config

        for part in parts[:-1]:
            if part not in config or not isinstance(config[part], dict):
                config[part] = {}
            config = config[part]

        config[parts[-1]] = value

    def get_limits(self, preset: Optional[str] = None) -> ProfileLimits:
        """Build the ProfileLimits for a preset, honouring user overrides.

        Args:
            preset: Preset name (defaults to "profile.preset")

        Returns:
            ProfileLimits value
        """
        name = preset or self.get("profile.preset", "default")
        values = self.get(f"presets.{name}")
        if not isinstance(values, dict):
            raise ValueError(f"Unknown profile preset: {name}")

        known = set(ProfileLimits._fields)
        unknown = set(values) - known
        if unknown:
            logger.warning(f"Ignoring unknown keys in preset '{name}': {sorted(unknown)}")
        return ProfileLimits(**{k: v for k, v in values.items() if k in known})

    def save(self, config_file: Union[str, Path]) -> bool:
        """Save configuration to YAML file.

        Args:
            config_file: Path to YAML configuration file

        Returns:
            True if config was saved successfully, False otherwise
        """
        config_path = Path(config_file)

        try:
            os.makedirs(config_path.parent, exist_ok=True)

            with open(config_path, "w") as f:
                yaml.dump(self.config, f, default_flow_style=False, sort_keys=False)

            logger.info(f"Saved configuration to {config_path}")
            return True

        except OSError as e:
            logger.error(f"Error saving configuration: {e}")
            return False

    def validate(self) -> bool:
        """Validate configuration.

        Returns:
            True if configuration is valid, False otherwise
        """
        required_sections = ["profile", "presets", "svg", "editor"]
        for section in required_sections:
            if section not in self.config:
                logger.error(f"Missing required configuration section: {section}")
                return False

        presets = self.config.get("presets", {})
        if not presets:
            logger.error("No profile presets configured")
            return False

        for name, values in presets.items():
            for field in self.LIMIT_FIELDS:
                value = values.get(field)
                if not isinstance(value, int) or value < 1:
                    logger.error(f"Preset '{name}' has invalid {field}: {value}")
                    return False
            if values["min_curve_samples"] > values["max_curve_samples"]:
                logger.error(f"Preset '{name}' has min_curve_samples > max_curve_samples")
                return False
            if values["target_points"] < 3:
                logger.error(f"Preset '{name}' target_points must be at least 3")
                return False

        if self.get("profile.preset") not in presets:
            logger.error(f"Unknown default preset: {self.get('profile.preset')}")
            return False

        history_limit = self.get("editor.history_limit")
        if not isinstance(history_limit, int) or history_limit < 1:
            logger.error("Editor history limit must be a positive integer")
            return False

        return True


def load_config(config_file: Optional[Union[str, Path]] = None) -> Config:
    """Load configuration from file.

    Args:
        config_file: Path to YAML configuration file (optional)

    Returns:
        Config object
    """
    return Config(config_file)
