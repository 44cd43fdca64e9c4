"""Configuration management for Live Pitch components."""

from typing import Dict, Any, Optional
import copy
import json
import os
from pathlib import Path

from ..logger import get_logger

logger = get_logger(__name__)

# Default configurations
DEFAULT_CONFIGS: Dict[str, Dict[str, Any]] = {
    "pitch_estimator": {
        "power_threshold": 0.1,
        "clarity_threshold": 0.7,
    },
    "audio_input": {
        "device_id": None,  # System default input
        "sample_rate": None,  # Device default rate
        "frames_per_buffer": 1024,
    },
}


class ConfigManager:
    """Configuration manager for Live Pitch components."""

    def __init__(self, config_dir: Optional[str] = None):
        """Initialize the configuration manager.

        Args:
            config_dir: Directory to store configuration files, or None to use default
        """
        if config_dir is None:
            # Use ~/.config/live_pitch by default
            home = os.path.expanduser("~")
            config_dir = os.path.join(home, ".config", "live_pitch")

        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        self.default_configs = copy.deepcopy(DEFAULT_CONFIGS)

        # Load existing configurations or create default ones
        self.configs: Dict[str, Dict[str, Any]] = {}
        for config_name, default_config in self.default_configs.items():
            self.configs[config_name] = self.load_config(config_name, default_config)

    def load_config(self, name: str, default_config: Dict[str, Any]) -> Dict[str, Any]:
        """Load configuration from file or create default.

        Unknown keys in the file are dropped so that a stale file cannot pass
        unexpected arguments to component constructors.

        Args:
            name: Configuration name
            default_config: Default configuration to use if file doesn't exist

        Returns:
            Configuration dictionary
        """
        config_file = self.config_dir / f"{name}.json"

        if not config_file.exists():
            # Create default configuration
            config = default_config.copy()
            self.save_config(name, config)
            return config

        try:
            with open(config_file, "r") as f:
                stored = json.load(f)
            if not isinstance(stored, dict):
                raise ValueError("top-level value is not an object")
        except (OSError, ValueError) as e:
            logger.error(f"Error loading configuration from {config_file}: {e}")
            return default_config.copy()

        logger.info(f"Loaded configuration from {config_file}")
        config = default_config.copy()
        for key, value in stored.items():
            if key in default_config:
                config[key] = value
            else:
                logger.warning(f"Ignoring unknown key '{key}' in {config_file}")
        return config

    def save_config(self, name: str, config: Dict[str, Any]) -> bool:
        """Save configuration to file.

        Args:
            name: Configuration name
            config: Configuration dictionary

        Returns:
            True if saved successfully, False otherwise
        """
        config_file = self.config_dir / f"{name}.json"

        try:
            with open(config_file, "w") as f:
                json.dump(config, f, indent=2)
            logger.info(f"Saved configuration to {config_file}")
            return True
        except OSError as e:
            logger.error(f"Error saving configuration to {config_file}: {e}")
            return False

    def get_config(self, name: str) -> Dict[str, Any]:
        """Get configuration by name.

        Args:
            name: Configuration name

        Returns:
            A copy of the configuration dictionary
        """
        return self.configs.get(name, {}).copy()

    def update_config(self, name: str, updates: Dict[str, Any]) -> bool:
        """Update configuration and save to file.

        Args:
            name: Configuration name
            updates: Dictionary of updates to apply

        Returns:
            True if updated and saved successfully, False otherwise
        """
        if name not in self.configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        unknown = set(updates) - set(self.default_configs[name])
        if unknown:
            logger.error(f"Unknown keys for {name}: {sorted(unknown)}")
            return False

        self.configs[name].update(updates)
        return self.save_config(name, self.configs[name])

    def reset_config(self, name: str) -> bool:
        """Reset configuration to default.

        Args:
            name: Configuration name

        Returns:
            True if reset successfully, False otherwise
        """
        if name not in self.default_configs:
            logger.error(f"Unknown configuration: {name}")
            return False

        self.configs[name] = self.default_configs[name].copy()
        return self.save_config(name, self.configs[name])
