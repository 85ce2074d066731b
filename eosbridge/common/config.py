import copy
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Optional, Union
from typing_extensions import TypedDict

logger = logging.getLogger(__name__)

APP_DIR_NAME = "eos-bridge"


def get_app_data_dir() -> Path:
    """Return the per-user application data directory.

    ``%APPDATA%\\eos-bridge`` on Windows, ``~/.eos-bridge`` elsewhere.
    """
    if sys.platform == "win32":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / APP_DIR_NAME
        return Path.home() / "AppData" / "Roaming" / APP_DIR_NAME
    return Path.home() / f".{APP_DIR_NAME}"


class AppConfig(TypedDict):
    """Type definition for application settings."""

    fader_profile_id: Optional[Union[str, int]]
    autostart: bool


class EosConfig(TypedDict):
    """Type definition for the console connection."""

    active: bool
    address: str
    port: int
    listen_port: int


class MidiConfig(TypedDict):
    """Type definition for the MIDI input."""

    active: bool
    device: str
    channel: int


class ConfigData(TypedDict):
    """Type definition for the complete configuration structure."""

    app: AppConfig
    eos: EosConfig
    midi: MidiConfig


class ConfigManager:
    """Handles loading and saving the bridge configuration."""

    DEFAULT_CONFIG: ConfigData = {
        "app": {
            "fader_profile_id": None,
            "autostart": False,
        },
        "eos": {
            "active": True,
            "address": "127.0.0.1",
            "port": 8000,
            "listen_port": 8001,
        },
        "midi": {
            "active": True,
            "device": "",
            "channel": 0,
        },
    }

    def __init__(self, config_file: Optional[Path] = None):
        self.config_file = config_file or get_app_data_dir() / "config.json"
        self.data = self._load_or_create_config()

    def _load_or_create_config(self) -> ConfigData:
        """Load config from file or create default if it doesn't exist."""
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    config_data = json.load(f)

                if not isinstance(config_data, dict):
                    raise ValueError("top level is not an object")

                logger.info(f"Loaded config from {self.config_file}")

                # Merge with defaults to ensure all keys exist
                merged_config = self._deep_merge_config(
                    self.DEFAULT_CONFIG, config_data
                )
                self._restore_invalid_sections(merged_config)

                if merged_config != config_data:
                    self._save_config(merged_config)
                    logger.info("Updated config file with missing default values")

                return merged_config

            except (json.JSONDecodeError, ValueError, IOError) as e:
                logger.error(f"Error loading config from {self.config_file}: {e}")
                logger.info("Creating new config file with defaults")

        config_data = copy.deepcopy(self.DEFAULT_CONFIG)
        self._save_config(config_data)
        logger.info(f"Created default config file at {self.config_file}")
        return config_data

    def _save_config(self, config_data: ConfigData) -> None:
        """Save config data to file."""
        try:
            self.config_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(config_data, f, indent=2, sort_keys=True)
        except IOError as e:
            logger.error(f"Error saving config to {self.config_file}: {e}")

    def _deep_merge_config(self, default_config: Any, user_config: Any) -> Any:
        """Deep merge user config with defaults, ensuring all default keys exist."""
        merged = copy.deepcopy(default_config)

        for key, value in user_config.items():
            if (
                key in merged
                and isinstance(merged[key], dict)
                and isinstance(value, dict)
            ):
                merged[key] = self._deep_merge_config(merged[key], value)
            else:
                merged[key] = value
        return merged

    def _restore_invalid_sections(self, config_data: Any) -> None:
        """Replace any top-level section that is not an object with its defaults."""
        for section, defaults in self.DEFAULT_CONFIG.items():
            if not isinstance(config_data.get(section), dict):
                logger.warning(
                    f"Config section '{section}' is not an object, using defaults"
                )
                config_data[section] = copy.deepcopy(defaults)

    def reload_config(self) -> None:
        """Reload configuration from file."""
        self.data = self._load_or_create_config()

    def save(self) -> None:
        """Save current configuration to file."""
        self._save_config(self.data)
        logger.info(f"Saved configuration to {self.config_file}")

    def get_fader_profile_id(self) -> Optional[Union[str, int]]:
        return self.data["app"].get("fader_profile_id")

    def set_fader_profile_id(self, profile_id: Optional[Union[str, int]]) -> None:
        """Remember which fader profile is loaded at startup."""
        if self.data["app"].get("fader_profile_id") == profile_id:
            return
        self.data["app"]["fader_profile_id"] = profile_id
        self.save()

    def set_midi_device(self, device: str) -> None:
        self.data["midi"]["device"] = device
        self.save()

    def set_midi_active(self, active: bool) -> None:
        self.data["midi"]["active"] = active
        self.save()
        logger.info(f"MIDI input {'enabled' if active else 'disabled'} in configuration")

    def set_eos_active(self, active: bool) -> None:
        self.data["eos"]["active"] = active
        self.save()
        logger.info(f"Eos connection {'enabled' if active else 'disabled'} in configuration")
