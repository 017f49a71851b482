"""Configuration persistence using JSON format.

Stored at ~/.log_watcher/config.json. Missing keys are filled from
DEFAULT_CONFIG, so older files keep working when new settings are added.
"""

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from .constants import (
    DEFAULT_ADDRESS,
    DEFAULT_MAX_EVENTS,
    DEFAULT_TOPIC,
    POLL_TIMEOUT,
    RECONNECT_INITIAL_DELAY,
    RECONNECT_MAX_DELAY,
    RECONNECT_MULTIPLIER,
    WINDOW_HEIGHT,
    WINDOW_WIDTH,
)

log = logging.getLogger(__name__)


# Default configuration schema
DEFAULT_CONFIG = {
    "version": "1.0",
    "broker": {
        "address": DEFAULT_ADDRESS,
        "topic": DEFAULT_TOPIC,
    },
    "ingestion": {
        "poll_timeout": POLL_TIMEOUT,  # seconds
        "ready_timeout": None,  # seconds, None = wait for the window
        "reconnect": True,
        "reconnect_initial_delay": RECONNECT_INITIAL_DELAY,
        "reconnect_max_delay": RECONNECT_MAX_DELAY,
        "reconnect_multiplier": RECONNECT_MULTIPLIER,
    },
    "display": {
        "max_events": DEFAULT_MAX_EVENTS,  # None = unbounded
    },
    "window": {
        "width": WINDOW_WIDTH,
        "height": WINDOW_HEIGHT,
    },
}


class ConfigManager:
    """Manages user configuration with JSON persistence."""

    def __init__(self, config_dir: Path | None = None) -> None:
        """Initialize config manager.

        Args:
            config_dir: Custom config directory. If None, uses ~/.log_watcher/
        """
        if config_dir is None:
            config_dir = Path.home() / ".log_watcher"
        self.config_dir = config_dir
        self.config_file = config_dir / "config.json"
        self._config: dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        """Load config from disk or create default."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

        if self.config_file.exists():
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    loaded = json.load(f)
                if not isinstance(loaded, dict):
                    raise ValueError("top level is not an object")
                self._config = self._merge_defaults(loaded)
            except (json.JSONDecodeError, OSError, ValueError) as e:
                log.warning("Failed to load config %s: %s. Using defaults.", self.config_file, e)
                self._config = copy.deepcopy(DEFAULT_CONFIG)
        else:
            self._config = copy.deepcopy(DEFAULT_CONFIG)
            self._save()

    def _merge_defaults(self, loaded: dict) -> dict:
        """Recursively merge loaded config with defaults."""
        def deep_merge(base: dict, override: dict) -> dict:
            merged = copy.deepcopy(base)
            for key, value in override.items():
                if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
                    merged[key] = deep_merge(merged[key], value)
                else:
                    merged[key] = value
            return merged

        return deep_merge(DEFAULT_CONFIG, loaded)

    def _save(self) -> None:
        """Write config to disk."""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self._config, f, indent=2, ensure_ascii=False)
        except OSError as e:
            log.warning("Failed to save config %s: %s", self.config_file, e)

    def get(self, key_path: str, default: Any = None) -> Any:
        """Get config value using dot notation.

        Example:
            config.get("broker.address")
            config.get("display.max_events", 10000)
        """
        keys = key_path.split(".")
        value = self._config
        for key in keys:
            if isinstance(value, dict):
                value = value.get(key)
                if value is None:
                    return default
            else:
                return default
        return value

    def set(self, key_path: str, value: Any) -> None:
        """Set config value using dot notation and save.

        Example:
            config.set("broker.topic", "audit")
        """
        keys = key_path.split(".")
        target = self._config
        for key in keys[:-1]:
            if key not in target or not isinstance(target[key], dict):
                target[key] = {}
            target = target[key]
        target[keys[-1]] = value
        self._save()

    def get_all(self) -> dict[str, Any]:
        """Get entire config dictionary (for debugging)."""
        return copy.deepcopy(self._config)

    def reset(self) -> None:
        """Reset config to defaults."""
        self._config = copy.deepcopy(DEFAULT_CONFIG)
        self._save()


# Global singleton instance
_global_config: ConfigManager | None = None


def get_config(config_dir: Path | None = None) -> ConfigManager:
    """Get global config instance (singleton pattern).

    ``config_dir`` only takes effect on the first call.
    """
    global _global_config
    if _global_config is None:
        _global_config = ConfigManager(config_dir)
    return _global_config
