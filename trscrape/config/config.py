"""Configuration management for trscrape.

Configuration is loaded hierarchically: defaults → config file → environment
→ command line flags.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import toml

from trscrape.models import Config
from trscrape.utils.exceptions import ConfigurationError

# Global configuration instance
_config_manager: ConfigManager | None = None

CONFIG_FILE_NAME = "trscrape.toml"

ENV_MAPPINGS: dict[str, str] = {
    "TRSCRAPE_TIMEOUT": "network.timeout",
    "TRSCRAPE_USER_AGENT": "network.user_agent",
    "TRSCRAPE_LOG_LEVEL": "observability.log_level",
    "TRSCRAPE_LOG_FILE": "observability.log_file",
    "TRSCRAPE_STRUCTURED_LOGGING": "observability.structured_logging",
    "TRSCRAPE_LOG_CORRELATION_ID": "observability.log_correlation_id",
}

_STRING_PATHS = frozenset(
    {
        "network.user_agent",
        "observability.log_level",
        "observability.log_file",
    }
)

_NUMERIC_PATHS = frozenset({"network.timeout"})


class ConfigManager:
    """Loads and validates configuration."""

    def __init__(self, config_file: str | Path | None = None):
        """Initialize configuration manager.

        Args:
            config_file: Path to TOML config file. If None, searches for trscrape.toml

        """
        self.config_file = self._find_config_file(config_file)
        self.config = self._load_config()

    def _find_config_file(
        self,
        config_file: str | Path | None,
    ) -> Path | None:
        """Find configuration file in standard locations."""
        if config_file:
            return Path(config_file)

        search_paths = [
            Path.cwd() / CONFIG_FILE_NAME,
            Path.home() / ".config" / "trscrape" / CONFIG_FILE_NAME,
            Path.home() / f".{CONFIG_FILE_NAME}",
        ]

        for path in search_paths:
            if path.exists():
                return path

        return None

    def _load_config(self) -> Config:
        """Load configuration from file and environment."""
        config_data: dict[str, Any] = {}

        if self.config_file is not None:
            if not self.config_file.exists():
                msg = f"Config file not found: {self.config_file}"
                raise ConfigurationError(msg)
            try:
                with open(self.config_file, encoding="utf-8") as f:
                    config_data.update(toml.load(f))
            except (OSError, toml.TomlDecodeError) as e:
                msg = f"Failed to load config file {self.config_file}: {e}"
                raise ConfigurationError(msg) from e
            logging.getLogger(__name__).debug(
                "Loaded configuration from %s", self.config_file
            )

        env_config = self._get_env_config()
        config_data = self._merge_config(config_data, env_config)

        try:
            return Config(**config_data)
        except Exception as e:
            msg = f"Invalid configuration: {e}"
            raise ConfigurationError(msg) from e

    def _get_env_config(self) -> dict[str, Any]:
        """Get configuration from environment variables."""
        env_config: dict[str, Any] = {}

        def _parse_env_value(raw: str, path: str) -> bool | int | float | str:
            if path in _STRING_PATHS:
                return raw
            if path in _NUMERIC_PATHS:
                try:
                    return float(raw)
                except ValueError:
                    return raw
            low = raw.lower()
            if low in {"true", "1", "yes", "on"}:
                return True
            if low in {"false", "0", "no", "off"}:
                return False
            try:
                if "." in raw:
                    return float(raw)
                return int(raw)
            except ValueError:
                return raw

        def _set_nested(d: dict[str, Any], path: str, value: Any) -> None:
            parts = path.split(".")
            cur = d
            for p in parts[:-1]:
                cur = cur.setdefault(p, {})
            cur[parts[-1]] = value

        for env_name, cfg_path in ENV_MAPPINGS.items():
            raw = os.getenv(env_name)
            if raw is None:
                continue
            _set_nested(env_config, cfg_path, _parse_env_value(raw, cfg_path))

        return env_config

    def _merge_config(
        self,
        base: dict[str, Any],
        override: dict[str, Any],
    ) -> dict[str, Any]:
        """Merge configuration dictionaries recursively."""
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value

        return result


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager()
    return _config_manager.config


def init_config(config_file: str | Path | None = None) -> ConfigManager:
    """Initialize the global configuration manager."""
    global _config_manager
    _config_manager = ConfigManager(config_file)
    return _config_manager


def set_config(new_config: Config) -> None:
    """Replace the global configuration at runtime."""
    global _config_manager
    if _config_manager is None:
        _config_manager = ConfigManager.__new__(ConfigManager)
        _config_manager.config_file = None
    _config_manager.config = new_config


def reset_config() -> None:
    """Forget the global configuration so the next access reloads it."""
    global _config_manager
    _config_manager = None
