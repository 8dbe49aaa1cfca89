"""Unit tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from trscrape.config.config import (
    ConfigManager,
    get_config,
    init_config,
    reset_config,
    set_config,
)
from trscrape.models import Config, LogLevel, NetworkConfig
from trscrape.utils.exceptions import ConfigurationError

pytestmark = [pytest.mark.unit, pytest.mark.config]


def write_config(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestDefaults:
    """Test default values."""

    def test_defaults(self):
        """Test defaults without any file or environment."""
        config = ConfigManager().config
        assert config.network.timeout == 30.0
        assert config.network.user_agent.startswith("trscrape/")
        assert config.observability.log_level is LogLevel.WARNING
        assert config.observability.log_file is None

    def test_timeout_must_be_positive(self):
        """Test the model rejects non-positive timeouts."""
        with pytest.raises(ValueError):
            NetworkConfig(timeout=0)

    def test_blank_user_agent(self):
        """Test the model rejects blank user agents."""
        with pytest.raises(ValueError, match="User agent"):
            NetworkConfig(user_agent="  ")


class TestConfigFile:
    """Test TOML config files."""

    def test_explicit_file(self, tmp_path):
        """Test values from an explicit file."""
        path = write_config(
            tmp_path / "custom.toml",
            '[network]\ntimeout = 5.5\n\n[observability]\nlog_level = "DEBUG"\n',
        )
        manager = ConfigManager(path)
        assert manager.config_file == path
        assert manager.config.network.timeout == 5.5
        assert manager.config.observability.log_level is LogLevel.DEBUG

    def test_found_in_working_directory(self, tmp_path):
        """Test trscrape.toml in the working directory is picked up."""
        write_config(tmp_path / "trscrape.toml", "[network]\ntimeout = 7\n")
        assert ConfigManager().config.network.timeout == 7.0

    def test_found_in_home_config(self, tmp_path):
        """Test the XDG style location under the home directory."""
        write_config(
            tmp_path / "home" / ".config" / "trscrape" / "trscrape.toml",
            "[network]\ntimeout = 8\n",
        )
        assert ConfigManager().config.network.timeout == 8.0

    def test_missing_explicit_file(self, tmp_path):
        """Test a missing explicit file is an error."""
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(tmp_path / "nope.toml")

    def test_malformed_toml(self, tmp_path):
        """Test unparseable TOML is an error."""
        path = write_config(tmp_path / "bad.toml", "[network\ntimeout = \n")
        with pytest.raises(ConfigurationError, match="Failed to load"):
            ConfigManager(path)

    def test_invalid_value(self, tmp_path):
        """Test values failing validation are configuration errors."""
        path = write_config(tmp_path / "bad.toml", "[network]\ntimeout = -3\n")
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            ConfigManager(path)


class TestEnvironment:
    """Test environment overrides."""

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        """Test environment values win over the file."""
        path = write_config(tmp_path / "c.toml", "[network]\ntimeout = 5\n")
        monkeypatch.setenv("TRSCRAPE_TIMEOUT", "9.5")
        monkeypatch.setenv("TRSCRAPE_LOG_LEVEL", "INFO")
        monkeypatch.setenv("TRSCRAPE_STRUCTURED_LOGGING", "yes")
        config = ConfigManager(path).config
        assert config.network.timeout == 9.5
        assert config.observability.log_level is LogLevel.INFO
        assert config.observability.structured_logging is True

    def test_string_values_kept_verbatim(self, monkeypatch):
        """Test string settings are not coerced to numbers or booleans."""
        monkeypatch.setenv("TRSCRAPE_USER_AGENT", "1")
        monkeypatch.setenv("TRSCRAPE_LOG_FILE", "logs/1.log")
        config = ConfigManager().config
        assert config.network.user_agent == "1"
        assert config.observability.log_file == "logs/1.log"

    @pytest.mark.parametrize(("raw", "expected"), [("1", 1.0), ("0", 0.0), ("2.5", 2.5)])
    def test_timeout_parsed_as_number(self, monkeypatch, raw, expected):
        """Test timeouts such as 1 and 0 are read as numbers, not booleans."""
        monkeypatch.setenv("TRSCRAPE_TIMEOUT", raw)
        value = ConfigManager.__new__(ConfigManager)._get_env_config()["network"]["timeout"]
        assert type(value) is float
        assert value == expected

    def test_zero_timeout_rejected(self, monkeypatch):
        """Test a zero timeout from the environment fails validation."""
        monkeypatch.setenv("TRSCRAPE_TIMEOUT", "0")
        with pytest.raises(ConfigurationError, match="timeout"):
            ConfigManager()

    def test_invalid_env_value(self, monkeypatch):
        """Test invalid environment values are configuration errors."""
        monkeypatch.setenv("TRSCRAPE_TIMEOUT", "soon")
        with pytest.raises(ConfigurationError):
            ConfigManager()


class TestGlobalConfig:
    """Test the module level configuration accessors."""

    def test_set_and_get(self):
        """Test set_config replaces the global configuration."""
        config = Config(network=NetworkConfig(timeout=3))
        set_config(config)
        assert get_config() is config

    def test_init_config(self, tmp_path):
        """Test init_config loads and installs a manager."""
        path = write_config(tmp_path / "c.toml", "[network]\ntimeout = 4\n")
        manager = init_config(path)
        assert get_config() is manager.config
        assert get_config().network.timeout == 4.0

    def test_reset_reloads(self, monkeypatch):
        """Test reset_config makes the next access reload."""
        reset_config()
        monkeypatch.setenv("TRSCRAPE_TIMEOUT", "11")
        assert get_config().network.timeout == 11.0
