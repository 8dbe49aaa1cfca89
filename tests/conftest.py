"""Pytest configuration and shared fixtures for trscrape tests."""

from __future__ import annotations

import logging

import pytest

from trscrape.config.config import reset_config, set_config
from trscrape.models import Config


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("asyncio", "marks tests as async (deselect with '-m \"not asyncio\"')"),
        ("slow", "marks tests as slow (deselect with '-m \"not slow\"')"),
        ("integration", "marks tests as integration tests"),
        ("unit", "marks tests as unit tests"),
        ("core", "marks tests as core functionality tests"),
        ("tracker", "marks tests as tracker tests"),
        ("cli", "marks tests as CLI tests"),
        ("config", "marks tests as configuration tests"),
        ("observability", "marks tests as observability tests"),
        ("property", "marks tests as property-based tests"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch, tmp_path):
    """Keep user config files and TRSCRAPE_* variables out of tests."""
    for name in (
        "TRSCRAPE_TIMEOUT",
        "TRSCRAPE_USER_AGENT",
        "TRSCRAPE_LOG_LEVEL",
        "TRSCRAPE_LOG_FILE",
        "TRSCRAPE_STRUCTURED_LOGGING",
        "TRSCRAPE_LOG_CORRELATION_ID",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def default_config():
    """Start every test from the default configuration."""
    set_config(Config())
    yield
    reset_config()


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)

    # setup_logging detaches the package logger from the root logger
    package_logger = logging.getLogger("trscrape")
    package_logger.propagate = True
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def info_hash_hex():
    """Info hash used across tracker tests (SHA-1 of the empty string)."""
    return "da39a3ee5e6b4b0d3255bfef95601890afd80709"
