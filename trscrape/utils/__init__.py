"""Shared utilities and infrastructure.

This module contains the error hierarchy, logging setup and retry helpers.
"""

from __future__ import annotations

from trscrape.utils.backoff import ExponentialBackoff, fits_in_budget, next_backoff
from trscrape.utils.exceptions import (
    ConfigurationError,
    TrackerReportedError,
    TransportError,
    TrscrapeError,
)
from trscrape.utils.logging_config import get_logger, setup_logging

__all__ = [
    "ConfigurationError",
    "ExponentialBackoff",
    "TrackerReportedError",
    "TransportError",
    "TrscrapeError",
    "fits_in_budget",
    "get_logger",
    "next_backoff",
    "setup_logging",
]
