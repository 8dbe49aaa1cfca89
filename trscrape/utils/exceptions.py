"""Exception hierarchy for trscrape.

Every failure aborts the whole scrape invocation. The class of the error
decides the process exit code reported by the command line front end.
"""

from __future__ import annotations

from typing import Any, ClassVar


class TrscrapeError(Exception):
    """Base exception for all trscrape errors."""

    exit_code: ClassVar[int] = 1

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize trscrape error."""
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.details:
            return f"{self.message} (Details: {self.details})"
        return self.message


class ConfigurationError(TrscrapeError):
    """Invalid user input or configuration, detected before any network I/O."""

    exit_code: ClassVar[int] = 2


class InfoHashError(ConfigurationError):
    """Malformed info hash."""


class HashBatchError(ConfigurationError):
    """Hash batch is empty or exceeds the per-request limit."""


class TrackerUrlError(ConfigurationError):
    """Tracker URL cannot be used for scraping."""


class UnsupportedSchemeError(TrackerUrlError):
    """Tracker URL scheme is not http, https or udp."""


class BencodeDecodeError(TrscrapeError):
    """Bencoded data is malformed."""


class TransportError(TrscrapeError):
    """Network or protocol failure while talking to the tracker."""

    exit_code: ClassVar[int] = 3


class TrackerTimeoutError(TransportError):
    """The overall timeout budget was exhausted."""


class TrackerHttpStatusError(TransportError):
    """HTTP tracker answered with a non-success status."""

    def __init__(self, status: int, reason: str | None = None):
        """Initialize with the HTTP status and reason phrase."""
        self.status = status
        self.reason = reason or ""
        message = f"HTTP {status}"
        if self.reason:
            message = f"{message}: {self.reason}"
        super().__init__(message)


class TrackerProtocolError(TransportError):
    """Tracker reply violates the scrape protocol."""


class IncompleteScrapeError(TransportError):
    """Tracker reply does not cover every requested hash."""


class TrackerReportedError(TrscrapeError):
    """Tracker explicitly reported a failure."""

    exit_code: ClassVar[int] = 4

    def __init__(self, reason: str):
        """Initialize with the tracker supplied message."""
        self.reason = reason
        super().__init__(f"Tracker failure: {reason}")
