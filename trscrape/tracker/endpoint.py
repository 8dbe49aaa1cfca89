"""Tracker URL parsing.

Turns a user supplied announce URL into a :class:`TrackerEndpoint`. All
checks here happen before any network I/O, so every failure is a
configuration error.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from urllib.parse import urlsplit, urlunsplit

from trscrape.utils.exceptions import TrackerUrlError, UnsupportedSchemeError

ANNOUNCE = "announce"
SCRAPE = "scrape"


class TrackerScheme(Enum):
    """Tracker transports."""

    HTTP = "http"
    HTTPS = "https"
    UDP = "udp"

    @property
    def is_http(self) -> bool:
        """Whether the scheme is served by the HTTP transport."""
        return self in (TrackerScheme.HTTP, TrackerScheme.HTTPS)


def derive_scrape_path(announce_path: str) -> str:
    """Derive the BEP 48 scrape path from an announce path.

    The last path segment must begin with ``announce``; that prefix is
    replaced by ``scrape`` and everything else is kept, so
    ``/tracker/announce.php`` becomes ``/tracker/scrape.php``.

    Raises:
        TrackerUrlError: If the last segment does not begin with ``announce``

    """
    head, _, last = announce_path.rpartition("/")
    if not last.startswith(ANNOUNCE):
        msg = f'No "announce" segment in tracker URL path {announce_path!r}; scrape is not supported'
        raise TrackerUrlError(msg)
    return f"{head}/{SCRAPE}{last[len(ANNOUNCE):]}"


@dataclass(frozen=True)
class TrackerEndpoint:
    """A parsed tracker URL."""

    url: str
    scheme: TrackerScheme
    host: str
    port: int | None
    path: str = ""
    query: str = ""
    scrape_path: str | None = None

    @classmethod
    def parse(cls, url: str) -> TrackerEndpoint:
        """Parse and validate a tracker URL.

        Args:
            url: Announce URL (``http``, ``https`` or ``udp``)

        Returns:
            The parsed endpoint

        Raises:
            UnsupportedSchemeError: For schemes other than http, https and udp
            TrackerUrlError: For unparseable URLs, a missing host, an invalid
                port, a UDP URL without a port or an HTTP path that cannot
                be turned into a scrape path

        """
        try:
            parts = urlsplit(url.strip())
        except ValueError as e:
            msg = f"Invalid tracker URL {url!r}: {e}"
            raise TrackerUrlError(msg) from e

        if not parts.scheme:
            msg = f"Invalid tracker URL {url!r}: missing scheme"
            raise TrackerUrlError(msg)
        try:
            scheme = TrackerScheme(parts.scheme.lower())
        except ValueError:
            msg = f"Unsupported tracker URL scheme: {parts.scheme!r}"
            raise UnsupportedSchemeError(msg) from None

        host = parts.hostname
        if not host:
            msg = f"No host in tracker URL {url!r}"
            raise TrackerUrlError(msg)

        try:
            port = parts.port
        except ValueError as e:
            msg = f"Invalid port in tracker URL {url!r}"
            raise TrackerUrlError(msg) from e

        if scheme is TrackerScheme.UDP:
            if port is None:
                msg = f"No port in UDP tracker URL {url!r}"
                raise TrackerUrlError(msg)
            return cls(url=url, scheme=scheme, host=host, port=port)

        return cls(
            url=url,
            scheme=scheme,
            host=host,
            port=port,
            path=parts.path,
            query=parts.query,
            scrape_path=derive_scrape_path(parts.path),
        )

    def scrape_url(self) -> str:
        """Return the HTTP scrape URL, keeping the announce query and dropping the fragment."""
        if not self.scheme.is_http or self.scrape_path is None:
            msg = f"{self.scheme.value} trackers have no scrape URL"
            raise TrackerUrlError(msg)
        parts = urlsplit(self.url.strip())
        return urlunsplit(
            (parts.scheme, parts.netloc, self.scrape_path, self.query, "")
        )

    @property
    def address(self) -> tuple[str, int]:
        """Host and port of a UDP tracker."""
        if self.port is None:
            msg = f"No port in tracker URL {self.url!r}"
            raise TrackerUrlError(msg)
        return (self.host, self.port)

    def __str__(self) -> str:
        return self.url
