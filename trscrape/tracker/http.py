"""HTTP(S) tracker scrape transport (BEP 48)."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Sequence

import aiohttp
from yarl import URL

from trscrape import __version__
from trscrape.core.bencode import BencodeDecoder
from trscrape.core.infohash import InfoHash, unique_in_order
from trscrape.models import U32_MAX, ScrapeStats
from trscrape.tracker.endpoint import TrackerEndpoint
from trscrape.utils.exceptions import (
    BencodeDecodeError,
    TrackerHttpStatusError,
    TrackerProtocolError,
    TrackerReportedError,
    TrackerTimeoutError,
    TransportError,
)

DEFAULT_USER_AGENT = f"trscrape/{__version__}"

_STAT_KEYS = ("complete", "incomplete", "downloaded")


def build_scrape_url(endpoint: TrackerEndpoint, hashes: Sequence[InfoHash]) -> str:
    """Build the scrape URL with one ``info_hash`` parameter per hash.

    The announce path and query are normalised first (spaces and non-ASCII
    characters quoted, existing ``%XX`` escapes kept). Each hash value is the
    raw 20-byte hash, percent-encoded. Repeated hashes are sent once.
    """
    url = str(URL(endpoint.scrape_url()))
    params = "&".join(f"info_hash={ih.quoted()}" for ih in unique_in_order(hashes))
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}{params}"


def _stat_value(stats: dict[Any, Any], key: str, info_hash: InfoHash) -> int:
    value = stats.get(key.encode())
    if value is None:
        msg = f"Missing {key!r} for {info_hash} in scrape response"
        raise TrackerProtocolError(msg)
    if not isinstance(value, int) or not 0 <= value <= U32_MAX:
        msg = f"Invalid {key!r} value {value!r} for {info_hash} in scrape response"
        raise TrackerProtocolError(msg)
    return value


def parse_scrape_response(data: bytes) -> dict[InfoHash, ScrapeStats]:
    """Parse a bencoded scrape reply.

    Args:
        data: Raw response body

    Returns:
        Statistics for every hash listed under ``files``

    Raises:
        TrackerReportedError: If the reply carries a ``failure reason``
        TrackerProtocolError: If the body is not a valid scrape reply

    """
    try:
        response = BencodeDecoder(data).decode()
    except BencodeDecodeError as e:
        msg = f"Failed to parse tracker response: {e}"
        raise TrackerProtocolError(msg) from e

    if not isinstance(response, dict):
        msg = "Tracker response is not a dictionary"
        raise TrackerProtocolError(msg)

    # failure reason wins even when files is also present
    if b"failure reason" in response:
        reason = response[b"failure reason"]
        if not isinstance(reason, bytes):
            msg = "Tracker response 'failure reason' is not a string"
            raise TrackerProtocolError(msg)
        raise TrackerReportedError(reason.decode("utf-8", errors="replace"))

    files = response.get(b"files")
    if files is None:
        msg = "Tracker response has no 'files' dictionary"
        raise TrackerProtocolError(msg)
    if not isinstance(files, dict):
        msg = "Tracker response 'files' is not a dictionary"
        raise TrackerProtocolError(msg)

    result: dict[InfoHash, ScrapeStats] = {}
    for key, stats in files.items():
        if len(key) != 20:
            msg = f"Invalid info hash key in scrape response: {len(key)} bytes, expected 20"
            raise TrackerProtocolError(msg)
        info_hash = InfoHash.from_bytes(key)
        if not isinstance(stats, dict):
            msg = f"Scrape entry for {info_hash} is not a dictionary"
            raise TrackerProtocolError(msg)
        result[info_hash] = ScrapeStats(
            **{name: _stat_value(stats, name, info_hash) for name in _STAT_KEYS}
        )
    return result


class HttpTracker:
    """Scrapes an HTTP or HTTPS tracker with a single GET request."""

    # HTTP trackers may omit hashes they do not track
    reports_every_hash = False

    def __init__(self, endpoint: TrackerEndpoint, user_agent: str | None = None):
        """Initialize HTTP tracker transport.

        Args:
            endpoint: Parsed http or https tracker endpoint
            user_agent: User-Agent header value

        """
        self.endpoint = endpoint
        self.user_agent = user_agent or DEFAULT_USER_AGENT
        self.logger = logging.getLogger(__name__)

    async def scrape(
        self, hashes: Sequence[InfoHash], timeout: float
    ) -> dict[InfoHash, ScrapeStats]:
        """Scrape all hashes in one request.

        Args:
            hashes: Info hashes to query
            timeout: Budget in seconds for the whole round trip

        Returns:
            Statistics for the hashes the tracker reported on

        """
        url = build_scrape_url(self.endpoint, hashes)
        self.logger.debug("Sending scrape request to %s", url)

        client_timeout = aiohttp.ClientTimeout(total=timeout)
        try:
            async with aiohttp.ClientSession(
                timeout=client_timeout,
                headers={"User-Agent": self.user_agent},
            ) as session, session.get(URL(url, encoded=True)) as response:
                if not 200 <= response.status < 300:
                    raise TrackerHttpStatusError(response.status, response.reason)
                data = await response.read()
        except asyncio.TimeoutError as e:
            msg = f"HTTP tracker request timed out after {timeout:g}s ({self.endpoint.host})"
            raise TrackerTimeoutError(msg) from e
        except aiohttp.ClientError as e:
            msg = f"HTTP tracker request failed ({self.endpoint.host}): {e}"
            raise TransportError(msg) from e

        self.logger.debug("Received %d byte scrape response", len(data))
        return parse_scrape_response(data)
