"""Scrape entry point.

``run`` is the single operation the command line front end (or any other
caller) uses: validate input, dispatch to the right transport and return
ordered results.
"""

from __future__ import annotations

import asyncio
import random
from typing import Iterable

from trscrape.config.config import get_config
from trscrape.core.infohash import InfoHash, validate_batch
from trscrape.tracker.dispatch import dispatch
from trscrape.tracker.results import OrderedResults
from trscrape.utils.exceptions import ConfigurationError
from trscrape.utils.logging_config import LoggingContext


async def run(
    tracker_url: str,
    hashes: Iterable[InfoHash | str],
    timeout: float | None = None,
    *,
    rng: random.Random | None = None,
) -> OrderedResults:
    """Scrape a tracker for a batch of info hashes.

    Args:
        tracker_url: Announce URL of an http, https or udp tracker
        hashes: 1 to 50 info hashes (InfoHash values or hex strings)
        timeout: Overall budget in seconds; defaults to the configured timeout
        rng: Source of UDP transaction IDs

    Returns:
        ``(hash, outcome)`` pairs in input order

    Raises:
        ConfigurationError: If the input is invalid; raised before any I/O
        TransportError: On network or protocol failure
        TrackerReportedError: If the tracker rejects the request

    """
    batch = validate_batch(hashes)
    config = get_config()
    if timeout is None:
        timeout = config.network.timeout
    if timeout <= 0:
        msg = f"Timeout must be positive, got {timeout}"
        raise ConfigurationError(msg)

    with LoggingContext("scrape", tracker=tracker_url, hash_count=len(batch)):
        return await dispatch(
            tracker_url,
            batch,
            timeout,
            user_agent=config.network.user_agent,
            rng=rng,
        )


def run_sync(
    tracker_url: str,
    hashes: Iterable[InfoHash | str],
    timeout: float | None = None,
) -> OrderedResults:
    """Blocking wrapper around :func:`run`."""
    return asyncio.run(run(tracker_url, hashes, timeout))
