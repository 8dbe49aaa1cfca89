"""Transport dispatch: route a tracker URL to the HTTP or UDP transport."""

from __future__ import annotations

import logging
import random
from typing import Sequence

from trscrape.core.infohash import InfoHash
from trscrape.tracker.endpoint import TrackerEndpoint, TrackerScheme
from trscrape.tracker.http import HttpTracker
from trscrape.tracker.results import OrderedResults, assemble
from trscrape.tracker.udp import UdpTracker

logger = logging.getLogger(__name__)

Transport = HttpTracker | UdpTracker


def resolve_transport(
    endpoint: TrackerEndpoint,
    *,
    user_agent: str | None = None,
    rng: random.Random | None = None,
) -> Transport:
    """Pick the transport serving the endpoint's scheme."""
    if endpoint.scheme is TrackerScheme.UDP:
        return UdpTracker(endpoint, rng=rng)
    return HttpTracker(endpoint, user_agent=user_agent)


async def dispatch(
    tracker_url: str,
    hashes: Sequence[InfoHash],
    timeout: float,
    *,
    user_agent: str | None = None,
    rng: random.Random | None = None,
) -> OrderedResults:
    """Scrape ``hashes`` from ``tracker_url``.

    The URL is parsed and validated before any network I/O.

    Args:
        tracker_url: Announce URL of an http, https or udp tracker
        hashes: Validated hash batch
        timeout: Budget in seconds for the whole operation
        user_agent: User-Agent for HTTP trackers
        rng: Source of UDP transaction IDs

    Returns:
        One ``(hash, outcome)`` pair per input hash, in input order

    """
    endpoint = TrackerEndpoint.parse(tracker_url)
    transport = resolve_transport(endpoint, user_agent=user_agent, rng=rng)
    logger.debug(
        "Dispatching %d hashes to %s transport", len(hashes), endpoint.scheme.value
    )
    scrape_map = await transport.scrape(hashes, timeout)
    return assemble(
        hashes, scrape_map, reports_every_hash=transport.reports_every_hash
    )
