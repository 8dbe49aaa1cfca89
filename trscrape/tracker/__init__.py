"""Tracker scrape transports.

This module contains the HTTP (BEP 48) and UDP (BEP 15) scrape transports,
tracker URL parsing and the dispatcher that routes between them.
"""

from __future__ import annotations

from trscrape.tracker.dispatch import dispatch, resolve_transport
from trscrape.tracker.endpoint import TrackerEndpoint, TrackerScheme
from trscrape.tracker.http import HttpTracker
from trscrape.tracker.results import OrderedResults, assemble
from trscrape.tracker.udp import UdpTracker

__all__ = [
    "HttpTracker",
    "OrderedResults",
    "TrackerEndpoint",
    "TrackerScheme",
    "UdpTracker",
    "assemble",
    "dispatch",
    "resolve_transport",
]
