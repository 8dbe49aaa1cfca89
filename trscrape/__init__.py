"""trscrape - BitTorrent tracker scrape client."""

from __future__ import annotations

__version__ = "0.1.0"

from trscrape.core.infohash import InfoHash  # noqa: E402
from trscrape.models import NotTracked, ScrapeOutcome, ScrapeStats, Tracked  # noqa: E402
from trscrape.scrape import run, run_sync  # noqa: E402

__all__ = [
    "InfoHash",
    "NotTracked",
    "ScrapeOutcome",
    "ScrapeStats",
    "Tracked",
    "__version__",
    "run",
    "run_sync",
]
