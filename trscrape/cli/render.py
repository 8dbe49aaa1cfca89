"""Plain text rendering of scrape results."""

from __future__ import annotations

from typing import Iterable

from trscrape.core.infohash import InfoHash
from trscrape.models import ScrapeOutcome, Tracked


def render_outcome(info_hash: InfoHash, outcome: ScrapeOutcome) -> list[str]:
    """Render one result as output lines."""
    if isinstance(outcome, Tracked):
        stats = outcome.stats
        return [
            f"{info_hash}:",
            f"  Complete/Seeders: {stats.complete}",
            f"  Incomplete/Leechers: {stats.incomplete}",
            f"  Downloaded: {stats.downloaded}",
            "",
        ]
    return [f"{info_hash}: --- not tracked ---"]


def render_results(results: Iterable[tuple[InfoHash, ScrapeOutcome]]) -> list[str]:
    """Render ordered results as output lines."""
    lines: list[str] = []
    for info_hash, outcome in results:
        lines.extend(render_outcome(info_hash, outcome))
    return lines
