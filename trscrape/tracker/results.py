"""Result assembly."""

from __future__ import annotations

from typing import Mapping, Sequence

from trscrape.core.infohash import InfoHash
from trscrape.models import NotTracked, ScrapeOutcome, ScrapeStats, Tracked
from trscrape.utils.exceptions import IncompleteScrapeError

OrderedResults = list[tuple[InfoHash, ScrapeOutcome]]


def assemble(
    hashes: Sequence[InfoHash],
    scrape_map: Mapping[InfoHash, ScrapeStats],
    *,
    reports_every_hash: bool,
) -> OrderedResults:
    """Pair every input hash with its outcome, in input order.

    Duplicated input hashes get one entry per occurrence.

    Args:
        hashes: The caller's hash batch
        scrape_map: Statistics returned by the transport
        reports_every_hash: Whether the transport guarantees an entry for
            every hash it was asked about

    Raises:
        IncompleteScrapeError: If a transport that reports every hash left
            one out

    """
    results: OrderedResults = []
    for info_hash in hashes:
        stats = scrape_map.get(info_hash)
        if stats is not None:
            results.append((info_hash, Tracked(stats=stats)))
        elif reports_every_hash:
            msg = f"Tracker reply has no entry for {info_hash}"
            raise IncompleteScrapeError(msg)
        else:
            results.append((info_hash, NotTracked()))
    return results
