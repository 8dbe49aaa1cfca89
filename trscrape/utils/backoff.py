"""Backoff utilities for the UDP tracker retry policy."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class ExponentialBackoff:
    """Exponential backoff schedule ``base_delay * multiplier ** n``.

    The exponent is capped at ``max_exponent`` so the schedule stops growing
    after that many retries.
    """

    base_delay: float = 15.0
    multiplier: float = 2.0
    max_exponent: int = 8

    def next_delay(self, retries: int) -> float:
        """Calculate the delay for the given attempt number (0-based)."""
        exponent = min(max(0, retries), self.max_exponent)
        return self.base_delay * (self.multiplier**exponent)


# 15 * 2^n seconds, BEP 15
DEFAULT_BACKOFF = ExponentialBackoff()


def next_backoff(attempt: int, policy: ExponentialBackoff = DEFAULT_BACKOFF) -> float:
    """Return how long to wait for a reply on the given attempt, in seconds."""
    return policy.next_delay(attempt)


def fits_in_budget(now: float, backoff: float, deadline: float) -> bool:
    """Check whether waiting ``backoff`` seconds from ``now`` ends by ``deadline``."""
    return now + backoff <= deadline
