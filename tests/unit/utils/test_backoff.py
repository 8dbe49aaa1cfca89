"""Unit tests for the retry schedule and budget check."""

from __future__ import annotations

import pytest

from trscrape.utils.backoff import (
    DEFAULT_BACKOFF,
    ExponentialBackoff,
    fits_in_budget,
    next_backoff,
)

pytestmark = [pytest.mark.unit]


class TestNextBackoff:
    """Test the 15 * 2^n schedule."""

    @pytest.mark.parametrize(
        ("attempt", "expected"),
        [(0, 15.0), (1, 30.0), (2, 60.0), (3, 120.0), (8, 3840.0)],
    )
    def test_schedule(self, attempt, expected):
        """Test the default schedule values."""
        assert next_backoff(attempt) == expected

    def test_exponent_capped(self):
        """Test the schedule stops growing after eight doublings."""
        assert next_backoff(9) == next_backoff(8)
        assert next_backoff(100) == 15.0 * 2**8

    def test_negative_attempt_is_first(self):
        """Test negative attempt numbers behave like the first attempt."""
        assert next_backoff(-1) == 15.0

    def test_custom_policy(self):
        """Test a custom policy is honoured."""
        policy = ExponentialBackoff(base_delay=0.5, multiplier=3.0, max_exponent=2)
        assert [next_backoff(n, policy) for n in range(4)] == [0.5, 1.5, 4.5, 4.5]

    def test_default_policy_frozen(self):
        """Test the shared default policy cannot be mutated."""
        with pytest.raises(AttributeError):
            DEFAULT_BACKOFF.base_delay = 1.0  # type: ignore[misc]


class TestFitsInBudget:
    """Test the deadline check."""

    def test_fits(self):
        """Test a wait ending before the deadline fits."""
        assert fits_in_budget(0.0, 15.0, 30.0)

    def test_exact_fit(self):
        """Test a wait ending exactly at the deadline fits."""
        assert fits_in_budget(15.0, 15.0, 30.0)

    def test_does_not_fit(self):
        """Test a wait ending after the deadline does not fit."""
        assert not fits_in_budget(15.0, 30.0, 30.0)
        assert not fits_in_budget(0.0, 15.0, 1.0)
