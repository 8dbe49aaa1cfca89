"""Property-based tests for info hash parsing.

Tests invariants of hex parsing using Hypothesis for automatic test case
generation.
"""

from __future__ import annotations

import string

import pytest
from hypothesis import given
from hypothesis import strategies as st

from trscrape.core.infohash import InfoHash
from trscrape.utils.exceptions import InfoHashError

pytestmark = [pytest.mark.property]

hex_digests = st.text(alphabet="0123456789abcdefABCDEF", min_size=40, max_size=40)
non_hex = st.characters().filter(lambda c: c not in string.hexdigits)


class TestInfoHashProperties:
    """Property-based tests for InfoHash."""

    @given(hex_digests)
    def test_hex_roundtrip(self, text):
        """Test parsing then formatting is the identity (modulo case)."""
        assert InfoHash.from_hex(text).hex == text.lower()

    @given(st.binary(min_size=20, max_size=20))
    def test_bytes_roundtrip(self, raw):
        """Test raw bytes survive a trip through hex."""
        assert InfoHash.from_hex(InfoHash(raw).hex).as_bytes() == raw

    @given(
        st.text(alphabet="0123456789abcdef", max_size=80).filter(lambda t: len(t) != 40)
    )
    def test_wrong_length_rejected(self, text):
        """Test any length other than 40 is rejected."""
        with pytest.raises(InfoHashError):
            InfoHash.from_hex(text)

    @given(hex_digests, st.integers(min_value=0, max_value=39), non_hex)
    def test_non_hex_rejected(self, text, index, bad):
        """Test a single non-hex character anywhere is rejected."""
        corrupted = text[:index] + bad + text[index + 1 :]
        with pytest.raises(InfoHashError):
            InfoHash.from_hex(corrupted)

    @given(st.binary(min_size=20, max_size=20), st.binary(min_size=20, max_size=20))
    def test_ordering_matches_bytes(self, a, b):
        """Test ordering agrees with raw byte ordering."""
        assert (InfoHash(a) < InfoHash(b)) == (a < b)
        assert (InfoHash(a) == InfoHash(b)) == (a == b)
