"""Info hash value type and hash batch validation."""

from __future__ import annotations

import binascii
from functools import total_ordering
from typing import Iterable
from urllib.parse import quote

from trscrape.utils.exceptions import HashBatchError, InfoHashError

INFO_HASH_LENGTH = 20
MAX_SCRAPE_HASHES = 50


@total_ordering
class InfoHash:
    """A torrent info hash: 20 raw bytes shown as 40 lowercase hex digits.

    Instances are immutable and hashable; equality and ordering compare the
    raw bytes.
    """

    __slots__ = ("_raw",)

    def __init__(self, raw: bytes):
        """Initialize from exactly 20 raw bytes.

        Args:
            raw: Raw SHA-1 digest

        Raises:
            InfoHashError: If ``raw`` is not 20 bytes long

        """
        if not isinstance(raw, (bytes, bytearray)):
            msg = f"Info hash must be bytes, got {type(raw).__name__}"
            raise InfoHashError(msg)
        if len(raw) != INFO_HASH_LENGTH:
            msg = f"Info hash is {len(raw)} bytes long, expected {INFO_HASH_LENGTH}"
            raise InfoHashError(msg)
        object.__setattr__(self, "_raw", bytes(raw))

    @classmethod
    def from_hex(cls, text: str) -> InfoHash:
        """Parse a 40 character hexadecimal string (either case)."""
        if len(text) != INFO_HASH_LENGTH * 2:
            msg = f"Invalid info hash {text!r}: expected 40 hex digits, got {len(text)}"
            raise InfoHashError(msg)
        try:
            raw = binascii.unhexlify(text)
        except (binascii.Error, ValueError) as e:
            msg = f"Invalid info hash {text!r}: not hexadecimal"
            raise InfoHashError(msg) from e
        return cls(raw)

    @classmethod
    def from_bytes(cls, raw: bytes) -> InfoHash:
        """Build from 20 raw bytes."""
        return cls(raw)

    @property
    def hex(self) -> str:
        """Lowercase hexadecimal form."""
        return self._raw.hex()

    def as_bytes(self) -> bytes:
        """Return the raw 20 bytes."""
        return self._raw

    def quoted(self) -> str:
        """Percent-encode the raw bytes for use as a query parameter value."""
        return quote(self._raw, safe="")

    def __setattr__(self, name, value):
        msg = "InfoHash is immutable"
        raise AttributeError(msg)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, InfoHash):
            return NotImplemented
        return self._raw == other._raw

    def __lt__(self, other: InfoHash) -> bool:
        if not isinstance(other, InfoHash):
            return NotImplemented
        return self._raw < other._raw

    def __hash__(self) -> int:
        return hash(self._raw)

    def __str__(self) -> str:
        return self.hex

    def __repr__(self) -> str:
        return f"InfoHash('{self.hex}')"


def validate_batch(hashes: Iterable[InfoHash | str]) -> list[InfoHash]:
    """Validate a scrape batch before any network I/O.

    Hex strings are parsed into :class:`InfoHash` values. Order and
    duplicates are preserved.

    Args:
        hashes: Info hashes or their hex form

    Returns:
        The batch as a list of InfoHash values

    Raises:
        InfoHashError: If any element is malformed
        HashBatchError: If the batch is empty or larger than 50 entries

    """
    batch: list[InfoHash] = []
    for item in hashes:
        if isinstance(item, InfoHash):
            batch.append(item)
        elif isinstance(item, str):
            batch.append(InfoHash.from_hex(item))
        else:
            msg = f"Invalid info hash {item!r}: expected InfoHash or hex string"
            raise InfoHashError(msg)

    if not batch:
        msg = "At least one info hash is required"
        raise HashBatchError(msg)
    if len(batch) > MAX_SCRAPE_HASHES:
        msg = f"Too many info hashes: {len(batch)} (maximum {MAX_SCRAPE_HASHES})"
        raise HashBatchError(msg)
    return batch


def unique_in_order(hashes: Iterable[InfoHash]) -> list[InfoHash]:
    """Drop repeated hashes, keeping the first occurrence of each."""
    return list(dict.fromkeys(hashes))
