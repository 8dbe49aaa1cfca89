"""Core data types.

This module contains the value types shared by both tracker transports:
- Info hashes and hash batch validation
- Bencode decoding
"""

from __future__ import annotations

from trscrape.core.bencode import BencodeDecoder, decode
from trscrape.core.infohash import (
    MAX_SCRAPE_HASHES,
    InfoHash,
    unique_in_order,
    validate_batch,
)

__all__ = [
    # Bencoding
    "BencodeDecoder",
    "decode",
    # Info hashes
    "MAX_SCRAPE_HASHES",
    "InfoHash",
    "unique_in_order",
    "validate_batch",
]
