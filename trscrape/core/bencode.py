"""Minimal bencode decoder for tracker scrape replies.

Only decoding is supported. Values map to Python as follows:

* ``i<digits>e`` -> ``int``
* ``<len>:<bytes>`` -> ``bytes``
* ``d<key><value>...e`` -> ``dict[bytes, value]``
* ``l<value>...e`` -> ``list``

Dictionary key order is not enforced on input. The decoder is strict about
everything else: truncation, malformed numbers, integers outside the signed
64-bit range, unterminated containers and trailing bytes are all errors.
"""

from __future__ import annotations

from typing import Union

from trscrape.utils.exceptions import BencodeDecodeError

BencodeValue = Union[int, bytes, list, dict]

# top-level dict -> files dict -> per-hash dict, plus one spare level
MAX_DEPTH = 4

_INT_MIN = -(2**63)
_INT_MAX = 2**63 - 1


class BencodeDecoder:
    """Cursor based decoder over a single bencoded buffer."""

    def __init__(self, data: bytes, max_depth: int = MAX_DEPTH):
        """Initialize decoder.

        Args:
            data: Bencoded bytes
            max_depth: Maximum container nesting

        """
        self.data = bytes(data)
        self.pos = 0
        self.max_depth = max_depth

    def decode(self) -> BencodeValue:
        """Decode the whole buffer into a single value.

        Raises:
            BencodeDecodeError: If the buffer is empty, malformed, or holds
                bytes after the first complete value

        """
        if not self.data:
            msg = "No data in bencode packet"
            raise BencodeDecodeError(msg)
        value = self._parse_value(0)
        if self.pos != len(self.data):
            msg = f"Trailing bytes after bencode structure at offset {self.pos}"
            raise BencodeDecodeError(msg)
        return value

    def _peek(self) -> bytes:
        if self.pos >= len(self.data):
            msg = "Unexpected end of bencode data"
            raise BencodeDecodeError(msg)
        return self.data[self.pos : self.pos + 1]

    def _consume(self, n: int = 1) -> bytes:
        if self.pos + n > len(self.data):
            msg = (
                f"Unexpected end of bencode data: needed {n} bytes at offset "
                f"{self.pos}, have {len(self.data) - self.pos}"
            )
            raise BencodeDecodeError(msg)
        chunk = self.data[self.pos : self.pos + n]
        self.pos += n
        return chunk

    def _read_until(self, terminator: bytes) -> bytes:
        end = self.data.find(terminator, self.pos)
        if end == -1:
            msg = f"Unexpected end of bencode data: missing {terminator!r}"
            raise BencodeDecodeError(msg)
        chunk = self.data[self.pos : end]
        self.pos = end + 1
        return chunk

    def _parse_value(self, depth: int) -> BencodeValue:
        token = self._peek()
        if token == b"i":
            return self._parse_int()
        if token.isdigit():
            return self._parse_string()
        if token in (b"d", b"l"):
            if depth >= self.max_depth:
                msg = f"Bencode nesting deeper than {self.max_depth} levels"
                raise BencodeDecodeError(msg)
            if token == b"d":
                return self._parse_dict(depth + 1)
            return self._parse_list(depth + 1)
        msg = f"Invalid bencode token {token!r} at offset {self.pos}"
        raise BencodeDecodeError(msg)

    def _parse_int(self) -> int:
        start = self.pos
        self._consume(1)  # 'i'
        digits = self._read_until(b"e")
        body = digits[1:] if digits.startswith(b"-") else digits
        if not body or not body.isdigit():
            msg = f"Invalid bencode integer {digits!r} at offset {start}"
            raise BencodeDecodeError(msg)
        if (body.startswith(b"0") and len(body) > 1) or digits == b"-0":
            msg = f"Non-canonical bencode integer {digits!r} at offset {start}"
            raise BencodeDecodeError(msg)
        value = int(digits)
        if not _INT_MIN <= value <= _INT_MAX:
            msg = f"Bencode integer overflow at offset {start}"
            raise BencodeDecodeError(msg)
        return value

    def _parse_string(self) -> bytes:
        start = self.pos
        length = self._read_until(b":")
        if not length.isdigit():
            msg = f"Invalid bencode string length {length!r} at offset {start}"
            raise BencodeDecodeError(msg)
        return self._consume(int(length))

    def _parse_list(self, depth: int) -> list:
        self._consume(1)  # 'l'
        items = []
        while self._peek() != b"e":
            items.append(self._parse_value(depth))
        self._consume(1)
        return items

    def _parse_dict(self, depth: int) -> dict[bytes, BencodeValue]:
        self._consume(1)  # 'd'
        result: dict[bytes, BencodeValue] = {}
        while self._peek() != b"e":
            if not self._peek().isdigit():
                msg = f"Bencode dictionary key must be a byte string at offset {self.pos}"
                raise BencodeDecodeError(msg)
            key = self._parse_string()
            result[key] = self._parse_value(depth)
        self._consume(1)
        return result


def decode(data: bytes) -> BencodeValue:
    """Decode a complete bencoded buffer."""
    return BencodeDecoder(data).decode()
