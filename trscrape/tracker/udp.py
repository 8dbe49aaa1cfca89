"""UDP tracker scrape transport (BEP 15).

A scrape takes two request/response exchanges over one datagram socket:
connect (obtain a connection ID) then scrape. Each exchange re-sends the
identical packet on timeout following a ``15 * 2**n`` second schedule, and
all exchanges share one overall deadline.

Wire format, all integers big-endian::

    connect request   [u64 protocol_id][u32 action=0][u32 transaction_id]
    connect response  [u32 action=0][u32 transaction_id][u64 connection_id]
    scrape request    [u64 connection_id][u32 action=2][u32 transaction_id][20-byte hash]*N
    scrape response   [u32 action=2][u32 transaction_id]([u32 seeders][u32 completed][u32 leechers])*N
    error response    [u32 action=3][u32 transaction_id][message]
"""

from __future__ import annotations

import asyncio
import logging
import random
import struct
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Sequence

from trscrape.core.infohash import InfoHash, unique_in_order
from trscrape.models import ScrapeStats
from trscrape.tracker.endpoint import TrackerEndpoint
from trscrape.utils.backoff import (
    DEFAULT_BACKOFF,
    ExponentialBackoff,
    fits_in_budget,
    next_backoff,
)
from trscrape.utils.exceptions import (
    TrackerProtocolError,
    TrackerReportedError,
    TrackerTimeoutError,
    TransportError,
)

PROTOCOL_ID = 0x41727101980
CONNECTION_ID_LIFETIME = 120.0
HEADER_LEN = 8
CONNECT_RESPONSE_LEN = 16
SCRAPE_ENTRY_LEN = 12

_HEADER = struct.Struct("!II")
_REQUEST_HEADER = struct.Struct("!QII")
_SCRAPE_ENTRY = struct.Struct("!III")

logger = logging.getLogger(__name__)


class TrackerAction(Enum):
    """UDP tracker actions."""

    CONNECT = 0
    ANNOUNCE = 1
    SCRAPE = 2
    ERROR = 3


class UdpSessionState(Enum):
    """Progress of a UDP scrape session."""

    IDLE = "idle"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    SCRAPING = "scraping"
    DONE = "done"
    FAILED = "failed"


@dataclass
class UdpConnection:
    """A connection ID and the monotonic time it was obtained."""

    connection_id: int
    acquired_at: float

    @property
    def expires_at(self) -> float:
        """Time after which the connection ID must not be used."""
        return self.acquired_at + CONNECTION_ID_LIFETIME

    def is_valid(self, now: float) -> bool:
        """Check whether the connection ID may still be used at ``now``."""
        return now < self.expires_at


def encode_connect_request(transaction_id: int) -> bytes:
    """Encode a connect request."""
    return _REQUEST_HEADER.pack(PROTOCOL_ID, TrackerAction.CONNECT.value, transaction_id)


def encode_scrape_request(
    connection_id: int, transaction_id: int, hashes: Sequence[InfoHash]
) -> bytes:
    """Encode a scrape request for the given hashes, in order."""
    header = _REQUEST_HEADER.pack(
        connection_id, TrackerAction.SCRAPE.value, transaction_id
    )
    return header + b"".join(ih.as_bytes() for ih in hashes)


def parse_header(data: bytes) -> tuple[int, int]:
    """Return ``(action, transaction_id)`` of a tracker reply.

    Raises:
        TrackerProtocolError: If the datagram is shorter than the header

    """
    if len(data) < HEADER_LEN:
        msg = f"UDP tracker reply too short: {len(data)} bytes"
        raise TrackerProtocolError(msg)
    return _HEADER.unpack_from(data)


def decode_connect_response(data: bytes) -> tuple[int, int]:
    """Decode a connect response into ``(transaction_id, connection_id)``.

    Bytes after the connection ID are ignored.
    """
    if len(data) < CONNECT_RESPONSE_LEN:
        msg = (
            f"UDP tracker sent connect response with invalid length: "
            f"{len(data)} bytes, expected at least {CONNECT_RESPONSE_LEN}"
        )
        raise TrackerProtocolError(msg)
    action, transaction_id = parse_header(data)
    if action != TrackerAction.CONNECT.value:
        msg = f"Expected connect response, got action {action}"
        raise TrackerProtocolError(msg)
    (connection_id,) = struct.unpack_from("!Q", data, HEADER_LEN)
    return transaction_id, connection_id


def decode_scrape_response(data: bytes, count: int) -> list[ScrapeStats]:
    """Decode a scrape response for ``count`` hashes.

    Entries are positional: the i-th entry answers the i-th hash sent.

    Raises:
        TrackerProtocolError: Unless the reply is exactly ``8 + 12 * count`` bytes

    """
    expected = HEADER_LEN + SCRAPE_ENTRY_LEN * count
    if len(data) != expected:
        msg = (
            f"UDP tracker sent scrape response with invalid length: "
            f"{len(data)} bytes, expected {expected}"
        )
        raise TrackerProtocolError(msg)
    action, _ = parse_header(data)
    if action != TrackerAction.SCRAPE.value:
        msg = f"Expected scrape response, got action {action}"
        raise TrackerProtocolError(msg)

    stats = []
    for offset in range(HEADER_LEN, expected, SCRAPE_ENTRY_LEN):
        seeders, completed, leechers = _SCRAPE_ENTRY.unpack_from(data, offset)
        stats.append(
            ScrapeStats(complete=seeders, incomplete=leechers, downloaded=completed)
        )
    return stats


def decode_error_message(data: bytes) -> str:
    """Decode the human readable message of an error response."""
    return data[HEADER_LEN:].decode("utf-8", errors="replace")


class UDPTrackerProtocol(asyncio.DatagramProtocol):
    """Datagram protocol feeding received packets into a queue."""

    def __init__(self, queue: asyncio.Queue):
        """Initialize UDP protocol handler."""
        self.queue = queue

    def datagram_received(self, data: bytes, addr: tuple[str, int]) -> None:
        """Handle incoming UDP datagram."""
        self.queue.put_nowait(data)

    def error_received(self, exc: Exception) -> None:
        """Handle UDP error (for example ICMP port unreachable)."""
        logger.debug("UDP socket error: %s", exc)
        self.queue.put_nowait(exc)

    def connection_lost(self, exc: Exception | None) -> None:
        """Handle socket closure."""
        if exc is not None:
            self.queue.put_nowait(exc)


class UdpChannel:
    """A datagram socket connected to one tracker address."""

    def __init__(self, transport: asyncio.DatagramTransport, queue: asyncio.Queue):
        """Initialize channel around an open transport."""
        self.transport = transport
        self.queue = queue

    @classmethod
    async def open(cls, address: tuple[str, int], timeout: float) -> UdpChannel:
        """Resolve ``address`` and open a connected datagram endpoint.

        Raises:
            TrackerTimeoutError: If resolution does not finish within ``timeout``
            TransportError: If resolution or socket setup fails

        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue = asyncio.Queue()
        host, port = address
        try:
            transport, _ = await asyncio.wait_for(
                loop.create_datagram_endpoint(
                    lambda: UDPTrackerProtocol(queue),
                    remote_addr=address,
                ),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            msg = f"Timed out opening UDP socket to {host}:{port}"
            raise TrackerTimeoutError(msg) from e
        except OSError as e:
            msg = f"Failed to open UDP socket to {host}:{port}: {e}"
            raise TransportError(msg) from e
        return cls(transport, queue)

    def send(self, data: bytes) -> None:
        """Send one datagram to the tracker."""
        try:
            self.transport.sendto(data)
        except OSError as e:
            msg = f"Failed to send UDP packet: {e}"
            raise TransportError(msg) from e

    async def recv(self, timeout: float) -> bytes:
        """Wait up to ``timeout`` seconds for the next datagram.

        Raises:
            asyncio.TimeoutError: If nothing arrives in time
            TransportError: If the socket reported an error

        """
        item = await asyncio.wait_for(self.queue.get(), timeout=timeout)
        if isinstance(item, Exception):
            msg = f"Failed to receive UDP packet: {item}"
            raise TransportError(msg) from item
        return item

    def close(self) -> None:
        """Close the socket."""
        self.transport.close()


class _AttemptTimeout(Exception):
    """No matching reply arrived before the attempt deadline."""


class _ConnectionExpired(Exception):
    """The connection ID expired while an exchange was being retried."""


class UdpTrackerSession:
    """Connect/scrape state machine for one invocation.

    The session owns nothing but its state; the channel is supplied by the
    caller. Transaction IDs are drawn from ``rng`` and all time is read from
    ``clock`` so both can be replaced in tests.
    """

    def __init__(
        self,
        endpoint: TrackerEndpoint,
        channel: UdpChannel,
        *,
        deadline: float,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        backoff: ExponentialBackoff = DEFAULT_BACKOFF,
    ):
        """Initialize UDP scrape session.

        Args:
            endpoint: Parsed udp tracker endpoint
            channel: Datagram channel connected to the tracker
            deadline: Clock value at which the whole operation must end
            rng: Source of transaction IDs
            clock: Monotonic time source
            backoff: Per-attempt wait schedule

        """
        self.endpoint = endpoint
        self.channel = channel
        self.deadline = deadline
        self.rng = rng if rng is not None else random.SystemRandom()
        self.clock = clock
        self.backoff = backoff
        self.state = UdpSessionState.IDLE
        self.connection: UdpConnection | None = None

    def _new_transaction_id(self) -> int:
        return self.rng.getrandbits(32)

    async def scrape(self, hashes: Sequence[InfoHash]) -> dict[InfoHash, ScrapeStats]:
        """Scrape the given hashes.

        Returns:
            Statistics for every unique hash

        Raises:
            TrackerTimeoutError: If the deadline passes without a usable reply
            TrackerReportedError: If the tracker sends an error packet
            TrackerProtocolError: If a reply is malformed

        """
        unique = unique_in_order(hashes)
        try:
            while True:
                connection = await self._get_connection()
                try:
                    stats = await self._scrape_once(connection, unique)
                except _ConnectionExpired:
                    logger.debug(
                        "Connection ID %#018x expired, reconnecting",
                        connection.connection_id,
                    )
                    self.connection = None
                    continue
                self.state = UdpSessionState.DONE
                return dict(zip(unique, stats))
        finally:
            if self.state is not UdpSessionState.DONE:
                self.state = UdpSessionState.FAILED

    async def _get_connection(self) -> UdpConnection:
        if self.connection is not None and self.connection.is_valid(self.clock()):
            return self.connection
        return await self._connect()

    async def _connect(self) -> UdpConnection:
        self.state = UdpSessionState.CONNECTING
        transaction_id = self._new_transaction_id()
        logger.debug(
            "Connecting to UDP tracker %s (transaction %#010x)",
            self.endpoint,
            transaction_id,
        )
        reply = await self._exchange(
            encode_connect_request(transaction_id),
            transaction_id,
            TrackerAction.CONNECT,
        )
        _, connection_id = decode_connect_response(reply)
        self.connection = UdpConnection(connection_id, self.clock())
        self.state = UdpSessionState.CONNECTED
        logger.debug("Obtained connection ID %#018x", connection_id)
        return self.connection

    async def _scrape_once(
        self, connection: UdpConnection, hashes: list[InfoHash]
    ) -> list[ScrapeStats]:
        self.state = UdpSessionState.SCRAPING
        transaction_id = self._new_transaction_id()
        logger.debug(
            "Scraping %d hashes (transaction %#010x)", len(hashes), transaction_id
        )
        reply = await self._exchange(
            encode_scrape_request(connection.connection_id, transaction_id, hashes),
            transaction_id,
            TrackerAction.SCRAPE,
            connection=connection,
        )
        return decode_scrape_response(reply, len(hashes))

    async def _exchange(
        self,
        packet: bytes,
        transaction_id: int,
        action: TrackerAction,
        connection: UdpConnection | None = None,
    ) -> bytes:
        """Send ``packet`` until a matching reply arrives or the deadline passes.

        When the next backoff would end past the deadline, the packet is sent
        once more and the wait is clamped to the remaining budget; that
        attempt is the last.
        """
        attempt = 0
        while True:
            now = self.clock()
            if connection is not None and not connection.is_valid(now):
                raise _ConnectionExpired
            remaining = self.deadline - now
            if remaining <= 0:
                break

            wait = next_backoff(attempt, self.backoff)
            final = not fits_in_budget(now, wait, self.deadline)
            if final:
                wait = remaining

            self.channel.send(packet)
            try:
                return await self._await_reply(transaction_id, action, now + wait)
            except _AttemptTimeout:
                if final:
                    break
                logger.debug(
                    "No %s reply after %.1fs, retrying (attempt %d)",
                    action.name.lower(),
                    wait,
                    attempt + 1,
                )
                attempt += 1

        msg = f"Interactions with tracker {self.endpoint} did not complete in time"
        raise TrackerTimeoutError(msg)

    async def _await_reply(
        self, transaction_id: int, action: TrackerAction, until: float
    ) -> bytes:
        while True:
            remaining = until - self.clock()
            if remaining <= 0:
                raise _AttemptTimeout
            try:
                data = await self.channel.recv(remaining)
            except asyncio.TimeoutError:
                raise _AttemptTimeout from None

            reply_action, reply_transaction_id = parse_header(data)
            if reply_action == TrackerAction.ERROR.value:
                raise TrackerReportedError(decode_error_message(data))
            if reply_transaction_id != transaction_id:
                logger.debug(
                    "Discarding reply with transaction %#010x (expected %#010x)",
                    reply_transaction_id,
                    transaction_id,
                )
                continue
            if reply_action != action.value:
                msg = f"Expected {action.name.lower()} response, got action {reply_action}"
                raise TrackerProtocolError(msg)
            return data


class UdpTracker:
    """Scrapes a UDP tracker."""

    # UDP trackers answer every hash, with zeros for unknown torrents
    reports_every_hash = True

    def __init__(
        self,
        endpoint: TrackerEndpoint,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        backoff: ExponentialBackoff = DEFAULT_BACKOFF,
    ):
        """Initialize UDP tracker transport."""
        self.endpoint = endpoint
        self.rng = rng
        self.clock = clock
        self.backoff = backoff

    async def scrape(
        self, hashes: Sequence[InfoHash], timeout: float
    ) -> dict[InfoHash, ScrapeStats]:
        """Scrape all hashes within ``timeout`` seconds."""
        deadline = self.clock() + timeout
        channel = await UdpChannel.open(self.endpoint.address, timeout)
        try:
            session = UdpTrackerSession(
                self.endpoint,
                channel,
                deadline=deadline,
                rng=self.rng,
                clock=self.clock,
                backoff=self.backoff,
            )
            return await session.scrape(hashes)
        finally:
            channel.close()
