"""Failure-tailing log monitor for process and container output."""

from __future__ import annotations

import asyncio
import sys
import threading
from collections.abc import Iterable
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    import logging

logger = structlog.get_logger(__name__)

CAPTURE_LINES_AFTER_FAILURE = 3
MAX_TAIL_LINES = 10_000
UNLIMITED = sys.maxsize

# Read buffer for process pipes; longer lines are forwarded in pieces
STREAM_LIMIT = 1024 * 1024

FAILURE_SIGNATURES = (
    "panic",
    "consensus failure",
    "invalid memory",
    "wrong block.header.lastresultshash",
    "wrong block.header.apphash",
    "is too high, the height of the last processed block",
)


def contains_failure(line: str) -> bool:
    """Check a line against the known failure signatures, case-insensitively."""
    lowered = line.lower()
    return any(signature in lowered for signature in FAILURE_SIGNATURES)


class FailureTail:
    """
    Lines captured around failure signatures.

    Writers may run on several threads (one per stream); every access takes
    the lock and readers get a snapshot. Only the first max_lines lines are
    kept, later ones are counted in `dropped`.
    """

    def __init__(self, max_lines: int = MAX_TAIL_LINES) -> None:
        self.max_lines = max_lines
        self.dropped = 0
        self._lock = threading.Lock()
        self._lines: list[str] = []

    def append(self, line: str) -> None:
        with self._lock:
            if len(self._lines) >= self.max_lines:
                self.dropped += 1
                return
            self._lines.append(line)

    @property
    def lines(self) -> list[str]:
        with self._lock:
            return list(self._lines)

    def empty(self) -> bool:
        with self._lock:
            return not self._lines

    def render(self, limit: int = UNLIMITED) -> str:
        """
        Join the captured lines, capped at limit characters.

        A capped result keeps its head and ends with " ...".
        """
        with self._lock:
            result = "\n".join(self._lines)

        if len(result) <= limit:
            return result
        return f"{result[:limit]} ..."


class LogMonitor:
    """
    Forwards every line of one stream to a sink logger.

    With a FailureTail attached, a line matching a failure signature (re)arms
    a counter to CAPTURE_LINES_AFTER_FAILURE; while it is positive each line,
    the matching one included, is appended to the tail.
    """

    def __init__(self, sink: logging.Logger, tail: FailureTail | None = None, name: str = "") -> None:
        self.sink = sink
        self.tail = tail
        self.name = name
        self._remaining = 0

    def feed(self, line: bytes | str) -> None:
        """Process one line."""
        if isinstance(line, bytes):
            line = line.decode(errors="replace")
        text = line.rstrip("\r\n")

        if self.tail is not None:
            if contains_failure(text):
                self._remaining = CAPTURE_LINES_AFTER_FAILURE
            if self._remaining > 0:
                self.tail.append(text)
                self._remaining -= 1

        self.sink.info(text)

    def consume(self, lines: Iterable[bytes | str]) -> None:
        """Drain a blocking line iterator. Run it in a worker thread."""
        for line in lines:
            self.feed(line)
        logger.debug("Stream closed", stream=self.name)

    async def consume_reader(self, reader: asyncio.StreamReader) -> None:
        """
        Drain an asyncio stream until EOF.

        A line longer than the reader's limit is collected chunk by chunk and
        fed once complete. Past STREAM_LIMIT bytes the collected part is fed
        on its own so memory stays bounded.
        """
        pending = bytearray()
        while True:
            try:
                chunk = await reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                chunk = e.partial
                if chunk or pending:
                    self.feed(bytes(pending + chunk))
                break
            except asyncio.LimitOverrunError as e:
                pending += await reader.read(e.consumed)
                if len(pending) >= STREAM_LIMIT:
                    logger.debug("Oversized line forwarded in pieces", stream=self.name, size=len(pending))
                    self.feed(bytes(pending))
                    pending.clear()
                continue

            self.feed(bytes(pending + chunk))
            pending.clear()
        logger.debug("Stream closed", stream=self.name)

    async def consume_in_thread(self, lines: Iterable[bytes | str]) -> None:
        """Drain a blocking line iterator from a worker thread."""
        await asyncio.to_thread(self.consume, lines)
