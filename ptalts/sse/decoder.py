"""
Event-stream frame decoding.

Only the ``data`` field of the event-stream format is honoured. ``event:``,
``id:``, ``retry:`` and comment lines are skipped. A frame is complete only
when a blank line closes it: a partial frame pending when the input ends is
dropped, never flushed.
"""

from typing import AsyncIterable, AsyncIterator, Iterable, Iterator, Optional

DATA_PREFIX = "data:"


class FrameDecoder:
    """Line-by-line accumulator for event-stream frames."""

    def __init__(self):
        self._buffer = []

    @property
    def pending(self) -> bool:
        """Whether a partial frame is waiting for its closing blank line."""
        return bool(self._buffer)

    def feed(self, line: str) -> Optional[str]:
        """Consume one line; return a payload when the line closes a frame."""
        line = line.rstrip("\r\n")

        if not line:
            payload = "".join(self._buffer).strip()
            self._buffer = []
            return payload or None

        if line.startswith(DATA_PREFIX):
            self._buffer.append(line[len(DATA_PREFIX):].lstrip())
            self._buffer.append("\n")

        return None


def iter_frames(lines: Iterable[str]) -> Iterator[str]:
    """Lazily decode frame payloads from a line iterable."""
    decoder = FrameDecoder()
    for line in lines:
        payload = decoder.feed(line)
        if payload is not None:
            yield payload


async def aiter_frames(lines: AsyncIterable[str]) -> AsyncIterator[str]:
    """Lazily decode frame payloads from an async line iterable."""
    decoder = FrameDecoder()
    async for line in lines:
        payload = decoder.feed(line)
        if payload is not None:
            yield payload
