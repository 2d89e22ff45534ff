"""
Helper utilities for tests.
"""

import asyncio
from collections.abc import AsyncIterator

FILE_CONTENT = bytes(range(100))


class CountingStream:
    """Async byte stream that records how many times it was iterated.

    Iterating a second time raises, like a socket that has already been read.
    Passing ``gate`` holds the stream open until the event is set, and
    ``error`` makes the stream fail after its chunks were produced.
    """

    def __init__(self, *chunks: bytes, gate: asyncio.Event | None = None, error: Exception | None = None):
        self.chunks = chunks
        self.gate = gate
        self.error = error
        self.iterations = 0

    def __aiter__(self):
        self.iterations += 1
        if self.iterations > 1:
            raise RuntimeError("Stream has already been listened to")
        return self._generate()

    async def _generate(self):
        if self.gate is not None:
            await self.gate.wait()
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class MemoryFile:
    """In-memory ``RangeFile`` that records every range it was asked for."""

    def __init__(self, content: bytes, exists: bool = True):
        self.content = content
        self._exists = exists
        self.opened: list[tuple[int, int]] = []

    def exists(self) -> bool:
        return self._exists

    def size(self) -> int:
        return len(self.content)

    async def open_range(self, start: int, end: int) -> AsyncIterator[bytes]:
        self.opened.append((start, end))
        yield self.content[start : end + 1]


async def collect(chunks) -> bytes:
    return b"".join([chunk async for chunk in chunks])
