"""One-shot response bodies and the memoized text read shared by every accessor."""

import asyncio
import logging
from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable

from respond.exceptions import BodyReadError

logger = logging.getLogger(__name__)

BodyContent = bytes | bytearray | memoryview | AsyncIterable[bytes] | Iterable[bytes] | None


class BodySource:
    """The raw content of a response, readable exactly once.

    The content may be absent, an in-memory byte string, or a lazy stream of
    byte chunks (sync or async iterable). Calling ``read()`` a second time
    raises ``BodyReadError`` whatever the content is.
    """

    __slots__ = ("_content", "_consumed")

    def __init__(self, content: BodyContent = None):
        if isinstance(content, (bytearray, memoryview)):
            content = bytes(content)

        self._content = content
        self._consumed = False

    @property
    def is_absent(self) -> bool:
        return self._content is None

    @property
    def consumed(self) -> bool:
        return self._consumed

    @property
    def length(self) -> int | None:
        """Number of bytes for in-memory content, ``None`` for streams."""
        if self._content is None:
            return 0
        if isinstance(self._content, bytes):
            return len(self._content)
        return None

    def read(self) -> AsyncIterator[bytes]:
        """Return the chunk iterator. This is the one allowed drain."""
        if self._consumed:
            raise BodyReadError(
                "The response body has already been read. "
                "Use Response.body() to access the content more than once."
            )

        self._consumed = True
        return self._iterate()

    async def read_all(self) -> bytes:
        buffer = bytearray()
        async for chunk in self.read():
            buffer.extend(chunk)
        return bytes(buffer)

    async def _iterate(self) -> AsyncIterator[bytes]:
        content = self._content
        if content is None:
            return

        if isinstance(content, bytes):
            if content:
                yield content
            return

        if isinstance(content, AsyncIterable):
            async for chunk in content:
                yield bytes(chunk)
        else:
            for chunk in content:
                yield bytes(chunk)

    def __repr__(self):
        kind = "absent" if self._content is None else type(self._content).__name__
        return f"<BodySource {kind} consumed={self._consumed}>"


class BodyCell:
    """Single-assignment holder for the decoded body of one response.

    The first ``materialize`` call installs a future and runs the reader; any
    caller arriving while that future is pending, or after it resolved, awaits
    the same future instead of reading again. The outcome is either the text or
    the exception the reader raised, and every caller sees the same one.

    Installing the future happens without yielding to the event loop, so only
    one caller can ever become the reader. Once resolved, the outcome is
    returned without touching the loop, so a later ``asyncio.run`` still gets
    it. Waiting on a pending read from a different event loop is not
    supported.
    """

    __slots__ = ("_future",)

    def __init__(self):
        self._future: asyncio.Future[str] | None = None

    @property
    def state(self) -> str:
        if self._future is None:
            return "absent"
        if not self._future.done():
            return "pending"
        return "resolved"

    async def materialize(self, reader: Callable[[], Awaitable[str]]) -> str:
        if self._future is not None:
            if self._future.done():
                return self._future.result()

            logger.debug("Body read pending, awaiting shared result")
            # Shielded so a cancelled waiter does not cancel the shared outcome.
            return await asyncio.shield(self._future)

        future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        self._future = future

        logger.debug("Reading response body")
        try:
            text = await reader()
        except asyncio.CancelledError:
            future.set_exception(
                BodyReadError("The response body read was cancelled before it completed")
            )
            future.exception()  # Mark retrieved, waiters still receive it
            raise
        except Exception as error:
            logger.debug(f"Response body read failed: {error!r}")
            future.set_exception(error)
        else:
            future.set_result(text)

        return future.result()

    def __repr__(self):
        return f"<BodyCell {self.state}>"
