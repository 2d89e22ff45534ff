"""Single byte-range serving for file bodies (a subset of RFC 7233).

Only one ``bytes=<start>-<end>`` range is understood. Multiple ranges and
conditional validators such as ``If-Range`` are not supported; a header using
them does not match the grammar and is answered with 400.
"""

import logging
import os
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import anyio
from starlette.datastructures import Headers

from respond.config import get_settings
from respond.http.headers import CONTENT_LENGTH, CONTENT_RANGE, HeadersInput, make_headers

logger = logging.getLogger(__name__)

BYTES_UNIT = "bytes="

HTTP_PARTIAL_CONTENT = 206
HTTP_BAD_REQUEST = 400
HTTP_RANGE_NOT_SATISFIABLE = 416


@runtime_checkable
class RangeFile(Protocol):
    """A file that can report its size and read a bounded byte range."""

    def exists(self) -> bool: ...

    def size(self) -> int: ...

    def open_range(self, start: int, end: int) -> AsyncIterator[bytes]:
        """Yield the bytes in ``[start, end]``, both ends inclusive."""
        ...


class LocalFile:
    """A ``RangeFile`` backed by a path on the local filesystem.

    Each ``open_range`` call opens its own handle; nothing is cached between
    reads, and the file itself stays owned by the caller.
    """

    def __init__(self, path: str | os.PathLike, chunk_size: int | None = None):
        self.path = Path(path)
        self.chunk_size = chunk_size

    def exists(self) -> bool:
        return self.path.is_file()

    def size(self) -> int:
        return self.path.stat().st_size

    async def open_range(self, start: int, end: int) -> AsyncIterator[bytes]:
        chunk_size = self.chunk_size or get_settings()["chunk_size"]
        remaining = end - start + 1
        async with await anyio.open_file(self.path, "rb") as f:
            await f.seek(start)
            while remaining > 0:
                chunk = await f.read(min(chunk_size, remaining))
                if not chunk:
                    break
                remaining -= len(chunk)
                yield chunk

    def __repr__(self):
        return f"<LocalFile {str(self.path)!r}>"


@dataclass(frozen=True)
class ByteRange:
    """A parsed ``bytes=<start>-<end>`` header; either side may be missing."""

    start: int | None
    end: int | None

    @property
    def is_suffix(self) -> bool:
        return self.start is None


@dataclass(frozen=True)
class FileRangeOutcome:
    """The status, headers and body a file range request resolves to.

    ``body`` is ``None`` when nothing must be sent: for 400 and 416, and for a
    satisfiable range requested with HEAD.
    """

    status_code: int
    headers: Headers
    body: AsyncIterator[bytes] | None = None


def _parse_position(value: str) -> int | None:
    if value == "":
        return None
    # str.isdigit accepts non-ASCII digits, int() would then accept them too
    if not (value.isascii() and value.isdigit()):
        raise ValueError(f"Invalid byte position {value!r}")
    return int(value)


def parse_range_header(value: str | None) -> ByteRange | None:
    """Parse a single-range ``Range`` header value.

    Returns ``None`` when the value is missing or does not have the form
    ``bytes=<digits?>-<digits?>`` with at least one digit group, or when the
    start is past the end.

    Examples:
        >>> parse_range_header("bytes=0-99")
        ByteRange(start=0, end=99)
        >>> parse_range_header("bytes=-500")
        ByteRange(start=None, end=500)
        >>> parse_range_header("bytes=0-10,20-30") is None
        True
    """
    if value is None or not value.startswith(BYTES_UNIT):
        return None

    positions = value[len(BYTES_UNIT):]
    if positions.count("-") != 1:
        return None

    start_text, end_text = positions.split("-")
    try:
        start = _parse_position(start_text)
        end = _parse_position(end_text)
    except ValueError:
        return None

    if start is None and end is None:
        return None

    if start is not None and end is not None and start > end:
        return None

    return ByteRange(start, end)


def _as_range_file(file: RangeFile | str | os.PathLike) -> RangeFile:
    if isinstance(file, RangeFile):
        return file
    return LocalFile(file)


def resolve_file_range(
    method: str,
    file: RangeFile | str | os.PathLike,
    range_header: str | None,
    headers: HeadersInput = None,
) -> FileRangeOutcome:
    """Resolve a Range request against a file.

    Args:
        method: The request method; for ``HEAD`` no body is produced.
        file: A ``RangeFile`` or a filesystem path.
        range_header: The raw ``Range`` header value, or ``None``.
        headers: Base headers to include in every outcome.

    Returns:
        A 206 outcome carrying ``Content-Length``, ``Content-Range`` and the
        requested bytes, a 416 outcome when the range starts past the end of
        the file, or a 400 outcome for a missing file or a missing, malformed
        or backwards range.

    Only a range written backwards (``bytes=9-0``) is a 400. The
    satisfiability check runs after the suffix and open-end forms are
    computed, so ``bytes=-0``, or ``bytes=0-`` on an empty file, is a 416.
    """
    file = _as_range_file(file)
    base_headers = make_headers(headers)

    if range_header is None or not file.exists():
        logger.debug(f"Range request for {file!r} rejected: missing header or file")
        return FileRangeOutcome(HTTP_BAD_REQUEST, base_headers)

    byte_range = parse_range_header(range_header)
    if byte_range is None:
        logger.debug(f"Range request for {file!r} rejected: malformed range {range_header!r}")
        return FileRangeOutcome(HTTP_BAD_REQUEST, base_headers)

    length = file.size()
    if byte_range.is_suffix:
        start = max(0, length - byte_range.end)
        end = length - 1
    else:
        start = byte_range.start
        end = length - 1 if byte_range.end is None else byte_range.end

    if end >= length:
        end = length - 1

    if start >= length:
        logger.debug(f"Range {range_header!r} not satisfiable for {file!r} of {length} bytes")
        return FileRangeOutcome(HTTP_RANGE_NOT_SATISFIABLE, base_headers)

    range_headers = make_headers(
        base_headers,
        {
            CONTENT_LENGTH: end - start + 1,
            CONTENT_RANGE: f"bytes {start}-{end}/{length}",
        },
    )
    body = None if method.upper() == "HEAD" else file.open_range(start, end)
    logger.debug(f"Serving bytes {start}-{end}/{length} of {file!r}")
    return FileRangeOutcome(HTTP_PARTIAL_CONTENT, range_headers, body)
