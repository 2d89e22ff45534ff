"""The ``Response`` entity and its body accessors."""

import json
import logging
import os
from collections.abc import AsyncIterator, Mapping
from typing import Any

from starlette.datastructures import Headers

from respond.config import get_settings
from respond.exceptions import BodyReadError, DecodingError, ParseError, SerializationError
from respond.http.body import BodyCell, BodyContent, BodySource
from respond.http.forms import FormDataParser, parse_form_data
from respond.http.headers import (
    CONTENT_LENGTH,
    CONTENT_TYPE,
    HeadersInput,
    charset_from_content_type,
    make_headers,
)
from respond.http.ranges import RangeFile, resolve_file_range

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"

_UNSET: Any = object()


class Response:
    """An HTTP response.

    Responses are immutable by convention: ``headers`` is a read-only,
    case-insensitive mapping and ``copy_with`` is the only way to derive a
    changed response. The body can be read once, as raw chunks through
    ``bytes()`` or as text through ``body()``. ``body()`` remembers its
    outcome, so ``body()``, ``json()`` and ``form_data()`` can be awaited any
    number of times, concurrently or not, and the underlying stream is still
    only drained once.

    Examples:
        ```python
        response = Response(body="Hello")
        response = Response.bytes_(body=b"\\x00\\x01")
        response = Response.json_(body={"ok": True}, status_code=201)
        response = Response.file(
            body="video.mp4", method=request.method, range_header=request.headers.get("range")
        )
        ```
    """

    __slots__ = ("_status_code", "_headers", "_source", "_body_cell")

    def __init__(
        self,
        status_code: int = 200,
        body: str | None = None,
        headers: HeadersInput = None,
        encoding: str | None = None,
    ):
        content = None
        if body is not None:
            content = body.encode(encoding or get_settings()["encoding"])

        merged = make_headers(headers)
        if encoding and body is not None:
            content_type = merged.get(CONTENT_TYPE)
            if content_type is None:
                merged = make_headers(merged, {CONTENT_TYPE: f"text/plain; charset={encoding}"})
            elif charset_from_content_type(content_type) is None:
                merged = make_headers(merged, {CONTENT_TYPE: f"{content_type}; charset={encoding}"})

        self._init(status_code, merged, BodySource(content))

    def _init(self, status_code: int, headers: Headers, source: BodySource, cell: BodyCell | None = None):
        self._status_code = status_code
        self._headers = headers
        self._source = source
        self._body_cell = cell or BodyCell()

    @classmethod
    def _create(
        cls, status_code: int, headers: Headers, source: BodySource, cell: BodyCell | None = None
    ) -> "Response":
        response = cls.__new__(cls)
        response._init(status_code, headers, source, cell)
        return response

    @classmethod
    def bytes_(
        cls,
        status_code: int = 200,
        body: BodyContent = None,
        headers: HeadersInput = None,
    ) -> "Response":
        """Create a response with a byte string body.

        ``body`` may also be a sync or async iterable of byte chunks, read lazily.
        """
        return cls._create(status_code, make_headers(headers), BodySource(body))

    @classmethod
    def json_(
        cls,
        status_code: int = 200,
        body: Any = _UNSET,
        headers: HeadersInput = None,
    ) -> "Response":
        """Create a response with a JSON encoded body.

        ``body`` defaults to an empty object. ``None`` produces an empty body
        that is still labelled ``application/json``. The JSON content type is
        applied after ``headers``, so it replaces any caller supplied type.

        Raises:
            SerializationError: If ``body`` cannot be encoded as JSON.
        """
        if body is _UNSET:
            body = {}

        content = None
        if body is not None:
            settings = get_settings()
            try:
                # NaN and Infinity are not JSON
                text = json.dumps(body, allow_nan=False, **settings["json"])
            except (TypeError, ValueError) as e:
                raise SerializationError(f"Response body is not JSON serializable: {e}") from e
            content = text.encode(settings["encoding"])

        return cls._create(
            status_code,
            make_headers(headers, {CONTENT_TYPE: JSON_CONTENT_TYPE}),
            BodySource(content),
        )

    @classmethod
    def file(
        cls,
        body: RangeFile | str | os.PathLike,
        headers: HeadersInput = None,
        method: str = "GET",
        range_header: str | None = None,
    ) -> "Response":
        """Create a response serving a byte range of a file.

        The status, headers and body are exactly what ``resolve_file_range``
        produces: 206 with the requested bytes (no body for ``HEAD``), 416 when
        the range starts past the end of the file, 400 otherwise.
        """
        outcome = resolve_file_range(method, body, range_header, headers)
        return cls._create(outcome.status_code, outcome.headers, BodySource(outcome.body))

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def headers(self) -> Headers:
        """The response headers, case-insensitive and read-only."""
        return self._headers

    @property
    def content_length(self) -> int | None:
        value = self._headers.get(CONTENT_LENGTH)
        if value is None or not value.isdigit():
            return None
        return int(value)

    @property
    def body_length(self) -> int | None:
        """Size of an in-memory body, ``None`` for streamed content."""
        return self._source.length

    @property
    def has_body(self) -> bool:
        """``False`` when there is nothing at all to send, as for ``HEAD``."""
        return not self._source.is_absent

    def copy_with(self, headers: Mapping[str, Any] | None = None, body: BodyContent | str = None) -> "Response":
        """Create a new response from this one with some values replaced.

        ``headers`` are merged onto the current headers, and a ``None`` value
        removes that header. A new ``body`` replaces the content; without one
        the new response shares this response's body and its read result.
        """
        new_headers = make_headers(self._headers, headers) if headers else self._headers

        if body is None:
            return self._create(self._status_code, new_headers, self._source, self._body_cell)

        if isinstance(body, str):
            body = body.encode(self.encoding)
        return self._create(self._status_code, new_headers, BodySource(body))

    @property
    def encoding(self) -> str:
        """The charset used to decode ``body()``."""
        return charset_from_content_type(self._headers.get(CONTENT_TYPE)) or get_settings()["encoding"]

    def bytes(self) -> AsyncIterator[bytes]:
        """Return the body as an async iterator of byte chunks.

        The iterator cannot be restarted and shares the single allowed read
        with ``body()``.

        Raises:
            BodyReadError: If the body has already been read.
        """
        return self._source.read()

    async def body(self) -> str:
        """Return the body decoded as text.

        The first call reads and decodes the body; every other call, including
        those made while the first is still reading, gets the same text or the
        same error.

        Raises:
            BodyReadError: If the body was already read through ``bytes()``
                or the stream failed.
            DecodingError: If the bytes are not valid in the response charset.
        """
        return await self._body_cell.materialize(self._read_text)

    async def _read_text(self) -> str:
        try:
            data = await self._source.read_all()
        except BodyReadError:
            raise
        except Exception as e:
            raise BodyReadError(f"Failed to read the response body: {e}") from e

        encoding = self.encoding
        try:
            return data.decode(encoding)
        except (UnicodeDecodeError, LookupError) as e:
            raise DecodingError(
                f"Failed to decode the response body as {encoding}: {e}", encoding
            ) from e

    async def form_data(self, parser: FormDataParser | None = None) -> dict[str, Any]:
        """Return the body decoded as form data."""
        return await (parser or parse_form_data)(self._headers, self.body)

    async def json(self) -> Any:
        """Return the body parsed as JSON.

        The value can be anything JSON represents: a dict, a list, a string,
        a number, a bool or ``None``.

        Raises:
            ParseError: If the body is not valid JSON.
        """
        text = await self.body()
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Response body is not valid JSON: {e}") from e

    def __repr__(self):
        return (
            f"<{self.__class__.__name__} "
            f"status={self._status_code} "
            f"headers={dict(self._headers)} "
            f"body={self._body_cell.state}"
            f">"
        )
