"""Form data decoding for response bodies.

``Response.form_data()`` only depends on the ``FormDataParser`` contract: a
callable receiving the response headers and a deferred accessor for the whole
body text. ``parse_form_data`` is the default implementation, handling
``application/x-www-form-urlencoded`` and ``multipart/form-data``.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qsl

from python_multipart.multipart import MultipartParser as PBaseParser
from python_multipart.multipart import parse_options_header
from starlette.datastructures import Headers

from respond.config import get_settings
from respond.exceptions import FormDataError
from respond.http.headers import CONTENT_TYPE, charset_from_content_type

URLENCODED = "application/x-www-form-urlencoded"
MULTIPART = "multipart/form-data"

FormDataParser = Callable[[Headers, Callable[[], Awaitable[str]]], Awaitable[dict[str, Any]]]


@dataclass
class FormFile:
    """A file part of a multipart body.

    Attributes:
        name: The form field the file was sent under
        filename: Original filename, if the part declared one
        content_type: MIME type declared by the part
        content: The file bytes
        headers: All headers of the part, with lower-cased names
    """

    name: str
    filename: str | None
    content_type: str | None
    content: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def size(self) -> int:
        return len(self.content)


class MultipartFormDecoder:
    """Collects the fields and files of a multipart body.

    Wraps ``python_multipart``'s callback based ``MultipartParser``; a single
    instance decodes a single body.
    """

    def __init__(self, boundary: bytes, charset: str = "utf-8"):
        if not boundary:
            raise FormDataError("Boundary is required for multipart form data")
        self.boundary = boundary
        self.charset = charset

        self.values: dict[str, str | FormFile] = {}

        self._part_headers: dict[str, str] = {}
        self._part_data = bytearray()
        self._header_name = bytearray()
        self._header_value = bytearray()

    def _on_part_begin(self):
        self._part_headers = {}
        self._part_data.clear()

    def _on_part_data(self, data: bytes, start: int, end: int):
        self._part_data.extend(data[start:end])

    def _on_header_field(self, data: bytes, start: int, end: int):
        self._header_name.extend(data[start:end])

    def _on_header_value(self, data: bytes, start: int, end: int):
        self._header_value.extend(data[start:end])

    def _on_header_end(self):
        name = self._header_name.decode("latin-1").strip().lower()
        value = self._header_value.decode(self.charset, errors="replace").strip()
        if name:
            self._part_headers[name] = value
        self._header_name.clear()
        self._header_value.clear()

    def _on_part_end(self):
        _, params = parse_options_header(self._part_headers.get("content-disposition"))
        name_bytes = params.get(b"name")
        if not name_bytes:
            return

        name = name_bytes.decode(self.charset, errors="replace")
        filename_bytes = params.get(b"filename")
        if filename_bytes is None:
            self.values[name] = self._part_data.decode(self.charset, errors="replace")
            return

        self.values[name] = FormFile(
            name=name,
            filename=filename_bytes.decode(self.charset, errors="replace") or None,
            content_type=self._part_headers.get("content-type"),
            content=bytes(self._part_data),
            headers=dict(self._part_headers),
        )

    def decode(self, data: bytes) -> dict[str, str | FormFile]:
        parser = PBaseParser(
            self.boundary,
            {
                "on_part_begin": self._on_part_begin,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
            },
        )
        try:
            parser.write(data)
            parser.finalize()
        except Exception as e:
            raise FormDataError(f"Invalid multipart form data: {e}") from e

        return self.values


async def parse_form_data(
    headers: Headers, body: Callable[[], Awaitable[str]]
) -> dict[str, str | FormFile]:
    """Decode a body as form data based on its ``Content-Type``.

    URL-encoded bodies map each field to its last value. Multipart bodies map
    text parts to strings and file parts to ``FormFile``.

    Raises:
        FormDataError: If the content type is neither form MIME type, or a
            multipart body has no boundary or cannot be decoded.
    """
    content_type_header = headers.get(CONTENT_TYPE, "")
    content_type, params = parse_options_header(content_type_header)
    content_type = content_type.decode("latin-1").lower()
    charset = charset_from_content_type(content_type_header) or get_settings()["encoding"]

    if content_type == URLENCODED:
        text = await body()
        return dict(parse_qsl(text, keep_blank_values=True, encoding=charset))

    if content_type == MULTIPART:
        boundary = params.get(b"boundary")
        if not boundary:
            raise FormDataError("Multipart form data is missing a boundary.")
        text = await body()
        return MultipartFormDecoder(boundary, charset).decode(text.encode(charset))

    raise FormDataError(
        f"Body could not be parsed as form data due to an invalid MIME type "
        f"'{content_type_header}'. Expected '{URLENCODED}' or '{MULTIPART}'."
    )
