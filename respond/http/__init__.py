"""HTTP layer for respond - responses, byte ranges, body reading and forms."""

from .body import BodyCell, BodySource
from .forms import FormDataParser, FormFile, parse_form_data
from .headers import make_headers
from .ranges import (
    ByteRange,
    FileRangeOutcome,
    LocalFile,
    RangeFile,
    parse_range_header,
    resolve_file_range,
)
from .responses import Response

__all__ = [
    "BodyCell",
    "BodySource",
    "ByteRange",
    "FileRangeOutcome",
    "FormDataParser",
    "FormFile",
    "LocalFile",
    "RangeFile",
    "Response",
    "make_headers",
    "parse_form_data",
    "parse_range_header",
    "resolve_file_range",
]
