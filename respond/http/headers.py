"""Case-insensitive, read-only response headers."""

from collections.abc import Mapping
from typing import Any

from starlette.datastructures import Headers

from respond.exceptions import HeaderError

HeadersInput = Mapping[str, Any] | None

CONTENT_TYPE = "content-type"
CONTENT_LENGTH = "content-length"
CONTENT_RANGE = "content-range"


def make_headers(*mappings: HeadersInput) -> Headers:
    """Merge header mappings into an immutable ``Headers`` instance.

    Mappings are applied left to right and keys compare case-insensitively,
    so a later ``content-type`` replaces an earlier ``Content-Type``. Values
    are converted with ``str``; a ``None`` value removes the header.

    Raises:
        HeaderError: If a name or value has characters outside latin-1,
            which HTTP/1.1 headers cannot carry.
    """
    merged: dict[str, str] = {}
    for mapping in mappings:
        if not mapping:
            continue

        for name, value in mapping.items():
            key = name.lower()
            if value is None:
                merged.pop(key, None)
            else:
                merged[key] = str(value)

    try:
        return Headers(headers=merged)
    except UnicodeEncodeError as e:
        raise HeaderError(f"Header names and values must be latin-1 encodable: {e}") from e


def charset_from_content_type(content_type: str | None) -> str | None:
    """Return the ``charset`` parameter of a content type, if it has one."""
    if not content_type:
        return None

    for param in content_type.split(";")[1:]:
        name, _, value = param.partition("=")
        if name.strip().lower() == "charset" and value.strip():
            return value.strip().strip('"')

    return None
