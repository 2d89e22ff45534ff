__version__ = "0.1.0"

from respond.exceptions import (  # noqa: E402
    BodyReadError,
    ConfigError,
    DecodingError,
    FormDataError,
    HeaderError,
    ParseError,
    RespondException,
    SerializationError,
)
from respond.http.responses import Response  # noqa: E402

__all__ = [
    "BodyReadError",
    "ConfigError",
    "DecodingError",
    "FormDataError",
    "HeaderError",
    "ParseError",
    "RespondException",
    "Response",
    "SerializationError",
]
