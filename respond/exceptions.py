class RespondException(Exception):
    """Base exception for the respond package."""

    message: str

    def __init__(self, message: str | None = None, *args):
        super().__init__(message, *args)
        if message is not None:
            self.message = message
        elif args and args[0]:
            self.message = str(args[0])
        else:
            self.message = self.__class__.__name__

    def __str__(self) -> str:
        return self.message


class BodyReadError(RespondException):
    """Raised when a response body cannot be read.

    Either the one-shot body stream was already consumed, or draining it
    failed. Once raised through ``Response.body()`` the same error is
    returned to every later caller on that response.
    """


class DecodingError(BodyReadError):
    """Raised when the body bytes are not valid in the response charset."""

    def __init__(self, message: str, encoding: str):
        super().__init__(message)
        self.encoding = encoding


class SerializationError(RespondException, TypeError):
    """Raised when a JSON response body cannot be encoded."""


class ParseError(RespondException, ValueError):
    """Raised when a response body is not valid JSON."""


class FormDataError(RespondException, ValueError):
    """Raised when a response body cannot be decoded as form data."""


class HeaderError(RespondException, ValueError):
    """Raised when a header name or value cannot be encoded as latin-1."""



class ConfigError(RespondException):
    """Raised for invalid or unreadable configuration."""

    def __init__(self, message: str, path: str | None = None):
        super().__init__(message)
        self.path = path
