"""Writing responses to an ASGI server.

The transport only needs the status, the headers and the body chunks. A
response without a body source, such as a ``HEAD`` range response, is sent as
headers only.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from starlette.background import BackgroundTask
from starlette.responses import StreamingResponse

from respond.http.headers import CONTENT_LENGTH
from respond.http.responses import Response

logger = logging.getLogger(__name__)

Send = Callable[[dict[str, Any]], Awaitable[None]]


def _raw_headers(response: Response) -> list[tuple[bytes, bytes]]:
    raw_headers = [
        (name.encode("latin-1"), value.encode("latin-1"))
        for name, value in response.headers.items()
    ]

    length = response.body_length
    if CONTENT_LENGTH not in response.headers and response.has_body and length is not None:
        raw_headers.append((b"content-length", str(length).encode("latin-1")))

    return raw_headers


async def send_response(response: Response, send: Send) -> None:
    """Send a response through an ASGI ``send`` callable."""
    await send(
        {
            "type": "http.response.start",
            "status": response.status_code,
            "headers": _raw_headers(response),
        }
    )

    if not response.has_body:
        logger.debug(f"Sent headers only for {response!r}")
        await send({"type": "http.response.body", "body": b"", "more_body": False})
        return

    async for chunk in response.bytes():
        if chunk:
            await send({"type": "http.response.body", "body": chunk, "more_body": True})

    await send({"type": "http.response.body", "body": b"", "more_body": False})


class HeadersOnlyResponse(StreamingResponse):
    """A ``StreamingResponse`` that never writes body messages."""

    async def stream_response(self, send: Send) -> None:
        await send(
            {
                "type": "http.response.start",
                "status": self.status_code,
                "headers": self.raw_headers,
            }
        )
        await send({"type": "http.response.body", "body": b"", "more_body": False})


async def _no_content():
    return
    yield


def to_starlette(response: Response, background: BackgroundTask | None = None) -> StreamingResponse:
    """Wrap a response for applications built on Starlette."""
    if not response.has_body:
        starlette_response = HeadersOnlyResponse(
            _no_content(), status_code=response.status_code, background=background
        )
    else:
        starlette_response = StreamingResponse(
            response.bytes(), status_code=response.status_code, background=background
        )

    starlette_response.raw_headers = _raw_headers(response)
    return starlette_response
