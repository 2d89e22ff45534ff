"""Tests for sending responses through ASGI and Starlette."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.routing import Route

from respond import Response
from respond.asgi import send_response, to_starlette
from tests.helpers import FILE_CONTENT, CountingStream


def make_app(sample_file):
    """Minimal ASGI app serving ``sample_file`` at /file and JSON at /json."""

    async def app(scope, receive, send):
        request_headers = {
            name.decode("latin-1"): value.decode("latin-1") for name, value in scope["headers"]
        }
        if scope["path"] == "/json":
            response = Response.json_(body={"ok": True})
        elif scope["path"] == "/stream":
            response = Response.bytes_(body=CountingStream(b"chunk-1 ", b"chunk-2"))
        else:
            response = Response.file(
                body=sample_file,
                headers={"Content-Type": "application/octet-stream", "Accept-Ranges": "bytes"},
                method=scope["method"],
                range_header=request_headers.get("range"),
            )
        await send_response(response, send)

    return app


@pytest_asyncio.fixture
async def client(sample_file):
    transport = ASGITransport(app=make_app(sample_file))
    async with AsyncClient(transport=transport, base_url="http://testserver") as c:
        yield c


@pytest_asyncio.fixture
async def starlette_client(sample_file):
    async def serve_file(request: Request):
        return to_starlette(
            Response.file(
                body=sample_file,
                method=request.method,
                range_header=request.headers.get("range"),
            )
        )

    app = Starlette(routes=[Route("/file", serve_file, methods=["GET", "HEAD"])])
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as c:
        yield c


class TestSendResponse:
    """Test writing responses to an ASGI send callable."""

    @pytest.mark.asyncio
    async def test_partial_content(self, client):
        response = await client.get("/file", headers={"Range": "bytes=10-19"})

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 10-19/100"
        assert response.headers["content-length"] == "10"
        assert response.headers["accept-ranges"] == "bytes"
        assert response.content == FILE_CONTENT[10:20]

    @pytest.mark.asyncio
    async def test_head_sends_headers_only(self, client):
        response = await client.head("/file", headers={"Range": "bytes=10-19"})

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 10-19/100"
        assert response.headers["content-length"] == "10"
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_bad_request(self, client):
        response = await client.get("/file", headers={"Range": "bytes=0-10,20-30"})

        assert response.status_code == 400
        assert response.content == b""
        assert "content-range" not in response.headers

    @pytest.mark.asyncio
    async def test_missing_range(self, client):
        assert (await client.get("/file")).status_code == 400

    @pytest.mark.asyncio
    async def test_not_satisfiable(self, client):
        response = await client.get("/file", headers={"Range": "bytes=1000-"})

        assert response.status_code == 416
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_json_gets_content_length(self, client):
        response = await client.get("/json")

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.headers["content-length"] == str(len(b'{"ok": true}'))
        assert response.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_streamed_body(self, client):
        response = await client.get("/stream")

        assert response.content == b"chunk-1 chunk-2"
        assert "content-length" not in response.headers

    @pytest.mark.asyncio
    async def test_send_messages(self, sample_file):
        messages = []

        async def send(message):
            messages.append(message)

        await send_response(Response.file(body=sample_file, range_header="bytes=0-4"), send)

        assert messages[0]["type"] == "http.response.start"
        assert messages[0]["status"] == 206
        assert (b"content-range", b"bytes 0-4/100") in messages[0]["headers"]
        assert messages[1] == {"type": "http.response.body", "body": FILE_CONTENT[:5], "more_body": True}
        assert messages[-1] == {"type": "http.response.body", "body": b"", "more_body": False}


class TestStarletteBridge:
    """Test serving responses from a Starlette application."""

    @pytest.mark.asyncio
    async def test_partial_content(self, starlette_client):
        response = await starlette_client.get("/file", headers={"Range": "bytes=-5"})

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 95-99/100"
        assert response.content == FILE_CONTENT[95:]

    @pytest.mark.asyncio
    async def test_head(self, starlette_client):
        response = await starlette_client.head("/file", headers={"Range": "bytes=0-9"})

        assert response.status_code == 206
        assert response.headers["content-length"] == "10"
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_not_satisfiable(self, starlette_client):
        response = await starlette_client.get("/file", headers={"Range": "bytes=100-"})

        assert response.status_code == 416
