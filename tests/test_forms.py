"""Tests for decoding response bodies as form data."""

import pytest

from respond.exceptions import FormDataError
from respond.http.forms import FormFile, MultipartFormDecoder, parse_form_data
from respond.http.headers import make_headers

MULTIPART_BODY = (
    "--XyZ\r\n"
    'Content-Disposition: form-data; name="title"\r\n'
    "\r\n"
    "Hello world\r\n"
    "--XyZ\r\n"
    'Content-Disposition: form-data; name="upload"; filename="notes.txt"\r\n'
    "Content-Type: text/plain\r\n"
    "\r\n"
    "line one\nline two\r\n"
    "--XyZ--\r\n"
)


def body_of(text: str):
    async def body() -> str:
        return text

    return body


class TestUrlEncodedForms:
    """Test application/x-www-form-urlencoded bodies."""

    @pytest.mark.asyncio
    async def test_fields(self):
        headers = make_headers({"Content-Type": "application/x-www-form-urlencoded"})

        result = await parse_form_data(headers, body_of("name=frog&email=frog%40pond.dev"))

        assert result == {"name": "frog", "email": "frog@pond.dev"}

    @pytest.mark.asyncio
    async def test_last_value_wins_and_blanks_are_kept(self):
        headers = make_headers({"Content-Type": "application/x-www-form-urlencoded; charset=utf-8"})

        result = await parse_form_data(headers, body_of("a=1&a=2&empty="))

        assert result == {"a": "2", "empty": ""}

    @pytest.mark.asyncio
    async def test_content_type_is_case_insensitive(self):
        headers = make_headers({"Content-Type": "Application/X-WWW-Form-Urlencoded"})

        assert await parse_form_data(headers, body_of("x=1")) == {"x": "1"}

    @pytest.mark.asyncio
    async def test_empty_body(self):
        headers = make_headers({"Content-Type": "application/x-www-form-urlencoded"})

        assert await parse_form_data(headers, body_of("")) == {}


class TestMultipartForms:
    """Test multipart/form-data bodies."""

    @pytest.mark.asyncio
    async def test_fields_and_files(self):
        headers = make_headers({"Content-Type": "multipart/form-data; boundary=XyZ"})

        result = await parse_form_data(headers, body_of(MULTIPART_BODY))

        assert result["title"] == "Hello world"
        upload = result["upload"]
        assert isinstance(upload, FormFile)
        assert upload.name == "upload"
        assert upload.filename == "notes.txt"
        assert upload.content_type == "text/plain"
        assert upload.content == b"line one\nline two"
        assert upload.size == 17
        assert upload.headers["content-type"] == "text/plain"

    @pytest.mark.asyncio
    async def test_missing_boundary(self):
        headers = make_headers({"Content-Type": "multipart/form-data"})

        with pytest.raises(FormDataError, match="boundary"):
            await parse_form_data(headers, body_of(MULTIPART_BODY))

    def test_decoder_requires_boundary(self):
        with pytest.raises(FormDataError):
            MultipartFormDecoder(b"")

    def test_malformed_multipart(self):
        with pytest.raises(FormDataError, match="Invalid multipart"):
            MultipartFormDecoder(b"XyZ").decode(b"this is not multipart at all")

    def test_parts_without_name_are_skipped(self):
        data = (
            b"--XyZ\r\n"
            b"Content-Disposition: form-data\r\n"
            b"\r\n"
            b"orphan\r\n"
            b"--XyZ\r\n"
            b'Content-Disposition: form-data; name="kept"\r\n'
            b"\r\n"
            b"value\r\n"
            b"--XyZ--\r\n"
        )

        assert MultipartFormDecoder(b"XyZ").decode(data) == {"kept": "value"}


class TestUnsupportedForms:
    """Test bodies that are not form data."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content_type", [None, "application/json", "text/plain"])
    async def test_invalid_mime_type(self, content_type):
        headers = make_headers({"Content-Type": content_type})
        calls = []

        async def body():
            calls.append(1)
            return "{}"

        with pytest.raises(FormDataError, match="invalid MIME type"):
            await parse_form_data(headers, body)

        assert calls == []
