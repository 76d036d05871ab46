# =============================================================================
# tests/test_multipart.py - Field Extractor Tests
# =============================================================================
# Raw multipart bodies are streamed through parse_upload_field, so parts with
# odd or missing Content-Disposition parameters reach the selection rule.
# =============================================================================

import pytest
from fastapi import HTTPException

from catalog_api.errors import NoFileProvided
from catalog_api.services.multipart import parse_upload_field

BOUNDARY = "testboundary"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


def build_body(*parts: tuple[str, bytes, str | None]) -> bytes:
    """Build a multipart body from (content-disposition, data, content-type) tuples."""
    body = b""
    for disposition, data, content_type in parts:
        body += f"--{BOUNDARY}\r\n".encode()
        body += f"Content-Disposition: {disposition}\r\n".encode()
        if content_type:
            body += f"Content-Type: {content_type}\r\n".encode()
        body += b"\r\n" + data + b"\r\n"
    return body + f"--{BOUNDARY}--\r\n".encode()


async def stream(body: bytes, chunk_size: int = 7):
    for offset in range(0, len(body), chunk_size):
        yield body[offset : offset + chunk_size]


@pytest.mark.asyncio
class TestParseUploadField:

    async def test_first_qualifying_part_selected(self):
        body = build_body(
            ('form-data; name="image"; filename="a.png"', b"first", "image/png"),
            ('form-data; name="image"; filename="b.png"', b"second", "image/png"),
        )

        field = await parse_upload_field(CONTENT_TYPE, stream(body))

        assert field.name == "image"
        assert field.declared_filename == "a.png"
        assert field.declared_content_type == "image/png"
        assert field.payload == b"first"

    async def test_nameless_part_with_filename_qualifies(self):
        body = build_body(('form-data; filename="photo.jpg"', b"kept", "image/jpeg"))

        field = await parse_upload_field(CONTENT_TYPE, stream(body))

        assert field.name is None
        assert field.declared_filename == "photo.jpg"
        assert field.payload == b"kept"

    async def test_unqualified_part_skipped(self):
        body = build_body(
            ("form-data", b"skipped", None),
            ('form-data; name=""; filename="unknown"', b"also skipped", None),
            ('form-data; name="file"; filename="a.png"', b"kept", "image/png"),
        )

        field = await parse_upload_field(CONTENT_TYPE, stream(body))

        assert field.name == "file"
        assert field.payload == b"kept"

    async def test_payload_spanning_many_chunks(self):
        data = bytes(range(256)) * 40
        body = build_body(('form-data; name="file"; filename="a.bin"', data, None))

        field = await parse_upload_field(CONTENT_TYPE, stream(body, chunk_size=3))

        assert field.payload == data

    async def test_missing_content_type_is_none(self):
        body = build_body(('form-data; name="file"; filename="photo.jpg"', b"abc", None))

        field = await parse_upload_field(CONTENT_TYPE, stream(body))

        assert field.declared_content_type is None

    async def test_named_part_without_filename_uses_sentinel(self):
        body = build_body(('form-data; name="title"', b"hello", None))

        field = await parse_upload_field(CONTENT_TYPE, stream(body))

        assert field.name == "title"
        assert field.declared_filename == "unknown"
        assert field.payload == b"hello"

    async def test_only_unqualified_parts_raises(self):
        body = build_body(("form-data", b"x", None), ('form-data; filename="unknown"', b"y", None))

        with pytest.raises(NoFileProvided):
            await parse_upload_field(CONTENT_TYPE, stream(body))

    async def test_empty_multipart_raises(self):
        with pytest.raises(NoFileProvided):
            await parse_upload_field(CONTENT_TYPE, stream(f"--{BOUNDARY}--\r\n".encode()))

    @pytest.mark.parametrize("content_type", [None, "", "application/json"])
    async def test_non_multipart_body_raises(self, content_type):
        with pytest.raises(NoFileProvided):
            await parse_upload_field(content_type, stream(b'{"a": 1}'))

    async def test_missing_boundary_rejected(self):
        with pytest.raises(HTTPException) as excinfo:
            await parse_upload_field("multipart/form-data", stream(b""))

        assert excinfo.value.status_code == 400

    async def test_malformed_body_rejected(self):
        with pytest.raises(HTTPException) as excinfo:
            await parse_upload_field(CONTENT_TYPE, stream(b"garbage that is not multipart"))

        assert excinfo.value.status_code == 400
