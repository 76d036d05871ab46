from typing import AsyncIterator

from fastapi import HTTPException, Request, status
from loguru import logger
from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from catalog_api.errors import NoFileProvided
from catalog_api.models.upload import UNKNOWN_FILENAME, UploadField


def _decode(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


def part_qualifies(name: str | None, filename: str) -> bool:
    return bool(name) or filename != UNKNOWN_FILENAME


class UploadPartCollector:
    """Multipart parser callbacks that keep only the first qualifying part.

    A part qualifies when it has a field name or a real filename. Parts that
    qualify for neither are skipped without buffering their data, and nothing
    after the first qualifying part is kept.
    """

    def __init__(self) -> None:
        self.selected: UploadField | None = None
        self._headers: dict[str, bytes] = {}
        self._header_field = bytearray()
        self._header_value = bytearray()
        self._name: str | None = None
        self._filename = UNKNOWN_FILENAME
        self._content_type: str | None = None
        self._chunks: list[bytes] | None = None

    @property
    def callbacks(self) -> dict:
        return {
            "on_part_begin": self.on_part_begin,
            "on_header_field": self.on_header_field,
            "on_header_value": self.on_header_value,
            "on_header_end": self.on_header_end,
            "on_headers_finished": self.on_headers_finished,
            "on_part_data": self.on_part_data,
            "on_part_end": self.on_part_end,
        }

    def on_part_begin(self) -> None:
        self._headers = {}
        self._chunks = None

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.decode("latin-1").lower()] = bytes(self._header_value)
        self._header_field.clear()
        self._header_value.clear()

    def on_headers_finished(self) -> None:
        if self.selected is not None:
            return

        _, options = parse_options_header(self._headers.get("content-disposition", b""))
        name = _decode(options[b"name"]) if b"name" in options else None
        filename = _decode(options[b"filename"]) if b"filename" in options else UNKNOWN_FILENAME
        content_type = self._headers.get("content-type")
        logger.debug("Upload part name={} filename={}", name, filename)

        if not part_qualifies(name, filename):
            return
        self._name = name or None
        self._filename = filename
        self._content_type = content_type.decode("latin-1") if content_type is not None else None
        self._chunks = []

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._chunks is not None:
            self._chunks.append(bytes(data[start:end]))

    def on_part_end(self) -> None:
        if self._chunks is None:
            return
        self.selected = UploadField(
            name=self._name,
            declared_filename=self._filename,
            declared_content_type=self._content_type,
            payload=b"".join(self._chunks),
        )
        self._chunks = None


async def parse_upload_field(content_type_header: str | None, chunks: AsyncIterator[bytes]) -> UploadField:
    """Stream a multipart body and return its first qualifying part.

    Reading stops as soon as that part is complete. A body that is not
    multipart, or holds no qualifying part, raises ``NoFileProvided``.
    """
    media_type, options = parse_options_header(content_type_header or "")
    if media_type.lower() != b"multipart/form-data":
        raise NoFileProvided()
    boundary = options.get(b"boundary")
    if not boundary:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing boundary in multipart.")

    collector = UploadPartCollector()
    parser = MultipartParser(boundary, collector.callbacks)
    try:
        async for chunk in chunks:
            parser.write(chunk)
            if collector.selected is not None:
                break
        if collector.selected is None:
            parser.finalize()
    except MultipartParseError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Malformed multipart body: {exc}",
        ) from exc

    if collector.selected is None:
        raise NoFileProvided()
    return collector.selected


async def extract_upload_field(request: Request) -> UploadField:
    return await parse_upload_field(request.headers.get("content-type"), request.stream())
