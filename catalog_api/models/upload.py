from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel

UNKNOWN_FILENAME = "unknown"
OCTET_STREAM = "application/octet-stream"

T = TypeVar("T")


class MediaType(str, Enum):
    JPEG = "jpeg"
    PNG = "png"
    GIF = "gif"
    WEBP = "webp"
    SVG = "svg"
    OTHER_IMAGE = "other_image"
    BINARY = "binary"
    UNKNOWN = "unknown"


PASSTHROUGH_EXTENSIONS = {MediaType.SVG: "svg", MediaType.GIF: "gif"}
TRANSCODED_EXTENSION = "webp"


class UploadStage(str, Enum):
    RECEIVING = "receiving"
    CLASSIFIED = "classified"
    PASSTHROUGH = "passthrough"
    TRANSCODING = "transcoding"
    PERSISTED = "persisted"
    RESPONDED = "responded"
    FAILED = "failed"


class UploadField(BaseModel):
    name: str | None = None
    declared_filename: str = UNKNOWN_FILENAME
    declared_content_type: str | None = None
    payload: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.payload)


class ClassifiedUpload(BaseModel):
    content_type: str
    media_type: MediaType

    @property
    def is_passthrough(self) -> bool:
        return self.media_type in PASSTHROUGH_EXTENSIONS

    @property
    def output_extension(self) -> str:
        return PASSTHROUGH_EXTENSIONS.get(self.media_type, TRANSCODED_EXTENSION)


class StoredArtifact(BaseModel):
    filename: str
    extension: str
    size_bytes: int
    public_url: str


class UploadResult(BaseModel):
    url: str
    filename: str


class ApiResponse(BaseModel, Generic[T]):
    success: bool
    data: T | None = None
    message: str | None = None

    @classmethod
    def ok(cls, data: T) -> "ApiResponse[T]":
        return cls(success=True, data=data)

    @classmethod
    def error(cls, message: str) -> "ApiResponse[T]":
        return cls(success=False, message=message)
