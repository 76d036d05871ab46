from pathlib import Path

from loguru import logger

from catalog_api.models.upload import OCTET_STREAM, ClassifiedUpload, MediaType, UploadField

EXTENSION_TO_CONTENT_TYPE = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".svg": "image/svg+xml",
}

CONTENT_TYPE_TO_MEDIA_TYPE = {
    "image/jpeg": MediaType.JPEG,
    "image/png": MediaType.PNG,
    "image/gif": MediaType.GIF,
    "image/webp": MediaType.WEBP,
    "image/svg+xml": MediaType.SVG,
    OCTET_STREAM: MediaType.BINARY,
}


def infer_content_type(filename: str) -> str:
    suffix = Path(filename).suffix.lower()
    return EXTENSION_TO_CONTENT_TYPE.get(suffix, OCTET_STREAM)


def media_type_for(content_type: str) -> MediaType:
    media_type = CONTENT_TYPE_TO_MEDIA_TYPE.get(content_type)
    if media_type is not None:
        return media_type
    if content_type.startswith("image/"):
        return MediaType.OTHER_IMAGE
    return MediaType.UNKNOWN


def classify_upload(field: UploadField) -> ClassifiedUpload:
    """Resolve the type indicator for an upload.

    A declared content type wins and is used verbatim, even when it contradicts
    the filename. Without one, the filename extension is consulted, and
    anything unrecognised becomes the generic binary placeholder whose real
    format is only settled when the bytes are decoded.
    """
    if field.declared_content_type is not None:
        content_type = field.declared_content_type
        source = "declared"
    else:
        content_type = infer_content_type(field.declared_filename)
        source = "filename"

    classified = ClassifiedUpload(content_type=content_type, media_type=media_type_for(content_type))
    logger.debug(
        "Upload classified filename={} content_type={} source={} media_type={}",
        field.declared_filename,
        content_type,
        source,
        classified.media_type.value,
    )
    return classified
