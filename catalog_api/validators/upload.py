from catalog_api.errors import EmptyPayload, PayloadTooLarge, UnsupportedType
from catalog_api.models.upload import OCTET_STREAM, ClassifiedUpload, UploadField


def validate_media_type(classified: ClassifiedUpload) -> None:
    content_type = classified.content_type
    if not content_type.startswith("image/") and content_type != OCTET_STREAM:
        raise UnsupportedType(content_type)


def validate_payload_size(field: UploadField, max_bytes: int) -> None:
    size = field.size_bytes
    if size == 0:
        raise EmptyPayload()
    if size > max_bytes:
        raise PayloadTooLarge(size, max_bytes)


def validate_upload(field: UploadField, classified: ClassifiedUpload, max_bytes: int) -> None:
    """Type policy first, then size policy. Raises on the first violation."""
    validate_media_type(classified)
    validate_payload_size(field, max_bytes)
