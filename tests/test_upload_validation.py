# =============================================================================
# tests/test_upload_validation.py - Validation Guard Tests
# =============================================================================

import pytest

from catalog_api.config import MIB
from catalog_api.errors import EmptyPayload, PayloadTooLarge, UnsupportedType
from catalog_api.models.upload import ClassifiedUpload, MediaType, UploadField
from catalog_api.validators.upload import validate_upload

LIMIT = 50 * MIB


def _classified(content_type: str, media_type: MediaType = MediaType.PNG) -> ClassifiedUpload:
    return ClassifiedUpload(content_type=content_type, media_type=media_type)


def _field(size: int) -> UploadField:
    return UploadField(name="file", declared_filename="a.png", payload=b"\x00" * size)


class TestTypePolicy:

    @pytest.mark.parametrize("content_type", ["image/png", "image/svg+xml", "image/x-anything"])
    def test_image_types_accepted(self, content_type):
        validate_upload(_field(10), _classified(content_type), LIMIT)

    def test_binary_placeholder_accepted(self):
        validate_upload(_field(10), _classified("application/octet-stream", MediaType.BINARY), LIMIT)

    def test_text_rejected_with_type_in_error(self):
        with pytest.raises(UnsupportedType) as excinfo:
            validate_upload(_field(10), _classified("text/plain", MediaType.UNKNOWN), LIMIT)

        assert excinfo.value.content_type == "text/plain"
        assert "text/plain" in excinfo.value.message
        assert excinfo.value.status_code == 400

    def test_type_checked_before_size(self):
        with pytest.raises(UnsupportedType):
            validate_upload(_field(0), _classified("application/pdf", MediaType.UNKNOWN), LIMIT)


class TestSizePolicy:

    def test_exact_limit_accepted(self):
        validate_upload(_field(LIMIT), _classified("image/png"), LIMIT)

    def test_one_byte_over_limit_rejected(self):
        with pytest.raises(PayloadTooLarge) as excinfo:
            validate_upload(_field(LIMIT + 1), _classified("image/png"), LIMIT)

        assert excinfo.value.size_bytes == LIMIT + 1
        assert excinfo.value.limit_bytes == LIMIT
        assert excinfo.value.status_code == 400

    def test_empty_payload_rejected(self):
        with pytest.raises(EmptyPayload):
            validate_upload(_field(0), _classified("image/png"), LIMIT)
