class UploadError(Exception):
    """Base class for every terminal failure of an upload request.

    Carries the HTTP status the failure maps to, so the exception handler in
    ``catalog_api.main`` can render the response envelope without knowing the
    concrete type. ``code`` only appears in log lines, never in responses.
    """

    status_code = 500
    code = "UPLOAD_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NoFileProvided(UploadError):
    status_code = 400
    code = "NO_FILE_PROVIDED"

    def __init__(self):
        super().__init__("No file uploaded")


class UnsupportedType(UploadError):
    status_code = 400
    code = "UNSUPPORTED_TYPE"

    def __init__(self, content_type: str):
        super().__init__(f"Only image files are allowed, got: {content_type}")
        self.content_type = content_type


class EmptyPayload(UploadError):
    status_code = 400
    code = "EMPTY_PAYLOAD"

    def __init__(self):
        super().__init__("Empty file")


class PayloadTooLarge(UploadError):
    status_code = 400
    code = "PAYLOAD_TOO_LARGE"

    def __init__(self, size_bytes: int, limit_bytes: int):
        super().__init__(f"File too large (max {limit_bytes // (1024 * 1024)}MB)")
        self.size_bytes = size_bytes
        self.limit_bytes = limit_bytes


class DecodeError(UploadError):
    code = "DECODE_ERROR"

    def __init__(self, reason: str):
        super().__init__(f"Failed to decode image: {reason}")
        self.reason = reason


class EncodeError(UploadError):
    code = "ENCODE_ERROR"

    def __init__(self, reason: str):
        super().__init__(f"Failed to encode image: {reason}")
        self.reason = reason


class StorageWriteError(UploadError):
    code = "STORAGE_WRITE_ERROR"

    def __init__(self, reason: str):
        super().__init__(f"Failed to store file: {reason}")
        self.reason = reason


class UploadAborted(UploadError):
    status_code = 400
    code = "UPLOAD_ABORTED"

    def __init__(self):
        super().__init__("Upload aborted by client")
