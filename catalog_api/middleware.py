from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from catalog_api.models.upload import ApiResponse


def _too_large_message(limit_bytes: int) -> str:
    return f"Request body too large (max {limit_bytes // (1024 * 1024)}MB)"


class BodySizeLimitMiddleware:
    """Cap the size of every request body at the transport edge.

    Requests announcing a larger ``Content-Length`` are refused before the
    application runs. Bodies without a usable length are counted as they are
    read and abort with HTTP 413 once they cross the limit.
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        content_length = Headers(scope=scope).get("content-length")
        if content_length is not None and content_length.isdigit() and int(content_length) > self.max_body_bytes:
            logger.warning(
                "Request body rejected path={} content_length={} limit_bytes={}",
                scope.get("path"),
                content_length,
                self.max_body_bytes,
            )
            response = JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content=ApiResponse.error(_too_large_message(self.max_body_bytes)).model_dump(exclude_none=True),
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise HTTPException(
                        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                        detail=_too_large_message(self.max_body_bytes),
                    )
            return message

        await self.app(scope, limited_receive, send)
