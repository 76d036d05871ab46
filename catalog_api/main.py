import sys
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from catalog_api.config import Settings, settings
from catalog_api.dependencies import static_token_verifier
from catalog_api.errors import UploadError
from catalog_api.middleware import BodySizeLimitMiddleware
from catalog_api.models.upload import ApiResponse
from catalog_api.routes.health import router as health_router
from catalog_api.routes.upload import router as upload_router


def _configure_logging(app_settings: Settings) -> None:
    logger.configure(patcher=lambda record: record["extra"].setdefault("request_id", "-"))
    logger.remove()
    logger.add(
        sys.stderr,
        level=app_settings.log_level.upper(),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level} | req={extra[request_id]} | {name}:{function}:{line} | {message}",
    )


def _error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse.error(message).model_dump(exclude_none=True),
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app_settings: Settings = app.state.settings
    _configure_logging(app_settings)
    app_settings.upload_path.mkdir(parents=True, exist_ok=True)
    executor = ThreadPoolExecutor(
        max_workers=app_settings.transcode_workers,
        thread_name_prefix="transcode",
    )
    app.state.transcode_executor = executor
    logger.info(
        "Starting app app_name={} debug={} log_level={} upload_dir={} transcode_workers={}",
        app_settings.app_name,
        app_settings.debug,
        app_settings.log_level,
        app_settings.upload_dir,
        app_settings.transcode_workers,
    )
    try:
        yield
    finally:
        executor.shutdown(wait=True)
        logger.info("Shutting down app app_name={}", app_settings.app_name)


def create_app(app_settings: Settings | None = None) -> FastAPI:
    app_settings = app_settings or settings
    app = FastAPI(title=app_settings.app_name, debug=app_settings.debug, lifespan=lifespan)
    app.state.settings = app_settings
    app.state.token_verifier = static_token_verifier(app_settings.admin_token)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=app_settings.max_request_body_bytes)

    @app.middleware("http")
    async def add_request_context(request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id", str(uuid4()))
        with logger.contextualize(request_id=request_id):
            start = time.perf_counter()
            logger.info("Request start method={} path={}", request.method, request.url.path)
            try:
                response = await call_next(request)
            except Exception:
                logger.exception("Request failed method={} path={}", request.method, request.url.path)
                raise
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "Request finish method={} path={} status={} duration_ms={:.2f}",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.exception_handler(UploadError)
    async def upload_error_handler(request: Request, exc: UploadError) -> JSONResponse:
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), headers=exc.headers)

    app.include_router(health_router)
    app.include_router(upload_router)
    app.mount(
        app_settings.public_url_prefix,
        StaticFiles(directory=app_settings.upload_dir, check_dir=False),
        name="uploads",
    )
    return app


app = create_app()
