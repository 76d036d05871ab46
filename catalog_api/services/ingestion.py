from concurrent.futures import Executor

from fastapi import Request
from loguru import logger
from starlette.requests import ClientDisconnect

from catalog_api.config import Settings
from catalog_api.errors import UploadAborted, UploadError
from catalog_api.models.upload import ClassifiedUpload, StoredArtifact, UploadField, UploadStage
from catalog_api.services.media_types import classify_upload
from catalog_api.services.multipart import extract_upload_field
from catalog_api.services.storage import save_artifact
from catalog_api.services.transcode import run_transcode
from catalog_api.validators.upload import validate_upload


def passthrough(field: UploadField) -> bytes:
    # Animation frames and vector markup do not survive a raster round trip.
    return field.payload


async def _normalize(
    field: UploadField,
    classified: ClassifiedUpload,
    app_settings: Settings,
    executor: Executor,
) -> bytes:
    if classified.is_passthrough:
        return passthrough(field)

    result = await run_transcode(
        executor,
        field.payload,
        app_settings.max_image_width,
        app_settings.webp_quality,
    )
    return result.payload


async def ingest_upload(request: Request, app_settings: Settings, executor: Executor) -> StoredArtifact:
    """Run one upload request through extraction, checks, processing and storage.

    Every failure is terminal for the request and is re-raised after logging
    the stage it happened in. Nothing is written before the storage step.
    """
    stage = UploadStage.RECEIVING
    try:
        field = await extract_upload_field(request)
        logger.info(
            "Upload received field={} filename={} content_type={} size_bytes={}",
            field.name,
            field.declared_filename,
            field.declared_content_type,
            field.size_bytes,
        )

        classified = classify_upload(field)
        stage = UploadStage.CLASSIFIED
        validate_upload(field, classified, app_settings.max_upload_bytes)

        stage = UploadStage.PASSTHROUGH if classified.is_passthrough else UploadStage.TRANSCODING
        logger.info(
            "Upload accepted content_type={} media_type={} stage={}",
            classified.content_type,
            classified.media_type.value,
            stage.value,
        )
        payload = await _normalize(field, classified, app_settings, executor)

        artifact = await save_artifact(
            payload,
            classified.output_extension,
            app_settings.upload_path,
            app_settings.public_url_prefix,
        )
        stage = UploadStage.PERSISTED
    except UploadError as exc:
        log = logger.warning if exc.status_code < 500 else logger.error
        log(
            "Upload failed stage={} state={} code={} error={}",
            stage.value,
            UploadStage.FAILED.value,
            exc.code,
            exc.message,
        )
        raise
    except ClientDisconnect as exc:
        logger.info("Upload aborted by client stage={} state={}", stage.value, UploadStage.FAILED.value)
        raise UploadAborted() from exc

    logger.info(
        "Upload stored stage={} filename={} size_bytes={} url={}",
        stage.value,
        artifact.filename,
        artifact.size_bytes,
        artifact.public_url,
    )
    return artifact
