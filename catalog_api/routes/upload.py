from concurrent.futures import Executor

from fastapi import APIRouter, Depends, Request
from loguru import logger

from catalog_api.config import Settings
from catalog_api.dependencies import get_settings, get_transcode_executor, require_authenticated_caller
from catalog_api.models.upload import ApiResponse, UploadResult, UploadStage
from catalog_api.services.ingestion import ingest_upload

router = APIRouter(prefix="/api/upload", tags=["upload"])


@router.post(
    "",
    response_model=ApiResponse[UploadResult],
    response_model_exclude_none=True,
    dependencies=[Depends(require_authenticated_caller)],
)
async def upload_image(
    request: Request,
    app_settings: Settings = Depends(get_settings),
    executor: Executor = Depends(get_transcode_executor),
) -> ApiResponse[UploadResult]:
    artifact = await ingest_upload(request, app_settings, executor)
    logger.info("Upload responded state={} filename={}", UploadStage.RESPONDED.value, artifact.filename)
    return ApiResponse.ok(UploadResult(url=artifact.public_url, filename=artifact.filename))
