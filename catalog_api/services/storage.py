from pathlib import Path
from uuid import uuid4

import aiofiles
import aiofiles.os
from loguru import logger

from catalog_api.errors import StorageWriteError
from catalog_api.models.upload import StoredArtifact


def generate_filename(extension: str) -> str:
    return f"{uuid4()}.{extension}"


def public_url_for(filename: str, url_prefix: str) -> str:
    return f"{url_prefix.rstrip('/')}/{filename}"


async def save_artifact(data: bytes, extension: str, upload_dir: Path, url_prefix: str) -> StoredArtifact:
    filename = generate_filename(extension)
    destination = upload_dir / filename

    try:
        await aiofiles.os.makedirs(upload_dir, exist_ok=True)
        async with aiofiles.open(destination, mode="wb") as f:
            await f.write(data)
    except OSError as exc:
        logger.error(
            "File write failed filename={} destination={} error={}",
            filename,
            str(destination),
            str(exc),
        )
        raise StorageWriteError(str(exc)) from exc

    logger.debug(
        "File saved filename={} destination={} size_bytes={}",
        filename,
        str(destination),
        len(data),
    )
    return StoredArtifact(
        filename=filename,
        extension=extension,
        size_bytes=len(data),
        public_url=public_url_for(filename, url_prefix),
    )
