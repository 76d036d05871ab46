import asyncio
import io
from concurrent.futures import Executor

from loguru import logger
from PIL import Image
from pydantic import BaseModel

from catalog_api.errors import DecodeError, EncodeError

WEBP_MODES = {"RGB", "RGBA"}
DECODE_ERRORS = (OSError, ValueError, SyntaxError, Image.DecompressionBombError)


class TranscodeResult(BaseModel):
    payload: bytes
    source_format: str | None
    source_size: tuple[int, int]
    output_size: tuple[int, int]


def scaled_size(width: int, height: int, max_width: int) -> tuple[int, int]:
    if width <= max_width:
        return width, height
    return max_width, max(1, round(height * max_width / width))


def decode_image(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except DECODE_ERRORS as exc:
        raise DecodeError(str(exc) or exc.__class__.__name__) from exc
    return image


def _prepare_for_webp(image: Image.Image) -> Image.Image:
    if image.mode in WEBP_MODES:
        return image
    has_alpha = "A" in image.getbands() or "transparency" in image.info
    return image.convert("RGBA" if has_alpha else "RGB")


def encode_webp(image: Image.Image, quality: int) -> bytes:
    buffer = io.BytesIO()
    try:
        _prepare_for_webp(image).save(buffer, format="WEBP", quality=quality)
    except (OSError, ValueError, KeyError) as exc:
        raise EncodeError(str(exc) or exc.__class__.__name__) from exc
    return buffer.getvalue()


def transcode_to_webp(data: bytes, max_width: int, quality: int) -> TranscodeResult:
    """Decode, shrink to ``max_width`` when wider, and re-encode as WEBP.

    The concrete input format is detected from the bytes themselves, so a
    mislabelled upload is decoded as what it really is. Pure CPU work; call it
    through :func:`run_transcode` from async code.
    """
    image = decode_image(data)
    try:
        source_format = image.format
        source_size = image.size
        target_size = scaled_size(*source_size, max_width)
        # Pillow resizes P and 1 mode images with NEAREST whatever filter is asked for.
        prepared = _prepare_for_webp(image)
        if target_size != source_size:
            prepared = prepared.resize(target_size, Image.Resampling.LANCZOS)
        payload = encode_webp(prepared, quality)
    finally:
        image.close()

    return TranscodeResult(
        payload=payload,
        source_format=source_format,
        source_size=source_size,
        output_size=target_size,
    )


async def run_transcode(executor: Executor, data: bytes, max_width: int, quality: int) -> TranscodeResult:
    loop = asyncio.get_running_loop()
    result = await loop.run_in_executor(executor, transcode_to_webp, data, max_width, quality)
    logger.debug(
        "Transcode finished source_format={} source_size={} output_size={} size_bytes={}",
        result.source_format,
        result.source_size,
        result.output_size,
        len(result.payload),
    )
    return result
