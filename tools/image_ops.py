"""Image preprocessing for room scans: decoding, downscaling and palette quantization."""

from __future__ import annotations

import base64
import binascii
import io
import logging
from pathlib import Path
from typing import List, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from models.palette import rgb_to_hex

logger = logging.getLogger(__name__)

MAX_SIDE = 640
SAMPLE_STEP = 16
BUCKET_SIZE = 32
PALETTE_SIZE = 5

ImageInput = Union[bytes, bytearray, str, Path, Image.Image]


class InvalidImageError(ValueError):
    """Raised when scan input cannot be decoded as an image."""


def decode_base64_image(payload: str) -> bytes:
    """Decode a raw or ``data:image/...;base64,`` encoded image string."""

    raw = payload.split(",", 1)[1] if payload.startswith("data:") else payload
    try:
        return base64.b64decode(raw, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidImageError("Image payload is not valid base64") from exc


def load_image(source: ImageInput) -> Image.Image:
    """Open bytes, a path or an existing PIL image as an RGB image."""

    if isinstance(source, Image.Image):
        return source.convert("RGB")
    try:
        if isinstance(source, (bytes, bytearray)):
            image = Image.open(io.BytesIO(source))
        else:
            image = Image.open(Path(source))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise InvalidImageError(f"Could not decode image: {exc}") from exc
    return image.convert("RGB")


def downscale(image: Image.Image, max_side: int = MAX_SIDE) -> Image.Image:
    """Return a copy whose longest side is at most ``max_side`` pixels."""

    width, height = image.size
    scale = min(1.0, max_side / max(width, height))
    if scale >= 1.0:
        return image.copy()
    size = (max(1, round(width * scale)), max(1, round(height * scale)))
    logger.debug("downscaling %sx%s -> %sx%s", width, height, *size)
    return image.resize(size, Image.Resampling.BILINEAR)


def extract_palette(
    image: Image.Image,
    sample_step: int = SAMPLE_STEP,
    bucket_size: int = BUCKET_SIZE,
    top_n: int = PALETTE_SIZE,
) -> List[str]:
    """Return the ``top_n`` most frequent coarse color buckets as hex strings.

    Pixels are sampled on a ``sample_step`` grid and each channel is rounded
    to the nearest multiple of ``bucket_size``. Ties keep bucket order.
    """

    pixels = np.asarray(image.convert("RGB"))[::sample_step, ::sample_step].reshape(-1, 3)
    if pixels.size == 0:
        return []
    quantized = np.clip(np.round(pixels / bucket_size) * bucket_size, 0, 255).astype(np.int32)
    buckets, counts = np.unique(quantized, axis=0, return_counts=True)
    order = np.argsort(-counts, kind="stable")[:top_n]
    return [rgb_to_hex(*buckets[idx]) for idx in order]


__all__ = [
    "ImageInput",
    "InvalidImageError",
    "decode_base64_image",
    "load_image",
    "downscale",
    "extract_palette",
    "MAX_SIDE",
]
