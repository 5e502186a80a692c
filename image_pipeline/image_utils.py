# Copyright 2025 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# ==============================================================================

from __future__ import annotations

import io
import logging
import secrets
import time
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError
from starlette.concurrency import run_in_threadpool

from shared.types import PreparedImage

logger = logging.getLogger(__name__)

MAX_DIMENSION = 1200
JPEG_QUALITY = 70
FILENAME_EXTENSION = ".jpg"

_BASE36_ALPHABET = "0123456789abcdefghijklmnopqrstuvwxyz"
_SUFFIX_LENGTH = 6


class ImagePreparationError(Exception):
    """Raised when a selected photo cannot be decoded or re-encoded."""


def compute_target_size(
    width: int, height: int, max_dimension: int = MAX_DIMENSION
) -> Tuple[int, int]:
    """
    Scales the longer edge down to max_dimension, preserving aspect ratio.

    Images already within the bound on both edges keep their size.

    Args:
        width (int): The source width in pixels.
        height (int): The source height in pixels.
        max_dimension (int): The bound for the longer edge.

    Returns:
        Tuple[int, int]: The target (width, height).
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")

    if width > height and width > max_dimension:
        return max_dimension, max(1, round(height * max_dimension / width))
    if height > max_dimension:
        return max(1, round(width * max_dimension / height)), max_dimension
    return width, height


def generate_filename(now_ms: int | None = None) -> str:
    """
    Returns `{millisecond timestamp}-{base36 suffix}.jpg`.

    No collision check is made; the random suffix makes a clash within the
    same millisecond vanishingly unlikely.
    """
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_BASE36_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{now_ms}-{suffix}{FILENAME_EXTENSION}"


def prepare_image(
    raw: bytes,
    *,
    max_dimension: int = MAX_DIMENSION,
    quality: int = JPEG_QUALITY,
) -> PreparedImage:
    """
    Decodes a user-selected photo, downscales it and re-encodes it as JPEG.

    Args:
        raw (bytes): The photo as uploaded, in any format Pillow can read.
        max_dimension (int): The bound for the longer edge.
        quality (int): The JPEG quality, 1-95.

    Returns:
        PreparedImage: The encoded payload with a freshly generated filename.

    Raises:
        ImagePreparationError: If the payload cannot be decoded or encoded, or
            exceeds Pillow's decompression-bomb pixel limit.
    """
    if not raw:
        raise ImagePreparationError("Empty image payload")

    try:
        with Image.open(io.BytesIO(raw)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            target = compute_target_size(img.width, img.height, max_dimension)
            # JPEG has no alpha channel.
            rgb = img.convert("RGB")
            if target != rgb.size:
                rgb = rgb.resize(target, Image.LANCZOS)
            buffer = io.BytesIO()
            rgb.save(buffer, format="JPEG", quality=quality)
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        OSError,
        ValueError,
    ) as e:
        raise ImagePreparationError(f"Could not prepare image: {e}") from e

    filename = generate_filename()
    logger.debug("Prepared %s at %dx%d", filename, target[0], target[1])
    return PreparedImage(
        payload=buffer.getvalue(),
        filename=filename,
        width=target[0],
        height=target[1],
    )


async def prepare_image_async(
    raw: bytes,
    *,
    max_dimension: int = MAX_DIMENSION,
    quality: int = JPEG_QUALITY,
) -> PreparedImage:
    """Runs prepare_image in a worker thread."""
    return await run_in_threadpool(
        prepare_image, raw, max_dimension=max_dimension, quality=quality
    )
