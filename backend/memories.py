"""
Memory lifecycle: photo preparation, upload and record creation/update/deletion.

A record is only created after its photo is stored. On update with a new
photo the previous object is removed first, best-effort; if the new upload
then fails the memory keeps a dangling reference. No step is rolled back.
"""

from __future__ import annotations

import logging
from typing import Optional

from backend.gateway import DataGateway, Envelope
from image_pipeline.image_utils import (
    JPEG_QUALITY,
    MAX_DIMENSION,
    ImagePreparationError,
    prepare_image_async,
)
from shared.types import Memory

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100

MISSING_IMAGE_MESSAGE = "You need to pick a photo for this memory."
UPLOAD_FAILED_MESSAGE = "Could not upload the photo. Please try again."
IMAGE_UNREADABLE_MESSAGE = "Could not read the selected photo. Please pick another one."
SAVE_FAILED_MESSAGE = "Could not save the memory. Please try again."
UPDATE_FAILED_MESSAGE = "Could not update the memory."
DELETE_FAILED_MESSAGE = "Could not delete the memory. Please try again."


class MemoryValidationError(ValueError):
    """A required field is missing; nothing was sent anywhere."""


def _require_text(value: str | None, label: str) -> str:
    value = (value or "").strip()
    if not value:
        raise MemoryValidationError(f"{label} is required.")
    return value


def validate_fields(title: str | None, content: str | None, date: str | None) -> tuple[str, str, str]:
    title = _require_text(title, "Title")
    if len(title) > TITLE_MAX_LENGTH:
        raise MemoryValidationError(
            f"Title must be at most {TITLE_MAX_LENGTH} characters."
        )
    content = _require_text(content, "Content")
    date = _require_text(date, "Date")
    return title, content, date


class MemoryLifecycle:
    def __init__(
        self,
        gateway: DataGateway,
        *,
        max_dimension: int = MAX_DIMENSION,
        quality: int = JPEG_QUALITY,
    ):
        self.gateway = gateway
        self.max_dimension = max_dimension
        self.quality = quality

    async def _store_photo(self, image: bytes) -> Envelope:
        try:
            prepared = await prepare_image_async(
                image, max_dimension=self.max_dimension, quality=self.quality
            )
        except ImagePreparationError as e:
            logger.warning("Photo preparation failed: %s", e)
            return Envelope.fail(IMAGE_UNREADABLE_MESSAGE)

        uploaded = await self.gateway.upload_photo(
            prepared.filename, prepared.payload, prepared.content_type
        )
        if not uploaded.success:
            return Envelope.fail(UPLOAD_FAILED_MESSAGE)
        logger.info(
            "Stored photo %s (%dx%d)", prepared.filename, prepared.width, prepared.height
        )
        return uploaded

    async def create(
        self,
        title: str | None,
        content: str | None,
        date: str | None,
        image: Optional[bytes],
    ) -> Envelope[Memory]:
        """
        Validates, stores the photo, then creates the record.

        Raises:
            MemoryValidationError: If the photo or a required field is missing.
        """
        if not image:
            raise MemoryValidationError(MISSING_IMAGE_MESSAGE)
        title, content, date = validate_fields(title, content, date)

        stored = await self._store_photo(image)
        if not stored.success:
            return Envelope.fail(stored.error)

        result = await self.gateway.create_memory(title, content, date, stored.data)
        if not result.success:
            # The uploaded photo stays in the bucket unreferenced.
            logger.warning(
                "Memory record not created; photo %s is orphaned", stored.data.path
            )
            return Envelope.fail(SAVE_FAILED_MESSAGE)
        return result

    async def update(
        self,
        memory: Memory,
        title: str | None,
        content: str | None,
        date: str | None,
        image: Optional[bytes] = None,
    ) -> Envelope[Memory]:
        """
        Sends the edited fields; replaces the photo only when one is given.

        Raises:
            MemoryValidationError: If a required field is missing.
        """
        title, content, date = validate_fields(title, content, date)
        updates = {"title": title, "content": content, "date": date}

        if image:
            if memory.image_path:
                removed = await self.gateway.remove_photo(memory.image_path)
                if not removed.success:
                    logger.warning(
                        "Could not remove previous photo %s: %s",
                        memory.image_path,
                        removed.error,
                    )
            stored = await self._store_photo(image)
            if not stored.success:
                return Envelope.fail(stored.error)
            updates["image_url"] = stored.data.url
            updates["image_path"] = stored.data.path

        result = await self.gateway.update_memory(memory.id, updates)
        if not result.success:
            return Envelope.fail(
                UPDATE_FAILED_MESSAGE, not_found=result.not_found
            )
        return result

    async def delete(self, memory_id: str) -> Envelope[None]:
        result = await self.gateway.delete_memory(memory_id)
        if not result.success:
            return Envelope.fail(DELETE_FAILED_MESSAGE)
        return result
