"""
Data access gateway over the record store and the photo bucket.

Every operation is async and returns an Envelope; failures from either
collaborator are logged and converted, never raised to the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

from starlette.concurrency import run_in_threadpool

from backend.db import (
    MEMORIES,
    PHRASES,
    REMINDERS,
    DbClient,
    OrderBy,
    RecordNotFoundError,
)
from backend.storage import StorageClient
from shared.types import ImageRef, Memory, Phrase, Reminder

logger = logging.getLogger(__name__)

T = TypeVar("T")

PHRASE_ORDER = (OrderBy("phrase_number"),)
MEMORY_ORDER = (OrderBy("date", descending=True),)
REMINDER_ORDER = (
    OrderBy("is_important", descending=True),
    OrderBy("important_at", descending=True),
    OrderBy("created_at", descending=True),
)


@dataclass
class Envelope(Generic[T]):
    """Uniform result of a gateway operation."""

    success: bool
    data: Optional[T] = None
    error: Optional[str] = None
    not_found: bool = False

    @classmethod
    def ok(cls, data: Optional[T] = None) -> "Envelope[T]":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, *, not_found: bool = False) -> "Envelope[T]":
        return cls(success=False, error=error, not_found=not_found)


class DataGateway:
    """Async access to phrases, memories, reminders and memory photos."""

    def __init__(self, db: DbClient, storage: StorageClient):
        self.db = db
        self.storage = storage

    async def _call(self, action: str, fn: Callable[..., Any], *args, **kwargs) -> Envelope:
        try:
            data = await run_in_threadpool(fn, *args, **kwargs)
        except RecordNotFoundError as e:
            logger.info("%s: %s", action, e)
            return Envelope.fail(str(e), not_found=True)
        except Exception as e:
            logger.exception("Error while trying to %s", action)
            return Envelope.fail(str(e) or e.__class__.__name__)
        return Envelope.ok(data)

    def close(self) -> None:
        self.db.close()

    # Phrases

    async def list_phrases(self) -> Envelope[list[Phrase]]:
        def run():
            rows = self.db.select(PHRASES, order_by=PHRASE_ORDER)
            return [Phrase.from_row(row) for row in rows]

        return await self._call("list phrases", run)

    async def get_phrase(self, phrase_id: int) -> Envelope[Phrase]:
        def run():
            return Phrase.from_row(self.db.get(PHRASES, phrase_id))

        return await self._call("get phrase", run)

    # Memories

    async def list_memories(self) -> Envelope[list[Memory]]:
        def run():
            rows = self.db.select(MEMORIES, order_by=MEMORY_ORDER)
            return [Memory.from_row(row) for row in rows]

        return await self._call("list memories", run)

    async def get_memory(self, memory_id: str) -> Envelope[Memory]:
        def run():
            return Memory.from_row(self.db.get(MEMORIES, memory_id))

        return await self._call("get memory", run)

    async def create_memory(
        self, title: str, content: str, date: str, image: ImageRef
    ) -> Envelope[Memory]:
        def run():
            row = self.db.insert(
                MEMORIES,
                {
                    "title": title,
                    "content": content,
                    "date": date,
                    "image_url": image.url,
                    "image_path": image.path,
                },
            )
            return Memory.from_row(row)

        return await self._call("create memory", run)

    async def update_memory(self, memory_id: str, updates: dict) -> Envelope[Memory]:
        def run():
            values = {**updates, "updated_at": time.time()}
            return Memory.from_row(self.db.update(MEMORIES, memory_id, values))

        return await self._call("update memory", run)

    async def delete_memory(self, memory_id: str) -> Envelope[None]:
        def run():
            try:
                image_path = self.db.get(MEMORIES, memory_id).get("image_path")
            except RecordNotFoundError:
                image_path = None
            if image_path:
                try:
                    self.storage.delete([image_path])
                except Exception:
                    logger.warning(
                        "Could not delete photo %s of memory %s",
                        image_path,
                        memory_id,
                        exc_info=True,
                    )
            self.db.delete(MEMORIES, memory_id)

        return await self._call("delete memory", run)

    async def upload_photo(
        self, path: str, payload: bytes, content_type: str = "image/jpeg"
    ) -> Envelope[ImageRef]:
        def run():
            self.storage.upload_bytes(path, payload, content_type)
            return ImageRef(url=self.storage.get_public_url(path), path=path)

        return await self._call("upload photo", run)

    async def remove_photo(self, path: str) -> Envelope[None]:
        return await self._call("remove photo", self.storage.delete, [path])

    # Reminders

    async def list_reminders(self) -> Envelope[list[Reminder]]:
        def run():
            rows = self.db.select(REMINDERS, order_by=REMINDER_ORDER)
            return [Reminder.from_row(row) for row in rows]

        return await self._call("list reminders", run)

    async def get_reminder(self, reminder_id: str) -> Envelope[Reminder]:
        def run():
            return Reminder.from_row(self.db.get(REMINDERS, reminder_id))

        return await self._call("get reminder", run)

    async def create_reminder(self, content: str) -> Envelope[Reminder]:
        def run():
            row = self.db.insert(
                REMINDERS,
                {"content": content, "is_important": False, "is_completed": False},
            )
            return Reminder.from_row(row)

        return await self._call("create reminder", run)

    async def update_reminder(self, reminder_id: str, updates: dict) -> Envelope[Reminder]:
        def run():
            values = {**updates, "updated_at": time.time()}
            return Reminder.from_row(self.db.update(REMINDERS, reminder_id, values))

        return await self._call("update reminder", run)

    async def toggle_reminder_complete(
        self, reminder_id: str, is_completed: bool
    ) -> Envelope[Reminder]:
        return await self.update_reminder(reminder_id, {"is_completed": is_completed})

    async def delete_reminder(self, reminder_id: str) -> Envelope[None]:
        return await self._call("delete reminder", self.db.delete, REMINDERS, reminder_id)
