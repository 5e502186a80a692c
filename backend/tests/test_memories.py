import io
import unittest
from unittest.mock import AsyncMock, MagicMock

from PIL import Image

from backend.db import InMemoryDbClient
from backend.gateway import DataGateway, Envelope
from backend.memories import (
    DELETE_FAILED_MESSAGE,
    IMAGE_UNREADABLE_MESSAGE,
    MISSING_IMAGE_MESSAGE,
    SAVE_FAILED_MESSAGE,
    UPLOAD_FAILED_MESSAGE,
    MemoryLifecycle,
    MemoryValidationError,
)
from backend.storage import InMemoryStorageClient
from shared.types import ImageRef, Memory


def make_photo(width, height):
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (10, 120, 200)).save(buffer, format="PNG")
    return buffer.getvalue()


class MemoryLifecycleTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.db = InMemoryDbClient()
        self.storage = InMemoryStorageClient()
        self.gateway = DataGateway(self.db, self.storage)
        self.lifecycle = MemoryLifecycle(self.gateway)

    def stored_size(self, path):
        with Image.open(io.BytesIO(self.storage.stored_objects[path])) as img:
            return img.size

    async def test_day_one_scenario(self):
        result = await self.lifecycle.create(
            "Day One", "...", "2024-01-01", make_photo(2000, 1000)
        )

        self.assertTrue(result.success)
        memory = result.data
        self.assertIsNotNone(memory.image_url)
        self.assertIsNotNone(memory.image_path)
        self.assertEqual(self.stored_size(memory.image_path), (1200, 600))
        self.assertEqual(self.storage.content_types[memory.image_path], "image/jpeg")

        self.db.insert(
            "memories", {"title": "Older", "content": "x", "date": "2023-06-01"}
        )
        listed = await self.gateway.list_memories()
        self.assertEqual(listed.data[0].id, memory.id)

    async def test_create_without_image_never_reaches_gateway(self):
        gateway = MagicMock(spec=DataGateway)
        lifecycle = MemoryLifecycle(gateway)

        with self.assertRaises(MemoryValidationError) as ctx:
            await lifecycle.create("Title", "Content", "2024-01-01", None)

        self.assertEqual(str(ctx.exception), MISSING_IMAGE_MESSAGE)
        gateway.create_memory.assert_not_called()
        gateway.upload_photo.assert_not_called()

    async def test_create_requires_text_fields(self):
        gateway = MagicMock(spec=DataGateway)
        lifecycle = MemoryLifecycle(gateway)

        with self.assertRaises(MemoryValidationError):
            await lifecycle.create("   ", "Content", "2024-01-01", make_photo(10, 10))
        gateway.upload_photo.assert_not_called()

    async def test_create_trims_fields(self):
        result = await self.lifecycle.create(
            "  Title ", "\n body \n", "2024-01-01", make_photo(10, 10)
        )
        self.assertEqual(result.data.title, "Title")
        self.assertEqual(result.data.content, "body")

    async def test_unreadable_image_aborts_before_upload(self):
        gateway = MagicMock(spec=DataGateway)
        lifecycle = MemoryLifecycle(gateway)

        result = await lifecycle.create("T", "C", "2024-01-01", b"not an image")

        self.assertFalse(result.success)
        self.assertEqual(result.error, IMAGE_UNREADABLE_MESSAGE)
        gateway.upload_photo.assert_not_called()
        gateway.create_memory.assert_not_called()

    async def test_upload_failure_leaves_no_record(self):
        gateway = MagicMock(spec=DataGateway)
        gateway.upload_photo = AsyncMock(return_value=Envelope.fail("bucket full"))
        gateway.create_memory = AsyncMock()
        lifecycle = MemoryLifecycle(gateway)

        result = await lifecycle.create("T", "C", "2024-01-01", make_photo(50, 50))

        self.assertFalse(result.success)
        self.assertEqual(result.error, UPLOAD_FAILED_MESSAGE)
        gateway.create_memory.assert_not_called()

    async def test_record_failure_after_upload_reports_error(self):
        gateway = MagicMock(spec=DataGateway)
        gateway.upload_photo = AsyncMock(
            return_value=Envelope.ok(ImageRef(url="u", path="p.jpg"))
        )
        gateway.create_memory = AsyncMock(return_value=Envelope.fail("db down"))
        lifecycle = MemoryLifecycle(gateway)

        with self.assertLogs("backend.memories", level="WARNING"):
            result = await lifecycle.create("T", "C", "2024-01-01", make_photo(50, 50))

        self.assertFalse(result.success)
        self.assertEqual(result.error, SAVE_FAILED_MESSAGE)

    async def test_update_without_image_keeps_photo(self):
        created = (
            await self.lifecycle.create("T", "C", "2024-01-01", make_photo(20, 20))
        ).data

        result = await self.lifecycle.update(created, "T2", "C2", "2024-02-02")

        self.assertTrue(result.success)
        self.assertEqual(result.data.title, "T2")
        self.assertEqual(result.data.image_path, created.image_path)
        self.assertIn(created.image_path, self.storage.stored_objects)

    async def test_update_with_image_replaces_photo(self):
        created = (
            await self.lifecycle.create("T", "C", "2024-01-01", make_photo(20, 20))
        ).data

        result = await self.lifecycle.update(
            created, "T", "C", "2024-01-01", make_photo(3000, 1500)
        )

        self.assertTrue(result.success)
        self.assertNotEqual(result.data.image_path, created.image_path)
        self.assertNotIn(created.image_path, self.storage.stored_objects)
        self.assertEqual(self.stored_size(result.data.image_path), (1200, 600))

    async def test_update_continues_when_old_photo_removal_fails(self):
        gateway = MagicMock(spec=DataGateway)
        gateway.remove_photo = AsyncMock(return_value=Envelope.fail("denied"))
        gateway.upload_photo = AsyncMock(
            return_value=Envelope.ok(ImageRef(url="u2", path="new.jpg"))
        )
        updated = Memory(id="m1", title="T", content="C", date="2024-01-01",
                         image_url="u2", image_path="new.jpg")
        gateway.update_memory = AsyncMock(return_value=Envelope.ok(updated))
        lifecycle = MemoryLifecycle(gateway)
        memory = Memory(id="m1", title="T", content="C", date="2024-01-01",
                        image_url="u1", image_path="old.jpg")

        with self.assertLogs("backend.memories", level="WARNING"):
            result = await lifecycle.update(
                memory, "T", "C", "2024-01-01", make_photo(30, 30)
            )

        self.assertTrue(result.success)
        gateway.remove_photo.assert_awaited_once_with("old.jpg")
        _, updates = gateway.update_memory.await_args.args
        self.assertEqual(updates["image_path"], "new.jpg")
        self.assertEqual(updates["image_url"], "u2")

    async def test_update_validation_error(self):
        memory = Memory(id="m1", title="T", content="C", date="2024-01-01")
        with self.assertRaises(MemoryValidationError):
            await self.lifecycle.update(memory, "T", "", "2024-01-01")

    async def test_delete_delegates_to_gateway(self):
        created = (
            await self.lifecycle.create("T", "C", "2024-01-01", make_photo(20, 20))
        ).data

        result = await self.lifecycle.delete(created.id)

        self.assertTrue(result.success)
        self.assertEqual(self.storage.stored_objects, {})

    async def test_delete_failure_message(self):
        gateway = MagicMock(spec=DataGateway)
        gateway.delete_memory = AsyncMock(return_value=Envelope.fail("db down"))
        result = await MemoryLifecycle(gateway).delete("m1")
        self.assertFalse(result.success)
        self.assertEqual(result.error, DELETE_FAILED_MESSAGE)


if __name__ == "__main__":
    unittest.main()
