"""
Memories panel: grid, add, edit and detail views over the memory lifecycle.
"""

from __future__ import annotations

from typing import Optional

from backend.controllers.base import View, ViewController
from backend.gateway import DataGateway, Envelope
from backend.memories import MemoryLifecycle, MemoryValidationError
from shared.types import Memory

LOAD_FAILED_MESSAGE = "Could not load the memories. Please try again."
NOT_FOUND_MESSAGE = "Memory not found."


class MemoriesController(ViewController):
    def __init__(self, gateway: DataGateway, lifecycle: MemoryLifecycle):
        super().__init__(gateway)
        self.lifecycle = lifecycle
        self.memories: list[Memory] = []
        self.editing_id: Optional[str] = None
        self.detail_id: Optional[str] = None
        self.pending_image: Optional[bytes] = None

    def find(self, memory_id: str) -> Optional[Memory]:
        return next((m for m in self.memories if m.id == memory_id), None)

    async def load(self) -> bool:
        result = await self.gateway.list_memories()
        if not result.success:
            self.show_error(LOAD_FAILED_MESSAGE, retry=self.load)
            return False
        self.memories = result.data or []
        self.show_grid()
        return True

    def show_grid(self) -> None:
        self.view = View.GRID
        self.editing_id = None
        self.detail_id = None
        self.error = None

    def show_add_form(self) -> None:
        self.view = View.ADD
        self.editing_id = None
        self.pending_image = None

    def show_edit_form(self, memory_id: str) -> bool:
        if self.find(memory_id) is None:
            self.show_error(NOT_FOUND_MESSAGE, not_found=True)
            return False
        self.view = View.EDIT
        self.editing_id = memory_id
        self.pending_image = None
        return True

    def show_detail(self, memory_id: str) -> Optional[Memory]:
        memory = self.find(memory_id)
        if memory is None:
            self.show_error(NOT_FOUND_MESSAGE, not_found=True)
            return None
        self.view = View.DETAIL
        self.detail_id = memory_id
        return memory

    def select_image(self, raw: Optional[bytes]) -> None:
        self.pending_image = raw or None

    async def submit_new(
        self, title: str | None, content: str | None, date: str | None
    ) -> Envelope[Memory]:
        try:
            result = await self.lifecycle.create(
                title, content, date, self.pending_image
            )
        except MemoryValidationError as e:
            self.show_notice(str(e))
            return Envelope.fail(str(e))

        if not result.success:
            self.show_error(result.error)
            return result
        self.pending_image = None
        await self.load()
        self.show_notice("Memory saved!")
        return result

    async def submit_update(
        self,
        memory_id: str,
        title: str | None,
        content: str | None,
        date: str | None,
    ) -> Envelope[Memory]:
        memory = self.find(memory_id)
        if memory is None:
            self.show_error(NOT_FOUND_MESSAGE, not_found=True)
            return Envelope.fail(NOT_FOUND_MESSAGE, not_found=True)
        try:
            result = await self.lifecycle.update(
                memory, title, content, date, self.pending_image
            )
        except MemoryValidationError as e:
            self.show_notice(str(e))
            return Envelope.fail(str(e))

        if not result.success:
            self.show_error(result.error, not_found=result.not_found)
            return result
        self.pending_image = None
        await self.load()
        self.show_notice("Memory updated!")
        return result

    async def delete(self, memory_id: str) -> Envelope[None]:
        result = await self.lifecycle.delete(memory_id)
        if not result.success:
            self.show_error(result.error, retry=lambda: self.delete(memory_id))
            return result
        self.show_notice("Memory deleted")
        await self.load()
        return result

    def snapshot(self) -> dict:
        state = super().snapshot()
        state["memories"] = [m.as_dict() for m in self.memories]
        state["editing_id"] = self.editing_id
        state["detail_id"] = self.detail_id
        state["has_pending_image"] = self.pending_image is not None
        return state
