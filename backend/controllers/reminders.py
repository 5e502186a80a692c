"""
Reminders panel: add, edit, importance/completion toggles and delete.

Example reminders are seed rows and are refused for every mutation.
"""

from __future__ import annotations

import time
from typing import Optional

from backend.controllers.base import View, ViewController
from backend.gateway import Envelope
from backend.ordering import sort_reminders
from shared.types import Reminder

CREATE_MAX_LENGTH = 200
EDIT_MAX_LENGTH = 500

LOAD_FAILED_MESSAGE = "Could not load the reminders. Please try again."
ADD_FAILED_MESSAGE = "Could not add the reminder. Please try again."
UPDATE_FAILED_MESSAGE = "Could not update the reminder. Please try again."
DELETE_FAILED_MESSAGE = "Could not delete the reminder. Please try again."
NOT_FOUND_MESSAGE = "Reminder not found."
EMPTY_MESSAGE = "A reminder cannot be empty."
EXAMPLE_EDIT_MESSAGE = "This reminder cannot be edited."
EXAMPLE_DELETE_MESSAGE = "This reminder cannot be deleted."


class ReminderRefused(Exception):
    """The requested change is not allowed; nothing was sent."""

    def __init__(self, message: str, *, forbidden: bool = False, not_found: bool = False):
        super().__init__(message)
        self.forbidden = forbidden
        self.not_found = not_found


class RemindersController(ViewController):
    def __init__(self, gateway):
        super().__init__(gateway)
        self.reminders: list[Reminder] = []
        self.editing_id: Optional[str] = None

    @property
    def visible_reminders(self) -> list[Reminder]:
        return sort_reminders(self.reminders)

    def find(self, reminder_id: str) -> Optional[Reminder]:
        return next((r for r in self.reminders if r.id == reminder_id), None)

    async def load(self) -> bool:
        result = await self.gateway.list_reminders()
        if not result.success:
            self.show_error(LOAD_FAILED_MESSAGE, retry=self.load)
            return False
        self.reminders = result.data or []
        self.view = View.GRID
        self.editing_id = None
        self.error = None
        return True

    def _refuse(self, message: str, *, forbidden: bool = False) -> None:
        self.show_notice(message)
        raise ReminderRefused(message, forbidden=forbidden)

    def _editable(self, reminder_id: str, example_message: str) -> Reminder:
        reminder = self.find(reminder_id)
        if reminder is None:
            self.show_error(NOT_FOUND_MESSAGE, not_found=True)
            raise ReminderRefused(NOT_FOUND_MESSAGE, not_found=True)
        if reminder.is_example:
            self._refuse(example_message, forbidden=True)
        return reminder

    async def _mutate(self, result: Envelope, failed_message: str, done_message: Optional[str]) -> Envelope:
        if not result.success:
            self.show_error(failed_message, not_found=result.not_found)
            return result
        await self.load()
        if done_message:
            self.show_notice(done_message)
        return result

    async def add(self, content: str | None) -> Envelope[Reminder]:
        content = (content or "").strip()
        if not content:
            self._refuse(EMPTY_MESSAGE)
        if len(content) > CREATE_MAX_LENGTH:
            self._refuse(f"A reminder can be at most {CREATE_MAX_LENGTH} characters.")
        result = await self.gateway.create_reminder(content)
        return await self._mutate(result, ADD_FAILED_MESSAGE, "Reminder added")

    def start_edit(self, reminder_id: str) -> Reminder:
        reminder = self._editable(reminder_id, EXAMPLE_EDIT_MESSAGE)
        self.view = View.EDIT
        self.editing_id = reminder_id
        return reminder

    def cancel_edit(self) -> None:
        self.view = View.GRID
        self.editing_id = None

    async def edit(self, reminder_id: str, content: str | None) -> Envelope[Reminder]:
        reminder = self._editable(reminder_id, EXAMPLE_EDIT_MESSAGE)
        content = (content or "").strip()
        if not content:
            self._refuse(EMPTY_MESSAGE)
        if len(content) > EDIT_MAX_LENGTH:
            self._refuse(f"A reminder can be at most {EDIT_MAX_LENGTH} characters.")
        if content == reminder.content:
            self.cancel_edit()
            return Envelope.ok(reminder)
        result = await self.gateway.update_reminder(reminder_id, {"content": content})
        return await self._mutate(result, UPDATE_FAILED_MESSAGE, "Reminder updated")

    async def set_important(self, reminder_id: str, is_important: bool) -> Envelope[Reminder]:
        self._editable(reminder_id, EXAMPLE_EDIT_MESSAGE)
        updates = {
            "is_important": is_important,
            "important_at": time.time() if is_important else None,
        }
        result = await self.gateway.update_reminder(reminder_id, updates)
        return await self._mutate(result, UPDATE_FAILED_MESSAGE, None)

    async def set_completed(self, reminder_id: str, is_completed: bool) -> Envelope[Reminder]:
        self._editable(reminder_id, EXAMPLE_EDIT_MESSAGE)
        result = await self.gateway.toggle_reminder_complete(reminder_id, is_completed)
        return await self._mutate(result, UPDATE_FAILED_MESSAGE, None)

    async def delete(self, reminder_id: str) -> Envelope[None]:
        self._editable(reminder_id, EXAMPLE_DELETE_MESSAGE)
        result = await self.gateway.delete_reminder(reminder_id)
        return await self._mutate(result, DELETE_FAILED_MESSAGE, "Reminder deleted")

    def snapshot(self) -> dict:
        state = super().snapshot()
        state["reminders"] = [r.as_dict() for r in self.visible_reminders]
        state["editing_id"] = self.editing_id
        return state
