"""
State shared by the view controllers: error panel, transient notice, cache.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Awaitable, Callable, Optional

from backend.gateway import DataGateway


class View(StrEnum):
    GRID = "grid"
    ADD = "add"
    EDIT = "edit"
    DETAIL = "detail"


@dataclass
class ErrorPanel:
    """A user-facing failure, optionally with an action that retries it."""

    message: str
    retry: Optional[Callable[[], Awaitable[object]]] = None
    not_found: bool = False

    @property
    def retryable(self) -> bool:
        return self.retry is not None

    def as_dict(self) -> dict:
        return {"message": self.message, "retryable": self.retryable}


class ViewController:
    def __init__(self, gateway: DataGateway):
        self.gateway = gateway
        self.view = View.GRID
        self.error: Optional[ErrorPanel] = None
        self.notice: Optional[str] = None

    def show_error(
        self,
        message: str,
        retry: Optional[Callable[[], Awaitable[object]]] = None,
        *,
        not_found: bool = False,
    ) -> None:
        self.error = ErrorPanel(message=message, retry=retry, not_found=not_found)

    def show_notice(self, message: str) -> None:
        self.notice = message

    def clear_messages(self) -> None:
        self.error = None
        self.notice = None

    async def retry(self) -> bool:
        """Re-invokes the operation behind the current error panel, if any."""
        panel = self.error
        if panel is None or panel.retry is None:
            return False
        self.error = None
        await panel.retry()
        return True

    def snapshot(self) -> dict:
        return {
            "view": self.view.value,
            "error": self.error.as_dict() if self.error else None,
            "notice": self.notice,
        }
