"""
Reduced "contribute a memory" surface for friends who receive a share link.
"""

from __future__ import annotations

import datetime as dt
from urllib.parse import quote, urlencode, urlsplit, urlunsplit

from backend.controllers.base import ViewController
from backend.gateway import Envelope
from backend.memories import MemoryLifecycle, MemoryValidationError
from shared.types import Memory

SHARE_QUERY_FLAG = "share"
NAME_MAX_LENGTH = 50
INVITATION_TEXT = "Hi! Upload a memory to share with me"
THANKS_MESSAGE = "Thanks for sharing this moment! Your memory is already there to see."


def share_url(base_url: str) -> str:
    """The base URL with the share flag set, dropping any existing query."""
    parts = urlsplit(base_url)
    return urlunsplit(
        (parts.scheme, parts.netloc, parts.path, urlencode({SHARE_QUERY_FLAG: "true"}), "")
    )


def share_links(base_url: str) -> dict:
    url = share_url(base_url)
    whatsapp = f"https://wa.me/?text={quote(INVITATION_TEXT)}%20{quote(url, safe='')}"
    return {"share_url": url, "whatsapp_url": whatsapp}


def is_shared_surface(flag: str | None) -> bool:
    return (flag or "").strip().lower() == "true"


class SharedMemoryController(ViewController):
    def __init__(self, gateway, lifecycle: MemoryLifecycle):
        super().__init__(gateway)
        self.lifecycle = lifecycle
        self.submitted = False

    async def submit(
        self,
        name: str | None,
        title: str | None,
        content: str | None,
        date: str | None,
        image: bytes | None,
    ) -> Envelope[Memory]:
        try:
            name = (name or "").strip()
            if not name:
                raise MemoryValidationError("Your name is required.")
            if len(name) > NAME_MAX_LENGTH:
                raise MemoryValidationError(
                    f"Your name must be at most {NAME_MAX_LENGTH} characters."
                )
            body = (content or "").strip()
            if not body:
                raise MemoryValidationError("Content is required.")
            date = (date or "").strip() or dt.date.today().isoformat()
            result = await self.lifecycle.create(
                title, f"From: {name}\n\n{body}", date, image
            )
        except MemoryValidationError as e:
            self.show_notice(str(e))
            return Envelope.fail(str(e))

        if not result.success:
            self.show_error(result.error)
            return result
        self.submitted = True
        self.error = None
        self.show_notice(THANKS_MESSAGE)
        return result

    def snapshot(self) -> dict:
        state = super().snapshot()
        state["submitted"] = self.submitted
        return state
