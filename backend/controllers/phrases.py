from __future__ import annotations

from typing import Optional

from backend.controllers.base import View, ViewController
from backend.ordering import dedupe_phrases
from shared.types import Phrase

LOAD_FAILED_MESSAGE = "Could not load the phrases. Please try again."
PHRASE_FAILED_MESSAGE = "Could not load the phrase."


class PhrasesController(ViewController):
    """Read-only phrase browser: a de-duplicated grid and a detail view."""

    def __init__(self, gateway):
        super().__init__(gateway)
        self.phrases: list[Phrase] = []
        self.selected: Optional[Phrase] = None

    @property
    def visible_phrases(self) -> list[Phrase]:
        return dedupe_phrases(self.phrases)

    async def load(self) -> bool:
        result = await self.gateway.list_phrases()
        if not result.success:
            self.show_error(LOAD_FAILED_MESSAGE, retry=self.load)
            return False
        self.phrases = result.data or []
        self.show_grid()
        return True

    def show_grid(self) -> None:
        self.view = View.GRID
        self.selected = None
        self.error = None

    async def show_detail(self, phrase_id: int) -> Optional[Phrase]:
        phrase = next((p for p in self.phrases if p.id == phrase_id), None)
        if phrase is None:
            # Deep link to a phrase outside the cached list.
            result = await self.gateway.get_phrase(phrase_id)
            if not result.success or result.data is None:
                self.show_error(PHRASE_FAILED_MESSAGE, not_found=result.not_found)
                return None
            phrase = result.data
        self.view = View.DETAIL
        self.selected = phrase
        self.error = None
        return phrase

    def snapshot(self) -> dict:
        state = super().snapshot()
        state["phrases"] = [p.as_dict() for p in self.visible_phrases]
        state["selected"] = self.selected.as_dict() if self.selected else None
        return state
