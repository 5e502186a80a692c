"""
Display ordering for reminders and de-duplication for phrases.
"""

from __future__ import annotations

import re
from typing import Iterable

from shared.types import Phrase, Reminder


def normalize_title(value: str | None) -> str:
    return re.sub(r"\s+", " ", value or "").strip().lower()


def _reminder_key(reminder: Reminder) -> tuple:
    if reminder.is_important:
        return (0, -(reminder.important_at or 0.0), -(reminder.created_at or 0.0))
    return (1, 0.0, -(reminder.created_at or 0.0))


def sort_reminders(reminders: Iterable[Reminder]) -> list[Reminder]:
    """
    Important reminders first, most recently marked first; the rest newest first.

    The sort is stable, so ties keep their incoming order.
    """
    return sorted(reminders, key=_reminder_key)


def dedupe_phrases(phrases: Iterable[Phrase]) -> list[Phrase]:
    """
    Drops phrases whose id or normalized title was already seen.

    Empty titles and missing ids never count as duplicates.
    """
    seen_ids: set = set()
    seen_titles: set[str] = set()
    unique: list[Phrase] = []
    for phrase in phrases:
        title = normalize_title(phrase.title)
        if phrase.id is not None and phrase.id in seen_ids:
            continue
        if title and title in seen_titles:
            continue
        if phrase.id is not None:
            seen_ids.add(phrase.id)
        if title:
            seen_titles.add(title)
        unique.append(phrase)
    return unique
