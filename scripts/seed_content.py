"""
Seed phrases and example reminders into the configured record store.

The input is a JSON file shaped like:

    {
      "phrases": [{"phrase_number": 1, "title": "...", "text": "...", "response": "..."}],
      "reminders": ["Drink water", "Call grandma on Sundays"]
    }

Seeded reminders are flagged as examples, so the app keeps them read-only.
Phrases whose number is already present and example reminders whose content
is already present are skipped, so the script can be re-run safely.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import get_settings
from backend.db import PHRASES, REMINDERS, DbClient
from backend.dependencies import build_db_client

logger = logging.getLogger(__name__)


def seed_phrases(db: DbClient, phrases: list[dict], dry_run: bool = False) -> int:
    inserted = 0
    for item in phrases:
        number = int(item["phrase_number"])
        if db.select(PHRASES, filters={"phrase_number": number}):
            logger.info("Phrase %d already present, skipping", number)
            continue
        if not dry_run:
            db.insert(
                PHRASES,
                {
                    "phrase_number": number,
                    "title": item.get("title", ""),
                    "text": item.get("text", ""),
                    "response": item.get("response"),
                },
            )
        inserted += 1
    return inserted


def seed_example_reminders(db: DbClient, reminders: list, dry_run: bool = False) -> int:
    existing = {
        row["content"] for row in db.select(REMINDERS, filters={"is_example": True})
    }
    inserted = 0
    for item in reminders:
        content = (item if isinstance(item, str) else item["content"]).strip()
        if not content or content in existing:
            continue
        if not dry_run:
            db.insert(REMINDERS, {"content": content, "is_example": True})
        existing.add(content)
        inserted += 1
    return inserted


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed phrases and example reminders")
    parser.add_argument("path", type=Path, help="JSON file with phrases and reminders")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many rows would be inserted without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")

    try:
        payload = json.loads(args.path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Could not read %s: %s", args.path, exc)
        return 1

    settings = get_settings()
    if not settings.database_url:
        logger.warning("DATABASE_URL is not set; seeding an in-memory store")
    db = build_db_client(settings)
    try:
        phrases = seed_phrases(db, payload.get("phrases", []), dry_run=args.dry_run)
        reminders = seed_example_reminders(
            db, payload.get("reminders", []), dry_run=args.dry_run
        )
    finally:
        db.close()

    logger.info("Seeded %d phrases and %d example reminders", phrases, reminders)
    return 0


if __name__ == "__main__":
    sys.exit(main())
