import unittest
from concurrent.futures import ThreadPoolExecutor

from backend.db import (
    MEMORIES,
    PHRASES,
    REMINDERS,
    InMemoryDbClient,
    OrderBy,
    RecordNotFoundError,
    SqlDbClient,
)

REMINDER_ORDER = (
    OrderBy("is_important", descending=True),
    OrderBy("important_at", descending=True),
    OrderBy("created_at", descending=True),
)


class RecordStoreContract:
    """Checks shared by both record store implementations."""

    def make_db(self):
        raise NotImplementedError

    def setUp(self):
        self.db = self.make_db()

    def tearDown(self):
        self.db.close()

    def test_insert_assigns_id_and_defaults(self):
        row = self.db.insert(REMINDERS, {"content": "water the plants"})
        self.assertTrue(row["id"])
        self.assertFalse(row["is_important"])
        self.assertFalse(row["is_completed"])
        self.assertFalse(row["is_example"])
        self.assertIsNone(row["important_at"])
        self.assertIsNotNone(row["created_at"])

    def test_phrase_ids_are_integers(self):
        first = self.db.insert(PHRASES, {"phrase_number": 1, "title": "a", "text": "x"})
        second = self.db.insert(PHRASES, {"phrase_number": 2, "title": "b", "text": "y"})
        self.assertIsInstance(first["id"], int)
        self.assertNotEqual(first["id"], second["id"])
        self.assertEqual(self.db.get(PHRASES, second["id"])["title"], "b")

    def test_get_missing_raises(self):
        with self.assertRaises(RecordNotFoundError):
            self.db.get(MEMORIES, "missing")

    def test_update_returns_row(self):
        row = self.db.insert(
            MEMORIES,
            {"title": "t", "content": "c", "date": "2024-01-01"},
        )
        updated = self.db.update(MEMORIES, row["id"], {"title": "new", "updated_at": 5.0})
        self.assertEqual(updated["title"], "new")
        self.assertEqual(updated["content"], "c")
        self.assertEqual(updated["updated_at"], 5.0)

    def test_update_missing_raises(self):
        with self.assertRaises(RecordNotFoundError):
            self.db.update(REMINDERS, "missing", {"content": "x"})

    def test_unknown_column_rejected(self):
        with self.assertRaises(ValueError):
            self.db.insert(REMINDERS, {"content": "x", "colour": "red"})

    def test_delete_is_idempotent(self):
        row = self.db.insert(REMINDERS, {"content": "x"})
        self.db.delete(REMINDERS, row["id"])
        self.db.delete(REMINDERS, row["id"])
        with self.assertRaises(RecordNotFoundError):
            self.db.get(REMINDERS, row["id"])

    def test_memories_order_by_date_desc(self):
        for date in ["2023-05-01", "2024-01-01", "2022-12-31"]:
            self.db.insert(MEMORIES, {"title": date, "content": "c", "date": date})
        rows = self.db.select(MEMORIES, order_by=(OrderBy("date", descending=True),))
        self.assertEqual(
            [r["date"] for r in rows], ["2024-01-01", "2023-05-01", "2022-12-31"]
        )

    def test_reminders_order_with_nulls_last(self):
        self.db.insert(REMINDERS, {"content": "old", "created_at": 1.0})
        self.db.insert(REMINDERS, {"content": "new", "created_at": 3.0})
        self.db.insert(
            REMINDERS,
            {"content": "early", "is_important": True, "important_at": 10.0, "created_at": 2.0},
        )
        self.db.insert(
            REMINDERS,
            {"content": "late", "is_important": True, "important_at": 20.0, "created_at": 0.5},
        )
        rows = self.db.select(REMINDERS, order_by=REMINDER_ORDER)
        self.assertEqual([r["content"] for r in rows], ["late", "early", "new", "old"])

    def test_select_filters_by_equality(self):
        self.db.insert(REMINDERS, {"content": "seed", "is_example": True})
        self.db.insert(REMINDERS, {"content": "mine"})
        rows = self.db.select(REMINDERS, filters={"is_example": True})
        self.assertEqual([r["content"] for r in rows], ["seed"])


class InMemoryDbClientTests(RecordStoreContract, unittest.TestCase):
    def make_db(self):
        return InMemoryDbClient()

    def test_reset_clears_tables(self):
        self.db.insert(REMINDERS, {"content": "x"})
        self.db.reset()
        self.assertEqual(self.db.select(REMINDERS), [])

    def test_concurrent_inserts_and_selects(self):
        def insert(number):
            row = self.db.insert(
                PHRASES, {"phrase_number": number, "title": str(number), "text": "x"}
            )
            self.db.select(PHRASES, order_by=(OrderBy("phrase_number"),))
            return row["id"]

        with ThreadPoolExecutor(max_workers=8) as executor:
            ids = list(executor.map(insert, range(200)))

        self.assertEqual(len(set(ids)), 200)
        self.assertEqual(len(self.db.select(PHRASES)), 200)

    def test_returned_rows_are_copies(self):
        row = self.db.insert(REMINDERS, {"content": "x"})
        row["content"] = "changed"
        self.assertEqual(self.db.get(REMINDERS, row["id"])["content"], "x")


class SqlDbClientTests(RecordStoreContract, unittest.TestCase):
    """
    Uses SQLite via SQLAlchemy URL for fast/local testing of the SQL client logic.
    """

    def make_db(self):
        return SqlDbClient("sqlite+pysqlite:///:memory:")

    def test_requires_url(self):
        with self.assertRaises(ValueError):
            SqlDbClient("")


if __name__ == "__main__":
    unittest.main()
