"""
Record store abstraction for SQL databases and an in-memory test implementation.

Both implementations expose the same table-like contract over the
`phrases`, `memories` and `reminders` collections: ordered reads with
equality filters, single-row reads, and insert/update/delete returning rows
as plain dicts.
"""

from __future__ import annotations

import threading
import time
import uuid
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Protocol, Sequence

from sqlalchemy import (
    Boolean,
    Column,
    Float,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

PHRASES = "phrases"
MEMORIES = "memories"
REMINDERS = "reminders"


@dataclass(frozen=True)
class OrderBy:
    column: str
    descending: bool = False
    nulls_last: bool = True


class RecordNotFoundError(LookupError):
    def __init__(self, table: str, record_id):
        super().__init__(f"Record not found: {table}/{record_id}")
        self.table = table
        self.record_id = record_id


class DbClient(Protocol):
    """Interface for record access."""

    def select(
        self,
        table: str,
        *,
        order_by: Sequence[OrderBy] = (),
        filters: Optional[dict] = None,
    ) -> list[dict]:
        ...

    def get(self, table: str, record_id) -> dict:
        ...

    def insert(self, table: str, values: dict) -> dict:
        ...

    def update(self, table: str, record_id, values: dict) -> dict:
        ...

    def delete(self, table: str, record_id) -> None:
        ...

    def close(self) -> None:
        ...


# Column defaults applied on insert, mirroring the SQL schema below.
TABLE_COLUMNS: Dict[str, dict] = {
    PHRASES: {
        "id": None,
        "phrase_number": 0,
        "title": "",
        "text": "",
        "response": None,
    },
    MEMORIES: {
        "id": None,
        "title": "",
        "content": "",
        "date": None,
        "image_url": None,
        "image_path": None,
        "created_at": None,
        "updated_at": None,
    },
    REMINDERS: {
        "id": None,
        "content": "",
        "is_important": False,
        "important_at": None,
        "is_completed": False,
        "is_example": False,
        "created_at": None,
        "updated_at": None,
    },
}


def _check_table(table: str) -> dict:
    try:
        return TABLE_COLUMNS[table]
    except KeyError:
        raise ValueError(f"Unknown table: {table}") from None


def _check_columns(table: str, values: Iterable[str]) -> None:
    columns = _check_table(table)
    unknown = sorted(set(values) - set(columns))
    if unknown:
        raise ValueError(f"Unknown column(s) for {table}: {', '.join(unknown)}")


def _stamp_insert(table: str, values: dict) -> dict:
    row = dict(values)
    if "created_at" in TABLE_COLUMNS[table]:
        now = time.time()
        row.setdefault("created_at", now)
        row.setdefault("updated_at", now)
    return row


def _sort_rows(rows: list[dict], order_by: Sequence[OrderBy]) -> list[dict]:
    # Stable sorts applied from the last key to the first.
    for order in reversed(order_by):

        def key(row, order=order):
            value = row.get(order.column)
            is_null = value is None
            if order.nulls_last:
                flag = is_null != order.descending
            else:
                flag = is_null == order.descending
            return (flag, value)

        rows.sort(key=key, reverse=order.descending)
    return rows


class InMemoryDbClient:
    """
    Simple in-memory record store for development and tests.

    The gateway calls it from worker threads, so every table access holds
    `_lock`.
    """

    def __init__(self):
        self.tables: Dict[str, Dict[object, dict]] = {
            table: {} for table in TABLE_COLUMNS
        }
        self._next_phrase_id = 1
        self._lock = threading.Lock()

    def _new_id(self, table: str):
        if table == PHRASES:
            record_id = self._next_phrase_id
            self._next_phrase_id += 1
            return record_id
        return uuid.uuid4().hex

    def select(
        self,
        table: str,
        *,
        order_by: Sequence[OrderBy] = (),
        filters: Optional[dict] = None,
    ) -> list[dict]:
        _check_table(table)
        filters = filters or {}
        _check_columns(table, filters)
        with self._lock:
            rows = [
                dict(row)
                for row in self.tables[table].values()
                if all(row.get(col) == value for col, value in filters.items())
            ]
        return _sort_rows(rows, order_by)

    def get(self, table: str, record_id) -> dict:
        _check_table(table)
        with self._lock:
            row = self.tables[table].get(record_id)
            if row is None:
                raise RecordNotFoundError(table, record_id)
            return dict(row)

    def insert(self, table: str, values: dict) -> dict:
        columns = _check_table(table)
        _check_columns(table, values)
        row = dict(columns)
        row.update(_stamp_insert(table, values))
        with self._lock:
            if row.get("id") is None:
                row["id"] = self._new_id(table)
            elif table == PHRASES:
                self._next_phrase_id = max(self._next_phrase_id, int(row["id"]) + 1)
            if row["id"] in self.tables[table]:
                raise ValueError(f"Duplicate id for {table}: {row['id']}")
            self.tables[table][row["id"]] = row
            return dict(row)

    def update(self, table: str, record_id, values: dict) -> dict:
        _check_columns(table, values)
        with self._lock:
            row = self.tables[table].get(record_id)
            if row is None:
                raise RecordNotFoundError(table, record_id)
            row.update({key: value for key, value in values.items() if key != "id"})
            return dict(row)

    def delete(self, table: str, record_id) -> None:
        _check_table(table)
        with self._lock:
            self.tables[table].pop(record_id, None)

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        with self._lock:
            for rows in self.tables.values():
                rows.clear()
            self._next_phrase_id = 1

    def close(self) -> None:
        pass


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        engine_kwargs = {"future": True, "pool_pre_ping": True, "pool_recycle": 1800}
        if database_url.startswith("sqlite") and ":memory:" in database_url:
            # One shared connection, reachable from the gateway's worker threads.
            engine_kwargs.update(
                connect_args={"check_same_thread": False}, poolclass=StaticPool
            )
        self.engine = create_engine(database_url, **engine_kwargs)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    @staticmethod
    def _model(table: str):
        _check_table(table)
        return MODELS[table]

    @staticmethod
    def _to_dict(row) -> dict:
        return {column.name: getattr(row, column.name) for column in row.__table__.columns}

    def select(
        self,
        table: str,
        *,
        order_by: Sequence[OrderBy] = (),
        filters: Optional[dict] = None,
    ) -> list[dict]:
        model = self._model(table)
        filters = filters or {}
        _check_columns(table, filters)
        stmt = select(model)
        for col, value in filters.items():
            stmt = stmt.where(getattr(model, col) == value)
        for order in order_by:
            column = getattr(model, order.column)
            clause = column.desc() if order.descending else column.asc()
            clause = clause.nulls_last() if order.nulls_last else clause.nulls_first()
            stmt = stmt.order_by(clause)
        with self.Session() as session:
            return [self._to_dict(row) for row in session.execute(stmt).scalars()]

    def get(self, table: str, record_id) -> dict:
        model = self._model(table)
        with self.Session() as session:
            row = session.get(model, record_id)
            if row is None:
                raise RecordNotFoundError(table, record_id)
            return self._to_dict(row)

    def insert(self, table: str, values: dict) -> dict:
        model = self._model(table)
        _check_columns(table, values)
        row_values = _stamp_insert(table, values)
        if row_values.get("id") is None:
            row_values.pop("id", None)
        with self.Session() as session:
            row = model(**row_values)
            session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def update(self, table: str, record_id, values: dict) -> dict:
        model = self._model(table)
        _check_columns(table, values)
        with self.Session() as session:
            row = session.get(model, record_id)
            if row is None:
                raise RecordNotFoundError(table, record_id)
            for key, value in values.items():
                if key != "id":
                    setattr(row, key, value)
            session.commit()
            session.refresh(row)
            return self._to_dict(row)

    def delete(self, table: str, record_id) -> None:
        model = self._model(table)
        with self.Session() as session:
            session.execute(delete(model).where(model.id == record_id))
            session.commit()

    def close(self) -> None:
        self.engine.dispose()


def _new_uuid() -> str:
    return uuid.uuid4().hex


Base = declarative_base()


class PhraseRow(Base):
    __tablename__ = PHRASES

    id = Column(Integer, primary_key=True, autoincrement=True)
    phrase_number = Column(Integer, nullable=False, default=0, index=True)
    title = Column(String(200), nullable=False, default="")
    text = Column(Text, nullable=False, default="")
    response = Column(Text, nullable=True)


class MemoryRow(Base):
    __tablename__ = MEMORIES

    id = Column(String, primary_key=True, default=_new_uuid)
    title = Column(String(100), nullable=False)
    content = Column(Text, nullable=False)
    date = Column(String(10), nullable=False, index=True)
    image_url = Column(String, nullable=True)
    image_path = Column(String, nullable=True)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class ReminderRow(Base):
    __tablename__ = REMINDERS

    id = Column(String, primary_key=True, default=_new_uuid)
    content = Column(Text, nullable=False)
    is_important = Column(Boolean, nullable=False, default=False)
    important_at = Column(Float, nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    is_example = Column(Boolean, nullable=False, default=False)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


MODELS = {
    PHRASES: PhraseRow,
    MEMORIES: MemoryRow,
    REMINDERS: ReminderRow,
}
