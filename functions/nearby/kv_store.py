"""
Key-value store abstraction with prefix scans.

Values are JSON-like (dicts, lists, strings, numbers, None). Supports an
in-memory implementation for tests/local runs, a SQLAlchemy table for
Postgres, and Redis.
"""

from __future__ import annotations

import copy
import json
import re
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import redis
from sqlalchemy import JSON, Column, MetaData, String, Table, create_engine, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker


class Store(Protocol):
    """Operations the API needs from the key-value store."""

    def set(self, key: str, value: Any) -> None:
        ...

    def get(self, key: str) -> Optional[Any]:
        ...

    def scan_prefix(self, prefix: str) -> list[Any]:
        ...


@dataclass
class InMemoryStore:
    """Dict-backed store for development and tests."""

    items: dict[str, Any] = field(default_factory=dict)

    def set(self, key: str, value: Any) -> None:
        # Copy so callers mutating their dict can't change what's stored.
        self.items[key] = copy.deepcopy(value)

    def get(self, key: str) -> Optional[Any]:
        value = self.items.get(key)
        return copy.deepcopy(value)

    def scan_prefix(self, prefix: str) -> list[Any]:
        return [
            copy.deepcopy(value)
            for key, value in self.items.items()
            if key.startswith(prefix)
        ]

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.items.clear()


_UPSERT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SqlStore:
    """
    SQLAlchemy-backed store over a single two-column table. Accepts any
    SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str, table_name: str = "kv_store"):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlStore")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        metadata = MetaData()
        self.table = Table(
            table_name,
            metadata,
            Column("key", String, primary_key=True),
            Column("value", JSON, nullable=True),
        )
        metadata.create_all(self.engine)

    def set(self, key: str, value: Any) -> None:
        dialect = self.engine.dialect.name
        with self.Session() as session:
            if dialect in _UPSERT_INSERTS:
                # Single statement, so racing writers to a new key never collide.
                stmt = _UPSERT_INSERTS[dialect](self.table).values(key=key, value=value)
                stmt = stmt.on_conflict_do_update(
                    index_elements=[self.table.c.key],
                    set_={"value": stmt.excluded["value"]},
                )
                session.execute(stmt)
                session.commit()
                return
            updated = session.execute(
                self.table.update().where(self.table.c.key == key).values(value=value)
            ).rowcount
            if not updated:
                try:
                    session.execute(self.table.insert().values(key=key, value=value))
                    session.commit()
                    return
                except IntegrityError:
                    # Another writer inserted first; overwrite it.
                    session.rollback()
                    session.execute(
                        self.table.update()
                        .where(self.table.c.key == key)
                        .values(value=value)
                    )
            session.commit()

    def get(self, key: str) -> Optional[Any]:
        with self.Session() as session:
            return session.execute(
                select(self.table.c.value).where(self.table.c.key == key)
            ).scalar_one_or_none()

    def scan_prefix(self, prefix: str) -> list[Any]:
        with self.Session() as session:
            rows = session.execute(
                select(self.table.c.value).where(
                    self.table.c.key.startswith(prefix, autoescape=True)
                )
            ).scalars()
            return list(rows)


_GLOB_SPECIAL = re.compile(r"([\\*?\[\]])")


def escape_glob(value: str) -> str:
    """Escape characters Redis MATCH patterns treat as wildcards."""
    return _GLOB_SPECIAL.sub(r"\\\1", value)


@dataclass
class RedisStore:
    """Redis-backed store; values are JSON strings under ``namespace``."""

    url: str
    namespace: str = "nearby:"
    scan_count: int = 500

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, key: str) -> str:
        return f"{self.namespace}{key}"

    def set(self, key: str, value: Any) -> None:
        self.client.set(self._key(key), json.dumps(value))

    def get(self, key: str) -> Optional[Any]:
        raw = self.client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def scan_prefix(self, prefix: str) -> list[Any]:
        pattern = escape_glob(self._key(prefix)) + "*"
        keys = list(self.client.scan_iter(match=pattern, count=self.scan_count))
        if not keys:
            return []
        # Keys can expire or be removed between SCAN and MGET.
        return [json.loads(raw) for raw in self.client.mget(keys) if raw is not None]
