"""Record store adapters: a get/set mapping over JSON-compatible values.

Two backends share the `RecordStore` protocol:
- `SqlRecordStore`: one SQLAlchemy key-value table (PostgreSQL or SQLite).
- `InMemoryRecordStore`: dict-backed, for tests and local development.

There are no transactions spanning calls; a later `set` simply replaces the
earlier value (last write wins).
"""

from __future__ import annotations

import copy
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from survey_builder.db.base import build_engine
from survey_builder.db.schema import ensure_schema, kv_table

logger = logging.getLogger(__name__)


class RecordStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...


class InMemoryRecordStore:
    """Dict-backed store. Values are deep-copied in and out so callers never
    share mutable state with the store."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._records: Dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Optional[Any]:
        if key not in self._records:
            return None
        return copy.deepcopy(self._records[key])

    def set(self, key: str, value: Any) -> None:
        self._records[key] = copy.deepcopy(value)

    def keys(self) -> list[str]:
        return sorted(self._records)

    def ping(self) -> bool:
        return True


class SqlRecordStore:
    def __init__(self, engine: Engine, table_name: str = "kv_record") -> None:
        self.engine = engine
        self.table = kv_table(table_name)
        ensure_schema(engine, self.table)

    @classmethod
    def from_url(cls, url: str, table_name: str = "kv_record") -> "SqlRecordStore":
        return cls(build_engine(url), table_name=table_name)

    def get(self, key: str) -> Optional[Any]:
        with self.engine.connect() as conn:
            row = conn.execute(
                select(self.table.c.value).where(self.table.c.key == key)
            ).fetchone()
        if row is None:
            return None
        return json.loads(row[0])

    def set(self, key: str, value: Any) -> None:
        encoded = json.dumps(value, ensure_ascii=False)
        now = datetime.now(timezone.utc)
        # Update-then-insert keeps the statement portable across dialects.
        with self.engine.begin() as conn:
            result = conn.execute(
                self.table.update()
                .where(self.table.c.key == key)
                .values(value=encoded, updated_at=now)
            )
            if result.rowcount == 0:
                conn.execute(
                    self.table.insert().values(key=key, value=encoded, updated_at=now)
                )
        logger.debug("store_set key=%s bytes=%d", key, len(encoded))

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1)).fetchone()
            return True
        except SQLAlchemyError:
            logger.error("store_ping_failed", exc_info=True)
            return False


__all__ = ["RecordStore", "InMemoryRecordStore", "SqlRecordStore"]
