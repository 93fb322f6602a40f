"""Key-value table definition.

A single table holds every record: the user directory under one fixed key
and one creator-data record per username. Values are JSON text.
"""

from __future__ import annotations

import logging

from sqlalchemy import Column, DateTime, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)


def kv_table(name: str = "kv_record", metadata: MetaData | None = None) -> Table:
    metadata = metadata or MetaData()
    return Table(
        name,
        metadata,
        Column("key", String(255), primary_key=True),
        Column("value", Text, nullable=False),
        Column("updated_at", DateTime(timezone=True), nullable=False),
    )


def ensure_schema(engine: Engine, table: Table) -> None:
    """Create the key-value table when missing; existing data is untouched."""
    table.metadata.create_all(engine, tables=[table], checkfirst=True)
    logger.info("store_schema_ready table=%s", table.name)


__all__ = ["kv_table", "ensure_schema"]
