"""SQLAlchemy engine construction.

The service targets PostgreSQL in production but supports SQLite for local
development and CI. Engines are built per store instance; nothing is cached
at module level.
"""

from __future__ import annotations

import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def build_engine(url: str) -> Engine:
    """Return a SQLAlchemy Engine for the given URL.

    For SQLite in-memory URLs, use a StaticPool to keep a single connection
    alive across sessions and threads; otherwise every new connection would
    see an empty database.
    """
    kwargs: dict = {"future": True, "pool_pre_ping": True}
    if url.startswith("sqlite") and ":memory:" in url:
        kwargs.update({
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        })
    engine = create_engine(url, **kwargs)
    logger.info("store_engine_created dialect=%s", engine.dialect.name)
    return engine


__all__ = ["build_engine"]
