"""Connection pool setup for the application database."""

from __future__ import annotations

import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

_MAX_IDLE_CONNECTIONS = 5
_MAX_OPEN_CONNECTIONS = 15
_MAX_IDLE_SECONDS = 10 * 60


def new_engine() -> Engine:
    """Create a pooled engine from DATABASE_URL and check it can connect."""
    dsn = os.environ.get("DATABASE_URL", "")
    if not dsn:
        raise RuntimeError("DATABASE_URL not set")
    engine = create_engine(
        dsn,
        pool_size=_MAX_IDLE_CONNECTIONS,
        max_overflow=_MAX_OPEN_CONNECTIONS - _MAX_IDLE_CONNECTIONS,
        pool_recycle=_MAX_IDLE_SECONDS,
    )
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError:
        engine.dispose()
        raise
    return engine