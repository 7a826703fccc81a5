"""Centralized PostgreSQL engine factory.

The matching engine only reads from the staffing store, so one engine per
process is enough. Dagster's DefaultRunLauncher spawns one subprocess per run,
which means each run gets exactly one engine.

Uses NullPool: connections are opened on demand and closed right after use, so
an idle run holds no connection against the store.
"""

import os
import threading

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool

_lock = threading.Lock()
_engine: Engine | None = None
_session_factory: sessionmaker | None = None


def _build_url() -> str:
    host = os.getenv("POSTGRES_HOST", "localhost")
    port = os.getenv("POSTGRES_PORT", "5432")
    user = os.getenv("POSTGRES_USER", "staffing")
    password = os.getenv("POSTGRES_PASSWORD", "staffing_dev")
    database = os.getenv("POSTGRES_DB", "staffing")
    return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{database}"


def get_engine() -> Engine:
    """Return the process-wide SQLAlchemy engine, creating it on first call."""
    global _engine, _session_factory
    if _engine is None:
        with _lock:
            if _engine is None:
                _engine = create_engine(_build_url(), poolclass=NullPool)
                _session_factory = sessionmaker(bind=_engine)
    return _engine


def get_session() -> Session:
    """Create a new session from the shared engine."""
    get_engine()
    return _session_factory()
