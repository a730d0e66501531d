"""Engine and session management.

The scheduler's settlement and daily-picks jobs write from worker threads
while CLI commands may hit the same SQLite file, so SQLite connections run
in WAL mode with a busy timeout instead of failing fast on a locked file.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import get_settings
from .models import Base

logger = logging.getLogger(__name__)

SQLITE_BUSY_TIMEOUT_MS = 5000

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:")


def build_engine(url: str) -> Engine:
    """Create an engine for ``url`` with SQLite tuned for threaded writers."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if _is_memory_sqlite(url):
        # Every connection to :memory: is a new database; share one
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)

    @event.listens_for(engine, "connect")
    def _sqlite_pragmas(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        if not _is_memory_sqlite(url):
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS}")
        cursor.close()

    return engine


def get_engine() -> Engine:
    """Engine for the configured DATABASE_URL, built on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings().database_url)
    return _engine


def get_session_factory() -> sessionmaker:
    global _session_factory
    if _session_factory is None:
        # Rows handed back to callers stay readable after the session closes
        _session_factory = sessionmaker(bind=get_engine(), expire_on_commit=False)
    return _session_factory


def reset_engine() -> None:
    """Dispose the cached engine so the next call rebuilds it from settings."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Unit of work: commit on success, roll back and re-raise on error."""
    session = get_session_factory()()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_db() -> None:
    """Create any missing tables."""
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
    logger.debug(f"Database ready: {', '.join(sorted(Base.metadata.tables))}")
