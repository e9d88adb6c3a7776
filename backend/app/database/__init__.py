"""
Database engine, session factory, and metadata shared across the application.

Services never open sessions themselves: callers obtain one from
``get_db_session()`` (or ``get_db()`` as a framework dependency) and pass it in,
one session per logical request.
"""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Generator, Optional

from sqlalchemy import create_engine, event, inspect
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.orm import DeclarativeMeta, Session, declarative_base, sessionmaker

from app.core.config import settings

logger = logging.getLogger(__name__)


def _build_engine_kwargs(db_url: str) -> dict[str, Any]:
    if db_url.startswith("sqlite"):
        # Sessions are handed across worker threads by the caller.
        return {"connect_args": {"check_same_thread": False}, "echo": settings.database_echo}
    return {
        "pool_size": settings.database_pool_size,
        "max_overflow": settings.database_max_overflow,
        "pool_timeout": settings.database_pool_timeout,
        "pool_pre_ping": True,
        "echo": settings.database_echo,
    }


def create_db_engine(db_url: Optional[str] = None, **overrides: Any) -> Engine:
    """
    Create an engine for ``db_url`` (defaults to settings.database_url).

    ``overrides`` replace the computed engine keyword arguments, e.g. a
    ``poolclass`` for an in-memory database shared across threads.
    """
    url = db_url or settings.database_url
    engine_kwargs = _build_engine_kwargs(url)
    engine_kwargs.update(overrides)
    db_engine = create_engine(url, **engine_kwargs)
    if url.startswith("sqlite"):
        _enable_sqlite_foreign_keys(db_engine)
    return db_engine


def _enable_sqlite_foreign_keys(db_engine: Engine) -> None:
    @event.listens_for(db_engine, "connect")
    def _on_connect(dbapi_connection: Any, _connection_record: Any) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


engine: Engine = create_db_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)

Base: DeclarativeMeta = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """Framework dependency yielding a session that is always closed."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """Context manager for one request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables on ``bind``. Production schemas are provisioned externally."""
    import app.models  # noqa: F401  (populate metadata)

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")


def get_dialect_name(session: Session, default: str = "sqlite") -> str:
    """
    Return SQLAlchemy dialect name for the session's bind.

    Falls back to ``default`` when the bound engine cannot be resolved.
    """
    bind: Optional[Connection | Engine]
    try:
        bind = session.get_bind()
    except Exception:
        bind = getattr(inspect(session), "bind", None)
    if bind is None:
        return default
    return getattr(getattr(bind, "dialect", None), "name", None) or default


__all__ = [
    "Base",
    "SessionLocal",
    "create_db_engine",
    "engine",
    "get_db",
    "get_db_session",
    "get_dialect_name",
    "init_db",
]
