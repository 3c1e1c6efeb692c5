"""SQLAlchemy engine and session factory for the metadata store.

Permission computation is synchronous, so the store uses a plain
(non-async) engine.  Engine configuration follows the URL scheme:

  - ``sqlite://``     → single-file (or in-memory) SQLite, foreign keys on
  - anything else     → connection-pooled engine with pre-ping
"""

from __future__ import annotations

import logging
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


def get_engine(
    database_url: str,
    pool_size: int = 5,
    max_overflow: int = 10,
) -> Engine:
    """Create a SQLAlchemy engine for *database_url*.

    Parameters
    ----------
    database_url:
        Connection string.  For SQLite file URLs the parent directory is
        created automatically; ``sqlite://`` or ``sqlite:///:memory:``
        gives an in-memory database shared by every session of the engine.
    pool_size:
        Persistent connections for pooled backends (ignored for SQLite).
    max_overflow:
        Overflow connections for pooled backends (ignored for SQLite).
    """
    if database_url.startswith("sqlite"):
        db_path = database_url.split("///", 1)[1] if "///" in database_url else ""
        if db_path in ("", ":memory:"):
            engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(database_url, connect_args={"check_same_thread": False})

        @event.listens_for(engine, "connect")
        def _set_sqlite_pragmas(dbapi_conn: object, _: object) -> None:
            cursor = dbapi_conn.cursor()  # type: ignore[attr-defined]
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        logger.info("Created SQLite engine: %s", engine.url)
        return engine

    engine = create_engine(
        database_url,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=3600,
    )
    logger.info("Created engine pool_size=%d max_overflow=%d", pool_size, max_overflow)
    return engine


def create_tables(engine: Engine) -> None:
    """Create all metadata tables.  Idempotent."""
    from query_perms.state.tables import Base

    Base.metadata.create_all(engine)
    logger.info("Metadata tables created/verified")


@contextmanager
def get_session(engine: Engine) -> Generator[Session, None, None]:
    """Yield a session with automatic commit/rollback semantics.

    On successful exit the session is committed.  If an exception propagates
    the session is rolled back before the error is re-raised.
    """
    session = sessionmaker(engine, expire_on_commit=False)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
