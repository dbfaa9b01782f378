"""
SQLite engine and session handling for the pool document store.

The pool is persisted as one JSON document per pool, so the database is small
and written by a single process. WAL journaling keeps reads from blocking the
writer while a document is being replaced.
"""
import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import SQLModel, Session, create_engine

from src.config import get_config
from src.db_models import PoolDocument  # noqa: F401 - registers table metadata

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


def database_url(db_file: str) -> str:
    """sqlite URL for a file path; ':memory:' gives an in-memory database"""
    if db_file == ":memory:":
        return "sqlite://"
    return f"sqlite:///{db_file}"


def _set_sqlite_pragmas(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=5000")
    cursor.close()


def get_engine() -> Engine:
    """Engine for the configured db_file, created on first use"""
    global _engine
    if _engine is None:
        config = get_config()
        _engine = create_engine(
            database_url(config.db_file),
            connect_args={"check_same_thread": False},
        )
        if config.db_file != ":memory:":
            event.listen(_engine, "connect", _set_sqlite_pragmas)
        logger.info(f"Pool database: {config.db_file}")
    return _engine


def init_database() -> None:
    """Create the pool_documents table if missing"""
    SQLModel.metadata.create_all(get_engine())
    logger.info("Database tables initialized")


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """
    Session that commits on success and rolls back on error.

    Usage:
        with get_session() as session:
            state = PoolDocumentRepository(session).load_state("default")
    """
    session = Session(get_engine())
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def close_database() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database connections closed")
