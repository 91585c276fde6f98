"""Engine and session lifecycle for the user directory.

The engine and session factory are module-level: init_database() is called
once at startup, get_session() hands out transactional sessions, and
close_database() disposes of the pool at shutdown.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from aqmonitor.logging import get_logger

from .exceptions import DatabaseConnectionError

_engine: Engine | None = None
_session_factory: sessionmaker | None = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str) -> None:
    """Connect to the directory database and create missing tables.

    SQLite file databases get their parent directory created. In-memory
    SQLite shares a single connection so every session sees the same data.

    Args:
        database_url: SQLAlchemy URL (e.g., "sqlite:///./data/aqmonitor.db")

    Raises:
        DatabaseConnectionError: If the URL is invalid or the database is unreachable
    """
    global _engine, _session_factory

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    redacted = url.render_as_string(hide_password=True)
    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": redacted},
    )

    is_sqlite = url.get_backend_name() == "sqlite"
    in_memory = is_sqlite and url.database in (None, "", ":memory:")

    try:
        if is_sqlite and not in_memory:
            db_file = Path(url.database)
            db_file.parent.mkdir(parents=True, exist_ok=True)

        engine_kwargs = {"echo": False, "pool_pre_ping": True}
        if is_sqlite:
            engine_kwargs["connect_args"] = {"check_same_thread": False, "timeout": 30}
        if in_memory:
            engine_kwargs["poolclass"] = StaticPool

        _engine = create_engine(url, **engine_kwargs)

        if is_sqlite and not in_memory:
            _enable_wal(_engine)

        _ping(_engine)

        _session_factory = sessionmaker(
            bind=_engine,
            autoflush=True,
            expire_on_commit=False,
        )

        from .schema import create_schema

        create_schema(_engine)

    except DatabaseConnectionError:
        raise
    except Exception as e:
        logger.error(
            f"Failed to open user directory: {e}",
            extra={"event": "database.init_failed", "database_url": redacted},
            exc_info=True,
        )
        raise DatabaseConnectionError(f"Failed to open user directory: {e}") from e

    logger.info(
        "Database initialized successfully",
        extra={"event": "database.initialised", "database_url": redacted},
    )


def _enable_wal(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn, _record):
        dbapi_conn.execute("PRAGMA journal_mode=WAL")


def _ping(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).scalar()
    except Exception as e:
        raise DatabaseConnectionError(f"User directory is unreachable: {e}") from e


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Provide a session that commits on success and rolls back on error.

    Yields:
        Session: SQLAlchemy session

    Raises:
        DatabaseConnectionError: If init_database() has not been called

    Example:
        >>> with get_session() as session:
        ...     user = UserRepository(session).get_by_email("ada@example.com")
    """
    if _session_factory is None:
        raise DatabaseConnectionError(
            "Database not initialized: call init_database() first"
        )

    session = _session_factory()
    try:
        yield session
        session.commit()
        logger.debug("Database session committed", extra={"event": "database.session.committed"})
    except Exception as e:
        session.rollback()
        logger.warning(
            f"Directory changes rolled back: {e}",
            extra={"event": "database.session.rolled_back", "error_type": type(e).__name__},
        )
        raise
    finally:
        session.close()


def close_database() -> None:
    """Dispose of the engine. Safe to call when not initialized."""
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
        _engine = None
        _session_factory = None
        logger.info("Database connections closed", extra={"event": "database.closed"})
