"""Database engine and session factory creation."""

from pathlib import Path
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool, StaticPool

from hsm.config import Config

# Seconds a connection waits for the SQLite write lock before "database is locked"
SQLITE_BUSY_TIMEOUT = 30.0


def is_sqlite_memory(url: URL) -> bool:
    return url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:")


def normalize_url(database_url: str) -> URL:
    """Parse a database URL. A SQLite file path gets ~ expanded and its directory created."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite" or is_sqlite_memory(url):
        return url

    path = Path(url.database).expanduser().resolve()
    path.parent.mkdir(parents=True, exist_ok=True)
    return url.set(database=str(path))


def _enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own BEGIN so SAVEPOINT / begin_nested() work on SQLite.

    The sqlite3 driver otherwise issues its own BEGIN lazily and breaks
    nested transactions. BEGIN IMMEDIATE takes the write lock up front, so
    concurrent units of work on a file database queue on the busy timeout
    instead of failing to upgrade a read lock mid-transaction.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def create_db_engine(config: Config) -> AsyncEngine:
    """Create async database engine.

    Handles SQLite and PostgreSQL with appropriate settings.
    """
    url = normalize_url(config.database.url)
    is_sqlite = url.get_backend_name() == "sqlite"

    if is_sqlite_memory(url):
        engine_kwargs: dict[str, Any] = {
            "echo": config.database.echo,
            # An in-memory database lives only as long as its one connection
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    elif is_sqlite:
        engine_kwargs = {
            "echo": config.database.echo,
            # One connection per unit of work; SQLite serializes writers itself
            "poolclass": NullPool,
            "connect_args": {"timeout": SQLITE_BUSY_TIMEOUT},
        }
    else:
        # PostgreSQL settings
        engine_kwargs = {
            "echo": config.database.echo,
            "pool_pre_ping": True,
            "pool_size": 5,
            "max_overflow": 10,
        }

    engine = create_async_engine(url, **engine_kwargs)
    if is_sqlite:
        _enable_sqlite_savepoints(engine)
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory for dependency injection."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
        autocommit=False,
    )
