"""
Database engine and session management.

Provides the engine factory and a small Database wrapper the API layer
holds on to. Repositories receive either a Session (request-scoped work)
or the session factory (reads that may run on worker threads).

Using the repository pattern means most code never touches this module
directly.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from ...config.settings import Settings
from .tables import Base


logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless this is set per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(url: str, echo: bool = False) -> Engine:
    """Create an engine with backend-specific connection settings."""
    backend = make_url(url).get_backend_name()
    connect_args = {}
    if backend == "sqlite":
        connect_args["check_same_thread"] = False
    elif backend.startswith("postgresql"):
        connect_args["options"] = "-c timezone=utc"

    engine = create_engine(url, echo=echo, pool_pre_ping=True, connect_args=connect_args)

    if backend == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    logger.debug("Created database engine", extra={"backend": backend})
    return engine


class Database:
    """Owns the engine and hands out sessions."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self.session_factory = sessionmaker(
            bind=engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(create_db_engine(settings.database_url, echo=settings.database_echo))

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Provide a session that is always closed.

        Repositories commit or roll back their own work; this only
        guarantees the connection goes back to the pool.
        """
        session = self.session_factory()
        try:
            yield session
        finally:
            session.close()

    def init_schema(self) -> None:
        Base.metadata.create_all(self.engine)
        logger.info("Database schema ensured")

    def ping(self) -> None:
        """Raise if the database cannot answer a trivial query."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()
