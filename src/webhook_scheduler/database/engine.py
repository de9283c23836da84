"""SQLite engine and transactional sessions for the scheduler store."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .models import Base

logger = logging.getLogger(__name__)

_CONNECTION_PRAGMAS = (
    "PRAGMA foreign_keys=ON",
    "PRAGMA journal_mode=WAL",
)


def _apply_pragmas(dbapi_conn, connection_record) -> None:
    # Deleting a webhook relies on ON DELETE CASCADE, which SQLite only honours per connection
    cursor = dbapi_conn.cursor()
    for pragma in _CONNECTION_PRAGMAS:
        cursor.execute(pragma)
    cursor.close()


class DatabaseEngine:
    """Owns the SQLAlchemy engine for one SQLite file.

    The ticker, the HTTP API and the CLI share a single instance per process.
    Call :meth:`initialize` once before requesting sessions.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker] = None

    def initialize(self) -> None:
        """Open the database file, creating it and its schema when missing."""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        # API handlers run in a threadpool while the ticker runs on the loop thread
        self.engine = create_engine(
            f"sqlite:///{self.db_path}",
            pool_pre_ping=True,
            connect_args={"check_same_thread": False},
        )
        event.listen(self.engine, "connect", _apply_pragmas)

        Base.metadata.create_all(self.engine)
        self.session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info(f"Database ready at {self.db_path}")

    def get_session(self) -> Session:
        """
        Return a new session bound to the engine.

        Raises:
            RuntimeError: If :meth:`initialize` has not been called
        """
        if self.session_factory is None:
            raise RuntimeError("Database not initialized. Call initialize() first.")
        return self.session_factory()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """
        Yield a session that commits on exit and rolls back on error.

        Example:
            with db_engine.session_scope() as session:
                session.add(Webhook(name="alerts", url="https://discord.com/api/webhooks/..."))
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self) -> None:
        """Dispose of pooled connections. Safe to call before initialize()."""
        if self.engine is None:
            return
        self.engine.dispose()
        logger.info("Database connections closed")
