"""Database engine, session management, and initialization for SQLite + SQLAlchemy."""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///data/website_analysis.db"


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def _enable_wal(dbapi_conn, connection_record):
    """Enable WAL journal mode and other SQLite pragmas for better concurrency."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL;")
    cursor.execute("PRAGMA synchronous=NORMAL;")
    cursor.execute("PRAGMA foreign_keys=ON;")
    cursor.execute("PRAGMA busy_timeout=5000;")
    cursor.close()


class Database:
    """Owns one engine and its session factory.

    Instances are created by the application and passed to the storage
    layer explicitly; nothing here is module-global.

    Usage::

        db = Database("sqlite:///data/website_analysis.db")
        db.create_all()
        with db.session() as session:
            session.add(obj)
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False) -> None:
        if database_url is None:
            database_url = os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL)
        self.url = database_url

        kwargs: dict = {"echo": echo}
        if database_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
                # One shared connection, so worker threads see the same in-memory DB.
                kwargs["poolclass"] = StaticPool
            else:
                db_path = database_url.replace("sqlite:///", "")
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)
                kwargs["pool_pre_ping"] = True

        self.engine: Engine = create_engine(database_url, **kwargs)
        if database_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_wal)
        self._session_factory = sessionmaker(bind=self.engine, expire_on_commit=False)
        logger.info("Database engine created: %s", database_url)

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional session; commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_all(self) -> None:
        """Create all tables that do not yet exist."""
        # Side-effect import: registers all models with Base.metadata
        import site_analyzer.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)
        logger.info("All database tables created / verified.")

    def dispose(self) -> None:
        self.engine.dispose()
