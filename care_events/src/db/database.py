"""
Database connection and session management.

The engine and session factory live on an explicitly constructed Database
object that the application opens at startup and disposes at shutdown.
Request handlers receive sessions through the get_db dependency, which
reads the Database from application state.
"""

from typing import Generator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from care_events.src.config.settings import AppSettings, get_settings
from care_events.src.utils.logging_config import get_logger


logger = get_logger("db")


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    """SQLite ignores ON DELETE clauses unless foreign keys are switched on."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Usage:
        >>> database = Database(settings)
        >>> database.open()
        >>> with database.session() as db:
        ...     EventLifecycleService(db).list_events(institution_guid)
        >>> database.close()
    """

    def __init__(self, settings: Optional[AppSettings] = None):
        self.settings = settings or get_settings()
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    def open(self) -> "Database":
        """Create the engine and session factory. Idempotent."""
        if self._engine is not None:
            return self

        url = self.settings.database_url
        if self.settings.is_sqlite:
            # SQLite doesn't support pool_size, max_overflow, or pool_recycle
            self._engine = create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
                echo=False,
                future=True
            )
            event.listen(self._engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self._engine = create_engine(
                url,
                pool_size=20,
                max_overflow=10,
                pool_pre_ping=True,    # Verify connections before checkout
                pool_recycle=3600,     # Recycle connections after 1 hour
                echo=False,
                future=True
            )

        self._session_factory = sessionmaker(
            autocommit=False,
            autoflush=False,
            bind=self._engine,
            future=True
        )
        logger.info(f"Database engine opened ({self._engine.dialect.name})")
        return self

    def session(self) -> Session:
        """Create a new session. The caller is responsible for closing it."""
        if self._session_factory is None:
            raise RuntimeError("Database is not open")
        return self._session_factory()

    def init_schema(self) -> None:
        """
        Create tables from model metadata.

        Intended for development and tests. Production schemas are managed
        by Alembic migrations.
        """
        from care_events.src.models import Base
        Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        """Dispose of the engine and close all pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._engine = None
        self._session_factory = None


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency for FastAPI routes to get a database session.

    Yields:
        Session: SQLAlchemy session bound to the application's Database
    """
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
