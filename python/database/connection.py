"""
Database Connection Management for the Crypto Compliance Tracker

Route handlers receive a request-scoped session through the ``get_db``
FastAPI dependency and own their commit. Scripts use
``DatabaseSessionProvider.session_scope()``, which commits on success.

The engine is created once at startup; only that connect step is retried
(tenacity, OperationalError only). Queries on request paths are never
retried.

PostgreSQL gets a QueuePool sized from the DB_POOL_* variables. A
``sqlite://`` DATABASE_URL (local development) gets a single shared
in-memory connection with foreign keys switched on, so ON DELETE CASCADE
behaves as it does on PostgreSQL.
"""

import os
import logging
from typing import Any, Dict, Generator, Optional
from contextlib import contextmanager
from dataclasses import dataclass, field

from sqlalchemy import create_engine, event, text, Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from tenacity import (
    Retrying,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
    before_sleep_log
)

from database.models import Base

logger = logging.getLogger(__name__)

IN_MEMORY_SQLITE_URLS = ("sqlite://", "sqlite:///:memory:")


# ============================================
# CONFIGURATION
# ============================================

@dataclass
class DatabaseSettings:
    """
    Where the database lives and how the pool is sized.

    ``url`` (DATABASE_URL) wins over the DB_HOST/DB_PORT/... pieces.
    """
    url: Optional[str] = None
    host: str = "localhost"
    port: int = 5432
    database: str = "compliance_tracker"
    user: str = "compliance"
    password: str = field(default="compliance", repr=False)
    pool_size: int = 10
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    connect_attempts: int = 3
    echo: bool = False

    @classmethod
    def from_env(cls) -> 'DatabaseSettings':
        return cls(
            url=os.getenv("DATABASE_URL") or None,
            host=os.getenv("DB_HOST", "localhost"),
            port=int(os.getenv("DB_PORT", "5432")),
            database=os.getenv("DB_NAME", "compliance_tracker"),
            user=os.getenv("DB_USER", "compliance"),
            password=os.getenv("DB_PASSWORD", "compliance"),
            pool_size=int(os.getenv("DB_POOL_SIZE", "10")),
            max_overflow=int(os.getenv("DB_MAX_OVERFLOW", "10")),
            pool_timeout=int(os.getenv("DB_POOL_TIMEOUT", "30")),
            pool_recycle=int(os.getenv("DB_POOL_RECYCLE", "1800")),
            connect_attempts=int(os.getenv("DB_CONNECT_ATTEMPTS", "3")),
            echo=os.getenv("DB_ECHO", "false").lower() == "true"
        )

    def get_url(self) -> str:
        """
        SQLAlchemy URL. Heroku-style ``postgres://`` URLs are rewritten to
        the psycopg2 dialect name SQLAlchemy expects.
        """
        if self.url:
            if self.url.startswith("postgres://"):
                return self.url.replace("postgres://", "postgresql+psycopg2://", 1)
            return self.url

        return (
            f"postgresql+psycopg2://{self.user}:{self.password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.get_url().startswith("sqlite")

    def engine_options(self) -> Dict[str, Any]:
        """Keyword arguments for ``create_engine`` matching the backend."""
        if not self.is_sqlite:
            return {
                "poolclass": QueuePool,
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
                "pool_recycle": self.pool_recycle,
                "pool_pre_ping": True,
            }

        options: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
        if self.get_url() in IN_MEMORY_SQLITE_URLS:
            # every pooled connection would otherwise see its own empty database
            options["poolclass"] = StaticPool
        return options


def enable_sqlite_foreign_keys(engine: Engine) -> None:
    """Turn on FK enforcement for every new SQLite connection of ``engine``."""

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ============================================
# DATABASE SESSION PROVIDER (FastAPI DI)
# ============================================

class DatabaseSessionProvider:
    """
    Owns the engine and session factory.

    Usage:
        provider = init_db()
        with provider.session_scope() as session:
            ReportTypeRepository(session).create({...})
    """

    def __init__(
        self,
        settings: Optional[DatabaseSettings] = None,
        engine: Optional[Engine] = None
    ):
        """
        Args:
            settings: Database settings (read from the environment if omitted)
            engine: Pre-created engine (tests)
        """
        self._settings = settings or DatabaseSettings.from_env()
        self._engine = engine
        self._session_factory: Optional[sessionmaker] = None
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def init(self, echo: Optional[bool] = None) -> None:
        """Create the engine (unless one was injected) and the session factory."""
        if self._initialized:
            return

        if echo is not None:
            self._settings.echo = echo

        if self._engine is None:
            self._engine = self._connect()

        if self._engine.dialect.name == "sqlite":
            enable_sqlite_foreign_keys(self._engine)

        self._session_factory = sessionmaker(
            bind=self._engine,
            autocommit=False,
            autoflush=False,
            expire_on_commit=False
        )

        self._initialized = True
        logger.info("Database session provider initialized (dialect=%s)", self._engine.dialect.name)

    def _connect(self) -> Engine:
        """Create the engine and verify a round trip, retrying unreachable servers."""
        retrying = Retrying(
            stop=stop_after_attempt(self._settings.connect_attempts),
            wait=wait_exponential(multiplier=1, min=1, max=10),
            retry=retry_if_exception_type(OperationalError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True
        )
        for attempt in retrying:
            with attempt:
                engine = create_engine(
                    self._settings.get_url(),
                    echo=self._settings.echo,
                    **self._settings.engine_options()
                )
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
        return engine

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._engine

    @property
    def session_factory(self) -> sessionmaker:
        if self._session_factory is None:
            raise RuntimeError("Database not initialized. Call init() first.")
        return self._session_factory

    def get_session(self) -> Generator[Session, None, None]:
        """
        Request-scoped session. Route handlers own the commit; anything left
        uncommitted is rolled back when the session closes.
        """
        if self._session_factory is None:
            self.init()

        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on any exception."""
        if self._session_factory is None:
            self.init()

        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Create every table from the ORM metadata (tests and local SQLite)."""
        if not self._initialized:
            self.init()
        Base.metadata.create_all(self._engine)
        logger.info("Database tables created")

    def drop_tables(self) -> None:
        if not self._initialized:
            self.init()
        Base.metadata.drop_all(self._engine)
        logger.warning("Database tables dropped")

    def health_check(self) -> bool:
        """True when ``SELECT 1`` succeeds."""
        try:
            with self.session_scope() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database health check failed: %s", e)
            return False

    def close(self) -> None:
        """Dispose the engine's pooled connections."""
        if self._engine:
            self._engine.dispose()
            logger.info("Database engine disposed")
        self._initialized = False


# ============================================
# GLOBAL PROVIDER INSTANCE
# ============================================

_db_provider: Optional[DatabaseSessionProvider] = None


def get_db_provider() -> DatabaseSessionProvider:
    """The process-wide provider (created lazily)."""
    global _db_provider
    if _db_provider is None:
        _db_provider = DatabaseSessionProvider()
    return _db_provider


def init_db(echo: bool = False) -> DatabaseSessionProvider:
    """Initialize the process-wide provider; called from startup and the CLI scripts."""
    provider = get_db_provider()
    provider.init(echo=echo)
    return provider


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI dependency for a database session.

    Usage:
        @router.get("/policies")
        def list_policies(db: Session = Depends(get_db)):
            ...
    """
    provider = get_db_provider()
    if not provider.initialized:
        provider.init()

    yield from provider.get_session()


def close_db() -> None:
    """Dispose the process-wide provider; called at shutdown."""
    global _db_provider
    if _db_provider:
        _db_provider.close()
        _db_provider = None


def create_test_provider(
    engine: Optional[Engine] = None,
    settings: Optional[DatabaseSettings] = None
) -> DatabaseSessionProvider:
    """
    Initialized provider for tests.

    Without an engine or settings it binds to a private in-memory SQLite
    database.
    """
    if engine is None and settings is None:
        settings = DatabaseSettings(url="sqlite://")
    provider = DatabaseSessionProvider(settings=settings, engine=engine)
    provider.init()
    return provider
