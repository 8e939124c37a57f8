"""
Storage - Database.

============================================================
RESPONSIBILITY
============================================================
Manages database engine, sessions and schema.

- Provides connection pooling
- Bounds connection and statement time
- Creates the schema on demand
- Health checks for connections

============================================================
DESIGN PRINCIPLES
============================================================
- No module-level engine: the engine is built once at startup
  and passed to the store explicitly
- PostgreSQL in production, SQLite for development and tests
- One engine shared by the ingestion write path and the
  query read path

============================================================
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storage.models.base import Base

# Registers MetricRecord on Base.metadata
from storage.models import metric  # noqa: F401


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection settings."""
    url: str
    pool_size: int = 5
    max_overflow: int = 10
    pool_recycle: int = 1800
    timeout_seconds: float = 10.0
    echo: bool = False


def _safe_url(url: str) -> str:
    return url.split("@")[-1]


def create_database_engine(config: DatabaseConfig) -> Engine:
    """
    Create SQLAlchemy engine with connection pooling and timeouts.

    Args:
        config: Database configuration

    Returns:
        SQLAlchemy Engine
    """
    url = make_url(config.url)
    engine_kwargs: Dict[str, Any] = {"echo": config.echo, "future": True}

    if url.get_backend_name() == "sqlite":
        # Store calls run in worker threads
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": config.timeout_seconds,
        }
        if url.database in (None, "", ":memory:"):
            engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.timeout_seconds,
            pool_recycle=config.pool_recycle,
            pool_pre_ping=True,
        )
        if url.get_backend_name() == "postgresql":
            statement_timeout_ms = int(config.timeout_seconds * 1000)
            engine_kwargs["connect_args"] = {
                "connect_timeout": max(1, int(config.timeout_seconds)),
                "options": f"-c statement_timeout={statement_timeout_ms}",
            }

    logger.info(f"Creating database engine for: {_safe_url(config.url)}")
    engine = create_engine(url, **engine_kwargs)

    @event.listens_for(engine, "connect")
    def on_connect(dbapi_conn, connection_record):
        logger.debug("Database connection established")

    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to engine."""
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


def init_schema(engine: Engine) -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)
    logger.info("Database schema ensured")


def check_connection(engine: Engine) -> bool:
    """Return True if a trivial query succeeds."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        return False
