"""
Database Connection Module

Provides the SQLAlchemy engine and the transaction store built on it.
"""

import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from sms_ingest.config import IngestionConfig, load_config
from sms_ingest.store import SqlTransactionStore

# Database URL from environment
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///sms_ingest.db")


def create_db_engine(url: str = DATABASE_URL) -> Engine:
    """Create an engine for the given database URL.

    Args:
        url: SQLAlchemy database URL

    Returns:
        Engine
    """
    if url.startswith("sqlite"):
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


engine = create_db_engine()

_store: SqlTransactionStore | None = None
_config: IngestionConfig | None = None


def get_store() -> SqlTransactionStore:
    """Get the transaction store for FastAPI dependency injection."""
    global _store
    if _store is None:
        _store = SqlTransactionStore(engine)
        _store.create_schema()
    return _store


def get_config() -> IngestionConfig:
    """Get the ingestion configuration, loaded once from CONFIG_DIR."""
    global _config
    if _config is None:
        _config = load_config(os.getenv("CONFIG_DIR"))
    return _config
