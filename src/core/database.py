"""Database connection and session management.

This module handles the database connection using SQLAlchemy. SQLite is the
default store; any SQLAlchemy URL can be supplied through DATABASE_URL.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from config import DATA_DIR, DATABASE_URL, DB_TIMEOUT_SECONDS
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401


def build_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    """Create an engine whose operations are bounded by DB_TIMEOUT_SECONDS.

    Args:
        url: SQLAlchemy database URL.
        **kwargs: Extra keyword arguments for ``create_engine``.

    Returns:
        Configured Engine.
    """
    if url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        connect_args.setdefault("timeout", DB_TIMEOUT_SECONDS)
        engine = create_engine(url, connect_args=connect_args, **kwargs)

        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    kwargs.setdefault("pool_timeout", DB_TIMEOUT_SECONDS)
    kwargs.setdefault("pool_pre_ping", True)
    return create_engine(url, **kwargs)


if DATABASE_URL.startswith("sqlite:///"):
    # Ensure data directory exists
    DATA_DIR.mkdir(parents=True, exist_ok=True)

engine = build_engine()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create tables if they do not exist."""
    Base.metadata.create_all(bind=bind)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
