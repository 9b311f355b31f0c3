"""Database connection and session management.

This module handles the database connection using SQLAlchemy. SQLite is the
default; any SQLAlchemy URL can be configured through ``DATABASE_URL``.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATA_DIR, DATABASE_URL, SQL_ECHO
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401
# Registers the profile statistics flush hooks
import core.stats  # noqa: F401


def build_engine(url: str) -> Engine:
    """Create an engine for ``url``.

    SQLite gets foreign key enforcement switched on, and in-memory databases
    share one connection so every session sees the same data.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, echo=SQL_ECHO, pool_pre_ping=True)

    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    new_engine = create_engine(url, echo=SQL_ECHO, **kwargs)

    @event.listens_for(new_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return new_engine


if DATABASE_URL.startswith("sqlite:///") and ":memory:" not in DATABASE_URL:
    # Ensure data directory exists
    DATA_DIR.mkdir(parents=True, exist_ok=True)

engine = build_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    Base.metadata.create_all(bind=bind)


# Initialize DB (create tables if not exist)
init_db()


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
