"""Database configuration (SQLAlchemy).

Why this module exists:
- Centralizes DB connection configuration (`Settings.database_url`).
- Provides a shared SQLAlchemy `engine` + `SessionLocal` factory.
- Exposes `init_db()` to create tables on application startup.

SQLite is the default for local runs; any SQLAlchemy URL (e.g. PostgreSQL)
can be configured through `ZONEGRID_DATABASE_URL`.
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from core.config import get_settings

DATABASE_URL = get_settings().database_url

_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db() -> None:
    """Create DB tables (if they don't exist yet)."""
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)
