"""
SQLAlchemy engine and session. Supports PostgreSQL and SQLite (for local runs and tests).
Sync usage; one session per request via the store dependency.
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from smansys.config import settings

logger = logging.getLogger(__name__)

_is_sqlite = "sqlite" in settings.database_url
_connect_args = {"check_same_thread": False} if _is_sqlite else {}
engine = create_engine(
    settings.database_url,
    pool_pre_ping=not _is_sqlite,
    connect_args=_connect_args,
    echo=False,  # Set True for SQL logging during development
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def init_sqlite_db():
    """When using SQLite: create tables and optionally seed demo users. Call once at app startup."""
    if not _is_sqlite:
        return
    # Import all models so they register with Base before create_all
    from smansys.models import user, student  # noqa: F401
    Base.metadata.create_all(bind=engine)
    if not settings.seed_demo_users:
        return
    from smansys.services.auth import seed_demo_users
    from smansys.store.sql_impl import SqlStore
    db = SessionLocal()
    try:
        created = seed_demo_users(SqlStore(db).users)
        if created:
            logger.info("SQLite init: seeded %s demo user(s)", created)
    finally:
        db.close()
