"""
Store abstraction: UserStore / StudentStore protocols with SQL and in-memory implementations.
STORAGE_BACKEND selects the implementation; tests override get_store with a fresh MemoryStore.
"""
import logging
from typing import Iterator

from smansys.config import settings
from smansys.store.base import (
    DuplicateKeyError,
    RoleStat,
    Store,
    StoreError,
    StudentFilter,
    StudentRecord,
    StudentStore,
    UserFilter,
    UserRecord,
    UserStore,
)

logger = logging.getLogger(__name__)

_memory_store = None


def get_memory_store():
    """Process-wide MemoryStore for STORAGE_BACKEND=memory; created (and optionally seeded) on first use."""
    global _memory_store
    if _memory_store is None:
        from smansys.store.memory_impl import MemoryStore
        _memory_store = MemoryStore()
        logger.warning("STORAGE_BACKEND=memory: data is kept in process and lost on restart.")
        if settings.seed_demo_users:
            from smansys.services.auth import seed_demo_users
            seed_demo_users(_memory_store.users)
    return _memory_store


def get_store() -> Iterator[Store]:
    """Dependency: yield the configured store; SQL sessions are closed after the request."""
    if settings.storage_backend == "memory":
        yield get_memory_store()
        return
    from smansys.database import SessionLocal
    from smansys.store.sql_impl import SqlStore
    db = SessionLocal()
    try:
        yield SqlStore(db)
    finally:
        db.close()


__all__ = [
    "DuplicateKeyError",
    "RoleStat",
    "Store",
    "StoreError",
    "StudentFilter",
    "StudentRecord",
    "StudentStore",
    "UserFilter",
    "UserRecord",
    "UserStore",
    "get_memory_store",
    "get_store",
]
