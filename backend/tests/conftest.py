"""
Shared fixtures: a fresh in-memory store per test, injected into the app through dependency overrides.
Environment is set before smansys is imported so Settings picks it up.
"""
import os

os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SEED_DEMO_USERS", "false")

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from smansys.main import app
from smansys.services.auth import hash_password, token_for
from smansys.store import get_store
from smansys.store.memory_impl import MemoryStore


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def client(store):
    """TestClient with get_store overridden to the per-test MemoryStore."""
    app.dependency_overrides[get_store] = lambda: store
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_store, None)


@pytest.fixture
def make_user(store):
    """Create a user directly in the store. Pass password=... to get a real bcrypt hash."""

    def _make(role="user", email=None, password=None, **fields):
        fields.setdefault("first_name", "Test")
        fields.setdefault("last_name", role.capitalize())
        return store.users.create(
            email=email or f"{role}-{uuid.uuid4().hex[:8]}@school.example.com",
            password_hash=hash_password(password) if password else "not-a-bcrypt-hash",
            role=role,
            **fields,
        )

    return _make


@pytest.fixture
def headers_for():
    """Authorization header for a UserRecord."""

    def _headers(user):
        return {"Authorization": f"Bearer {token_for(user)}"}

    return _headers


@pytest.fixture(params=["memory", "sql"])
def any_store(request, tmp_path):
    """MemoryStore or a SqlStore over a throwaway SQLite file."""
    if request.param == "memory":
        yield MemoryStore()
        return
    import smansys.models  # noqa: F401  (register tables)
    from smansys.database import Base
    from smansys.store.sql_impl import SqlStore

    engine = create_engine(f"sqlite:///{tmp_path / 'store.db'}", connect_args={"check_same_thread": False})
    Base.metadata.create_all(bind=engine)
    db = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield SqlStore(db)
    finally:
        db.close()
        engine.dispose()
