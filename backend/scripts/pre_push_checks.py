#!/usr/bin/env python3
"""
Pre-push / production readiness checks.
Run from backend dir with project venv active: python scripts/pre_push_checks.py
"""
import sys
from pathlib import Path

BACKEND = Path(__file__).resolve().parent.parent
if str(BACKEND) not in sys.path:
    sys.path.insert(0, str(BACKEND))


def check_imports():
    from smansys.main import app
    paths = {route.path for route in app.routes}
    for path in ("/api/auth/login", "/api/dashboard", "/api/dashboard/analytics", "/api/students", "/health"):
        assert path in paths, f"missing route {path}"
    return "imports"


def check_settings():
    from smansys.config import DEFAULT_SECRET_KEY, settings
    if settings.is_production:
        assert settings.secret_key.strip() != DEFAULT_SECRET_KEY, "SECRET_KEY is the default"
        assert not settings.debug, "DEBUG must be off in production"
    assert settings.cors_origin_list, "CORS_ORIGINS is empty"
    return "settings"


def check_token_roundtrip():
    import uuid
    from smansys.services.auth import create_access_token, decode_access_token, identity_from_payload
    uid = uuid.uuid4()
    token = create_access_token(uid, "check@example.com", "manager", "Pre", "Push")
    identity = identity_from_payload(decode_access_token(token))
    assert identity is not None and identity.id == uid and identity.role == "manager"
    return "token_roundtrip"


def check_dashboard_memory():
    from smansys.services.auth import seed_demo_users
    from smansys.services.dashboard import DashboardQuery, build_dashboard
    from smansys.store.memory_impl import MemoryStore
    store = MemoryStore()
    seed_demo_users(store.users)
    resp = build_dashboard(store.users, DashboardQuery(date_range="7days"))
    assert resp.overview.total_users == 3
    assert sum(p.count for p in resp.trends.user_growth) == resp.overview.new_users
    return "dashboard_memory"


def check_init_db():
    from smansys.database import init_sqlite_db
    init_sqlite_db()
    return "init_sqlite_db"


def main():
    checks = [check_imports, check_settings, check_token_roundtrip, check_dashboard_memory, check_init_db]
    for fn in checks:
        try:
            name = fn()
            print(f"OK {name}")
        except Exception as e:
            print(f"FAIL {fn.__name__}: {e}")
            return 1
    print("All pre-push checks passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
