"""
API tests for /dashboard and /dashboard/analytics: role gate, query validation, error envelope.
"""
from fastapi.testclient import TestClient

from smansys.main import app
from smansys.store import get_store


def test_dashboard_requires_token(client):
    r = client.get("/api/dashboard")
    assert r.status_code == 401
    assert r.json()["error"] == "Unauthorized"


def test_dashboard_open_to_any_role(client, make_user, headers_for):
    user = make_user(role="user")
    make_user(role="manager")
    r = client.get("/api/dashboard", headers=headers_for(user))
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["overview"]["totalUsers"] == 2
    assert body["overview"]["newUsers"] == 2
    assert body["overview"]["roleDistribution"] == {"manager": 1, "user": 1}
    assert body["filters"] == {"dateRange": "30days", "role": "all", "search": None}
    assert len(body["recentUsers"]) == 2
    assert "passwordHash" not in body["recentUsers"][0]


def test_analytics_forbidden_for_plain_user(client, make_user, headers_for):
    user = make_user(role="user")
    r = client.get("/api/dashboard/analytics", headers=headers_for(user))
    assert r.status_code == 403
    body = r.json()
    assert body["error"] == "Forbidden"
    assert "admin" in body["message"]


def test_analytics_for_manager_and_admin(client, make_user, headers_for):
    manager = make_user(role="manager")
    admin = make_user(role="admin")
    for caller in (manager, admin):
        r = client.get("/api/dashboard/analytics?limit=1&page=2", headers=headers_for(caller))
        assert r.status_code == 200, r.text
        body = r.json()
        assert body["pagination"] == {"page": 2, "limit": 1, "total": 2, "pages": 2}
        assert len(body["users"]) == 1
        roles = [s["role"] for s in body["statistics"]["roleStats"]]
        assert roles == ["admin", "manager"]


def test_role_taken_from_token_until_next_login(client, store, make_user, headers_for):
    """A promotion in the store is not seen by an already-issued token."""
    user = make_user(role="user")
    headers = headers_for(user)
    store.users.update(user.id, role="admin")
    assert client.get("/api/dashboard/analytics", headers=headers).status_code == 403

    promoted = store.users.get(user.id)
    assert client.get("/api/dashboard/analytics", headers=headers_for(promoted)).status_code == 200


def test_dashboard_query_validation(client, make_user, headers_for):
    headers = headers_for(make_user(role="admin"))
    for qs in ("dateRange=1year", "role=owner", "page=0", "limit=101", "limit=0", "page=abc", "search=" + "x" * 101):
        r = client.get(f"/api/dashboard/analytics?{qs}", headers=headers)
        assert r.status_code == 400, qs
        assert r.json()["error"] == "Validation Error"


def test_dashboard_custom_window_errors(client, make_user, headers_for):
    headers = headers_for(make_user(role="admin"))
    r = client.get(
        "/api/dashboard?dateRange=custom&startDate=2026-10-10&endDate=2026-09-01", headers=headers
    )
    assert r.status_code == 400
    assert r.json()["error"] == "Validation Error"

    r = client.get("/api/dashboard?dateRange=custom&startDate=not-a-date", headers=headers)
    assert r.status_code == 400

    r = client.get("/api/dashboard?dateRange=custom&startDate=2020-01-01", headers=headers)
    assert r.status_code == 200
    assert r.json()["trends"]["period"]["start"].startswith("2020-01-01")


def test_dashboard_search_and_role_echoed(client, make_user, headers_for):
    admin = make_user(role="admin", first_name="Priya")
    make_user(role="user", first_name="Karan")
    r = client.get("/api/dashboard?role=admin&search=pri", headers=headers_for(admin))
    assert r.status_code == 200
    body = r.json()
    assert body["overview"]["usersInRange"] == 1
    assert body["filters"] == {"dateRange": "30days", "role": "admin", "search": "pri"}
    assert [u["firstName"] for u in body["recentUsers"]] == ["Priya"]


class _BrokenUsers:
    def __getattr__(self, name):
        raise RuntimeError("store unavailable")


class _BrokenStore:
    users = _BrokenUsers()
    students = None


def test_store_failure_is_500_envelope(make_user, headers_for):
    headers = headers_for(make_user(role="admin"))
    app.dependency_overrides[get_store] = lambda: _BrokenStore()
    try:
        with TestClient(app, raise_server_exceptions=False) as c:
            r = c.get("/api/dashboard", headers=headers)
    finally:
        app.dependency_overrides.pop(get_store, None)
    assert r.status_code == 500
    body = r.json()
    assert body["error"] == "Internal Server Error"
    assert "overview" not in body


def test_health_and_root(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "OK"
    r = client.get("/")
    assert r.json()["apiPrefix"] == "/api"
