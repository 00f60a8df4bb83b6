"""
API tests for auth router: register, login, /auth/me, logout and the token gate.
"""
from datetime import timedelta

from smansys.services.auth import create_access_token
from smansys.store import UserFilter


def _register(client, **overrides):
    body = {
        "firstName": "Asha",
        "lastName": "Rao",
        "email": "asha@school.example.com",
        "password": "secret123",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


def test_register_then_login_then_me(client):
    """Register without a role → login → /auth/me reports role user and no password field."""
    r = _register(client)
    assert r.status_code == 201, r.text
    data = r.json()
    assert data["user"]["role"] == "user"
    assert data["token"]

    r = client.post("/api/auth/login", json={"email": "asha@school.example.com", "password": "secret123"})
    assert r.status_code == 200, r.text
    token = r.json()["token"]

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    user = r.json()["user"]
    assert user["role"] == "user"
    assert user["email"] == "asha@school.example.com"
    assert user["fullName"] == "Asha Rao"
    assert "password" not in user
    assert "passwordHash" not in user
    assert "password" not in r.text.lower()


def test_register_with_explicit_role(client):
    r = _register(client, role="manager")
    assert r.status_code == 201
    assert r.json()["user"]["role"] == "manager"


def test_register_duplicate_email_is_conflict(client, store):
    assert _register(client).status_code == 201
    r = _register(client, email="ASHA@School.Example.com", firstName="Other")
    assert r.status_code == 400
    assert r.json()["error"] == "User already exists"
    assert store.users.count(UserFilter()) == 1


def test_register_validation_errors(client, store):
    r = _register(client, password="123")
    assert r.status_code == 400
    body = r.json()
    assert body["error"] == "Validation Error"
    assert any("password" in d["loc"] for d in body["details"])

    r = _register(client, email="not-an-email")
    assert r.status_code == 400

    r = _register(client, role="superuser")
    assert r.status_code == 400
    assert store.users.count(UserFilter()) == 0


def test_login_wrong_password_is_401_without_token(client, make_user):
    make_user(email="kiran@school.example.com", password="right-pass")
    r = client.post("/api/auth/login", json={"email": "kiran@school.example.com", "password": "wrong-pass"})
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid credentials"
    assert "token" not in r.json()


def test_login_unknown_email_is_401(client):
    r = client.post("/api/auth/login", json={"email": "nobody@school.example.com", "password": "whatever"})
    assert r.status_code == 401


def test_login_disabled_account_is_401(client, make_user):
    make_user(email="off@school.example.com", password="secret123", is_active=False)
    r = client.post("/api/auth/login", json={"email": "off@school.example.com", "password": "secret123"})
    assert r.status_code == 401
    assert r.json()["error"] == "Account disabled"
    assert "token" not in r.json()


def test_login_touches_last_login(client, make_user, store):
    user = make_user(email="touch@school.example.com", password="secret123")
    assert user.last_login is None
    r = client.post("/api/auth/login", json={"email": "TOUCH@school.example.com", "password": "secret123"})
    assert r.status_code == 200
    assert r.json()["user"]["lastLogin"] is not None
    assert store.users.get(user.id).last_login is not None


def test_me_requires_token(client):
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json() == {"error": "Unauthorized", "message": "Invalid or expired token"}


def test_me_rejects_garbage_and_expired_tokens(client, make_user):
    r = client.get("/api/auth/me", headers={"Authorization": "Bearer not.a.jwt"})
    assert r.status_code == 401

    user = make_user()
    expired = create_access_token(
        user.id, user.email, user.role, user.first_name, user.last_name, expires_delta=timedelta(minutes=-5)
    )
    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {expired}"})
    assert r.status_code == 401


def test_me_for_deleted_user_is_404(client, headers_for, make_user):
    from smansys.store.memory_impl import MemoryStore

    ghost = MemoryStore().users.create(
        first_name="Ghost", last_name="User", email="ghost@school.example.com", password_hash="x"
    )
    r = client.get("/api/auth/me", headers=headers_for(ghost))
    assert r.status_code == 404


def test_logout(client, make_user, headers_for):
    user = make_user()
    r = client.post("/api/auth/logout", headers=headers_for(user))
    assert r.status_code == 200
    assert r.json() == {"message": "Logout successful"}
    assert client.post("/api/auth/logout").status_code == 401
