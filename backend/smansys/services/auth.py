"""
Auth service: password hashing and JWT creation/verification.
Uses bcrypt directly (no passlib) to avoid passlib/bcrypt version conflicts.
Tokens carry id, email, role and names; the role is trusted until the token expires.
"""
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import NamedTuple

import bcrypt
from jose import JWTError, jwt

from smansys.config import settings
from smansys.store.base import DuplicateKeyError, UserStore

logger = logging.getLogger(__name__)

# Bcrypt limit is 72 bytes; use 71 so we never exceed
BCRYPT_MAX_BYTES = 71
BCRYPT_ROUNDS = 12


class Identity(NamedTuple):
    """Caller identity decoded from a bearer token (no store lookup)."""

    id: uuid.UUID
    email: str
    role: str
    first_name: str
    last_name: str


def _truncate_to_bytes(s: str, max_bytes: int = BCRYPT_MAX_BYTES) -> bytes:
    """Truncate string to at most max_bytes UTF-8; return bytes for bcrypt."""
    if not s:
        return b""
    return s.encode("utf-8")[:max_bytes]


def hash_password(password: str) -> str:
    """Hash password for storage. Raises ValueError if password is None."""
    if password is None:
        raise ValueError("password is required")
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_truncate_to_bytes(password), salt).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(_truncate_to_bytes(plain), hashed.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def create_access_token(
    user_id: uuid.UUID,
    email: str,
    role: str,
    first_name: str,
    last_name: str,
    expires_delta: timedelta | None = None,
) -> str:
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(hours=settings.jwt_expire_hours))
    # JWT exp must be numeric (Unix timestamp), not datetime
    payload = {
        "sub": str(user_id),
        "email": email,
        "role": role,
        "firstName": first_name,
        "lastName": last_name,
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict | None:
    """Return the payload, or None when the signature, expiry or shape is invalid."""
    try:
        return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None


def identity_from_payload(payload: dict) -> Identity | None:
    try:
        return Identity(
            id=uuid.UUID(payload["sub"]),
            email=payload["email"],
            role=payload["role"],
            first_name=payload.get("firstName", ""),
            last_name=payload.get("lastName", ""),
        )
    except (KeyError, TypeError, ValueError):
        return None


def token_for(user) -> str:
    """Issue a token for a UserRecord."""
    return create_access_token(user.id, user.email, user.role, user.first_name, user.last_name)


DEMO_USERS = (
    ("Admin", "User", "admin@example.com", "admin"),
    ("Manager", "User", "manager@example.com", "manager"),
    ("Regular", "User", "user@example.com", "user"),
)
DEMO_PASSWORD = "password"


def seed_demo_users(users: UserStore) -> int:
    """Create the demo admin/manager/user accounts if missing. Returns how many were created."""
    created = 0
    for first, last, email, role in DEMO_USERS:
        if users.get_by_email(email):
            continue
        try:
            users.create(
                first_name=first,
                last_name=last,
                email=email,
                password_hash=hash_password(DEMO_PASSWORD),
                role=role,
            )
            created += 1
        except DuplicateKeyError:
            logger.debug("Demo user %s created concurrently; skipping", email)
    return created
