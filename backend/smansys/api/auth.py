"""
Auth routes: register (default role user), login (JWT, touches lastLogin), GET /auth/me, logout.
Logout is stateless: the client discards its token.
"""
import logging
from fastapi import APIRouter, Depends, status

from smansys.errors import AuthenticationFailed, Conflict, NotFound
from smansys.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserEnvelope,
    user_to_response,
)
from smansys.schemas.common import MessageResponse
from smansys.services.auth import Identity, hash_password, token_for, verify_password
from smansys.store import DuplicateKeyError, Store, get_store
from smansys.models.types import utcnow
from smansys.api.deps import get_current_identity

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

USER_EXISTS_MESSAGE = "A user with this email already exists"
INVALID_CREDENTIALS_MESSAGE = "Email or password is incorrect"


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, store: Store = Depends(get_store)):
    """Register a new user; role defaults to user."""
    if store.users.get_by_email(data.email):
        raise Conflict(USER_EXISTS_MESSAGE, error="User already exists")
    try:
        user = store.users.create(
            first_name=data.first_name,
            last_name=data.last_name,
            email=data.email,
            password_hash=hash_password(data.password),
            role=data.role,
        )
    except DuplicateKeyError:
        # lost a race with a concurrent registration for the same email
        logger.warning("Register: duplicate email on insert")
        raise Conflict(USER_EXISTS_MESSAGE, error="User already exists")
    logger.info("Registered user_id=%s role=%s", user.id, user.role)
    return AuthResponse(
        message="User registered successfully",
        user=user_to_response(user),
        token=token_for(user),
    )


@router.post("/login", response_model=AuthResponse)
def login(data: LoginRequest, store: Store = Depends(get_store)):
    """Login with email/password; returns JWT. Disabled accounts are rejected."""
    user = store.users.get_by_email(data.email)
    if not user:
        raise AuthenticationFailed(INVALID_CREDENTIALS_MESSAGE, error="Invalid credentials")
    if not user.is_active:
        logger.info("Login rejected for disabled account user_id=%s", user.id)
        raise AuthenticationFailed(
            "Your account has been disabled. Please contact support.", error="Account disabled"
        )
    if not verify_password(data.password, user.password_hash):
        raise AuthenticationFailed(INVALID_CREDENTIALS_MESSAGE, error="Invalid credentials")
    user = store.users.update(user.id, last_login=utcnow()) or user
    return AuthResponse(message="Login successful", user=user_to_response(user), token=token_for(user))


@router.get("/me", response_model=UserEnvelope)
def me(identity: Identity = Depends(get_current_identity), store: Store = Depends(get_store)):
    """Return the caller's stored user record (no password)."""
    user = store.users.get(identity.id)
    if not user:
        raise NotFound("User not found", error="User not found")
    return UserEnvelope(user=user_to_response(user))


@router.post("/logout", response_model=MessageResponse)
def logout(identity: Identity = Depends(get_current_identity)):
    """Nothing to revoke server-side; the token stays valid until it expires."""
    logger.debug("Logout user_id=%s", identity.id)
    return MessageResponse(message="Logout successful")
