"""
Shared dependencies: access control gate (bearer token → Identity) and role checks.
The identity comes from the token alone; a role change is only seen after the user logs in again.
"""
import logging

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from smansys.errors import AuthenticationFailed, PermissionDenied
from smansys.services.auth import Identity, decode_access_token, identity_from_payload

security = HTTPBearer(auto_error=False)
logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Identity:
    """Require valid Bearer token; return Identity or 401."""
    if not credentials or not (getattr(credentials, "credentials", None) or "").strip():
        logger.debug("Auth failed: no Bearer token in request")
        raise AuthenticationFailed(INVALID_TOKEN_MESSAGE)
    payload = decode_access_token(credentials.credentials)
    identity = identity_from_payload(payload) if payload else None
    if identity is None:
        logger.debug("Auth failed: invalid or expired token")
        raise AuthenticationFailed(INVALID_TOKEN_MESSAGE)
    return identity


def require_roles(*roles: str):
    """Dependency factory: authenticated identity whose role is in roles (any role when empty), else 403."""
    allowed = frozenset(roles)

    def _check(identity: Identity = Depends(get_current_identity)) -> Identity:
        if allowed and identity.role not in allowed:
            logger.info("Access denied: user_id=%s role=%s required=%s", identity.id, identity.role, sorted(allowed))
            raise PermissionDenied(f"Access denied. Required one of: {', '.join(roles)}")
        return identity

    return _check


require_manager_or_admin = require_roles("admin", "manager")
