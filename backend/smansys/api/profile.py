"""
Profile routes: the authenticated user reads and edits only their own record.
Avatar upload validates the file and stores a placeholder URL (see services.avatar).
"""
import logging
import time

from fastapi import APIRouter, Depends, File, UploadFile

from smansys.api.deps import get_current_identity
from smansys.config import settings
from smansys.errors import NotFound, ValidationFailed
from smansys.schemas.auth import UserEnvelope, user_to_response
from smansys.schemas.common import MessageResponse
from smansys.schemas.profile import AvatarResponse, ChangePasswordRequest, ProfileUpdateRequest
from smansys.services.auth import Identity, hash_password, verify_password
from smansys.services.avatar import placeholder_avatar_url, validate_avatar
from smansys.store import Store, get_store

router = APIRouter(prefix="/profile", tags=["profile"])
logger = logging.getLogger(__name__)


def _user_not_found() -> NotFound:
    return NotFound("User not found", error="User not found")


@router.get("", response_model=UserEnvelope)
def get_profile(identity: Identity = Depends(get_current_identity), store: Store = Depends(get_store)):
    user = store.users.get(identity.id)
    if not user:
        raise _user_not_found()
    return UserEnvelope(user=user_to_response(user))


@router.put("", response_model=UserEnvelope)
def update_profile(
    data: ProfileUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    """Partial update of whitelisted fields. An update with nothing in it is rejected without a write."""
    changes = data.changes()
    if not changes:
        raise ValidationFailed("Please provide at least one field to update", error="No data to update")
    user = store.users.update(identity.id, **changes)
    if not user:
        raise _user_not_found()
    logger.info("Profile updated user_id=%s fields=%s", identity.id, sorted(changes))
    return UserEnvelope(user=user_to_response(user))


@router.put("/password", response_model=MessageResponse)
def change_password(
    data: ChangePasswordRequest,
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    """Re-verify the current password before storing the new hash."""
    user = store.users.get(identity.id)
    if not user:
        raise _user_not_found()
    if not verify_password(data.current_password, user.password_hash):
        raise ValidationFailed("Current password is incorrect", error="Invalid password")
    store.users.update(identity.id, password_hash=hash_password(data.new_password))
    logger.info("Password changed user_id=%s", identity.id)
    return MessageResponse(message="Password changed successfully")


@router.post("/avatar", response_model=AvatarResponse)
def upload_avatar(
    file: UploadFile | None = File(None),
    identity: Identity = Depends(get_current_identity),
    store: Store = Depends(get_store),
):
    """Validate the image, discard its bytes, store a generated placeholder URL."""
    if file is None or not file.filename:
        raise ValidationFailed("Please upload an image file", error="No file uploaded")
    # at most limit + 1 bytes; anything longer is too large either way
    contents = file.file.read(settings.avatar_max_bytes + 1)
    validate_avatar(file.content_type, len(contents))
    avatar_url = placeholder_avatar_url(identity.first_name, identity.last_name, int(time.time() * 1000))
    user = store.users.update(identity.id, avatar=avatar_url)
    if not user:
        raise _user_not_found()
    logger.info("Avatar set user_id=%s (upload discarded)", identity.id)
    return AvatarResponse(message="Avatar uploaded successfully", avatar=user.avatar)


@router.delete("/avatar", response_model=AvatarResponse)
def remove_avatar(identity: Identity = Depends(get_current_identity), store: Store = Depends(get_store)):
    user = store.users.update(identity.id, avatar="")
    if not user:
        raise _user_not_found()
    return AvatarResponse(message="Avatar removed successfully", avatar=user.avatar)
