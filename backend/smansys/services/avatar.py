"""
Avatar upload stub: the uploaded image is validated (type, size) and then discarded.
The stored avatar is a generated placeholder URL seeded from the user's name and the upload time.
Swapping in real object storage means replacing placeholder_avatar_url only.
"""
from urllib.parse import quote

from smansys.config import settings
from smansys.errors import ValidationFailed


def validate_avatar(content_type: str | None, size: int) -> None:
    """Raise ValidationFailed for a disallowed MIME type or an oversized file."""
    if (content_type or "").lower() not in settings.avatar_allowed_type_list:
        raise ValidationFailed(
            "Please upload a valid image file (JPEG, PNG, GIF, or WebP)",
            error="Invalid file type",
        )
    if size > settings.avatar_max_bytes:
        limit_mb = settings.avatar_max_bytes // (1024 * 1024)
        raise ValidationFailed(f"File size must be less than {limit_mb}MB", error="File too large")


def placeholder_avatar_url(first_name: str, last_name: str, timestamp_ms: int) -> str:
    seed = f"{first_name}-{last_name}-{timestamp_ms}"
    return f"{settings.avatar_placeholder_url}?seed={quote(seed, safe='')}"
