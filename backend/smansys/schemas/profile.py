"""
Profile self-service schemas: whitelisted partial update and password change.
"""
from pydantic import Field, field_validator

from smansys.schemas.common import CamelModel

PHONE_PATTERN = r"^[0-9+\-\s()]+$"
PINCODE_PATTERN = r"^[0-9]{6}$"


class ProfileUpdateRequest(CamelModel):
    first_name: str | None = Field(None, min_length=2, max_length=50)
    last_name: str | None = Field(None, min_length=2, max_length=50)
    bio: str | None = Field(None, max_length=500)
    phone: str | None = Field(None, pattern=PHONE_PATTERN)
    address: str | None = Field(None, max_length=200)
    location: str | None = Field(None, max_length=100)
    district: str | None = Field(None, max_length=100)
    pincode: str | None = Field(None, pattern=PINCODE_PATTERN)
    state: str | None = Field(None, max_length=100)

    def changes(self) -> dict:
        """Fields actually supplied (None means "leave as is")."""
        return {k: v for k, v in self.model_dump().items() if v is not None}


class ChangePasswordRequest(CamelModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=6)

    @field_validator("new_password")
    @classmethod
    def password_length(cls, v: str) -> str:
        if len(v.encode("utf-8")) > 72:
            raise ValueError("Password must be at most 72 bytes (bcrypt limit)")
        return v


class AvatarResponse(CamelModel):
    message: str
    avatar: str
