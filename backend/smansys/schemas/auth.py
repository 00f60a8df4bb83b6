"""
Auth request/response schemas. Password never appears in any response model.
"""
from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from smansys.schemas.common import CamelModel

Role = Literal["admin", "manager", "user"]


def _password_within_bcrypt_limit(v: str) -> str:
    if len(v.encode("utf-8")) > 72:
        raise ValueError("Password must be at most 72 bytes (bcrypt limit)")
    return v


class RegisterRequest(CamelModel):
    first_name: str = Field(min_length=2, max_length=50)
    last_name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = "user"

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def strip_names(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _password_within_bcrypt_limit(v)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def password_length(cls, v: str) -> str:
        return _password_within_bcrypt_limit(v)


class UserResponse(CamelModel):
    id: str
    first_name: str
    last_name: str
    full_name: str
    email: str
    role: str
    avatar: str = ""
    bio: str = ""
    phone: str = ""
    address: str = ""
    location: str = ""
    district: str = ""
    pincode: str = ""
    state: str = ""
    is_active: bool = True
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserEnvelope(CamelModel):
    user: UserResponse


class AuthResponse(CamelModel):
    message: str
    user: UserResponse
    token: str


def user_to_response(u) -> UserResponse:
    """Build the public view of a UserRecord (drops password_hash)."""
    return UserResponse(
        id=str(u.id),
        first_name=u.first_name,
        last_name=u.last_name,
        full_name=u.full_name,
        email=u.email,
        role=u.role,
        avatar=u.avatar or "",
        bio=u.bio or "",
        phone=u.phone or "",
        address=u.address or "",
        location=u.location or "",
        district=u.district or "",
        pincode=u.pincode or "",
        state=u.state or "",
        is_active=u.is_active,
        last_login=u.last_login,
        created_at=u.created_at,
        updated_at=u.updated_at,
    )
