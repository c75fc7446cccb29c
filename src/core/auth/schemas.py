from datetime import datetime

from pydantic import Field, field_validator

from src.core.auth.password import check_password_length
from src.shared.schemas import BaseSchema


class RegisterRequest(BaseSchema):
    """Self-registration request. The account waits for admin approval."""

    username: str = Field(min_length=3, max_length=100)
    password: str = Field(min_length=8, max_length=72)
    phone: str = Field(min_length=1, max_length=50)

    @field_validator("username", "phone")
    @classmethod
    def strip_value(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Value must not be blank")
        return v

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v: str) -> str:
        return check_password_length(v)


class LoginRequest(BaseSchema):
    """Login request schema."""

    username: str
    password: str


class TokenResponse(BaseSchema):
    """Token response schema."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class RefreshRequest(BaseSchema):
    """Refresh token request schema."""

    refresh_token: str


class UserResponse(BaseSchema):
    """User response schema."""

    id: int
    username: str
    phone: str
    status: str
    is_admin: bool
    is_approved: bool
    banned_at: datetime | None = None
    ban_reason: str | None = None
    last_login_at: datetime | None = None
    created_at: datetime


class LoginResponse(BaseSchema):
    """Login response with user and tokens."""

    user: UserResponse
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
