"""Authentication schemas.

Request fields are optional at the schema level so that missing values reach
the identity service, which reports them with the API's own messages.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from notes_api.schemas.base import CamelModel, EmailInput


class IdentifierRequest(EmailInput):
    """A request naming an account by email or phone."""

    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=32)


class UserRegister(IdentifierRequest):
    """User registration request."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = Field(None, max_length=255)
    password: str | None = Field(None, max_length=128)
    confirm_password: str | None = Field(None, alias="confirmPassword", max_length=128)


class VerifyOtpRequest(IdentifierRequest):
    otp: str | None = Field(None, max_length=12)


class UserLogin(IdentifierRequest):
    """User login request."""

    password: str | None = Field(None, max_length=128)


class ResetPasswordRequest(BaseModel):
    """Final step of the password reset flow."""

    model_config = ConfigDict(populate_by_name=True)

    reset_token: str | None = Field(None, alias="resetToken")
    new_password: str | None = Field(None, alias="newPassword", max_length=128)
    confirm_password: str | None = Field(None, alias="confirmPassword", max_length=128)


class UserResponse(CamelModel):
    """Public user profile."""

    id: int
    name: str
    email: str | None
    phone: str | None
    is_verified: bool


class UserDetailResponse(UserResponse):
    is_admin: bool
    created_at: datetime
    updated_at: datetime


class MessageResponse(BaseModel):
    msg: str


class RegisterResponse(CamelModel):
    """A code has been sent; ``reference`` is what to verify against."""

    msg: str
    reference: str
    email: str | None = None
    phone: str | None = None


class AuthResponse(CamelModel):
    """Authentication response with token and user info."""

    msg: str
    token: str
    token_type: str = "bearer"  # noqa: S105
    user: UserResponse


class ResetTokenResponse(CamelModel):
    msg: str
    reset_token: str
