"""Admin schemas."""

from pydantic import EmailStr, Field

from notes_api.schemas.base import CamelModel, EmailInput


class AdminLoginRequest(EmailInput):
    email: EmailStr | None = None
    password: str | None = Field(None, max_length=128)


class AdminLoginResponse(CamelModel):
    """Admin profile plus a token carrying the admin claim."""

    id: int
    name: str
    email: str | None
    is_admin: bool
    token: str
    token_type: str = "bearer"  # noqa: S105
