"""Pydantic schemas for API requests and responses."""

from notes_api.schemas.admin import AdminLoginRequest, AdminLoginResponse
from notes_api.schemas.auth import (
    AuthResponse,
    IdentifierRequest,
    MessageResponse,
    RegisterResponse,
    ResetPasswordRequest,
    ResetTokenResponse,
    UserDetailResponse,
    UserLogin,
    UserRegister,
    UserResponse,
    VerifyOtpRequest,
)
from notes_api.schemas.note import (
    AdminNoteResponse,
    DeleteResponse,
    NoteCreate,
    NoteOwner,
    NoteResponse,
    NoteUpdate,
)

__all__ = [
    "UserRegister",
    "UserLogin",
    "IdentifierRequest",
    "VerifyOtpRequest",
    "ResetPasswordRequest",
    "UserResponse",
    "UserDetailResponse",
    "MessageResponse",
    "RegisterResponse",
    "AuthResponse",
    "ResetTokenResponse",
    "NoteCreate",
    "NoteUpdate",
    "NoteResponse",
    "NoteOwner",
    "AdminNoteResponse",
    "DeleteResponse",
    "AdminLoginRequest",
    "AdminLoginResponse",
]
