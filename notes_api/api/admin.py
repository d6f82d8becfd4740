"""Admin API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends

from notes_api.api.dependencies import get_admin_service, require_admin
from notes_api.models.user import User
from notes_api.schemas.admin import AdminLoginRequest, AdminLoginResponse
from notes_api.schemas.auth import UserDetailResponse
from notes_api.schemas.note import AdminNoteResponse, DeleteResponse
from notes_api.services.admin_service import AdminService

router = APIRouter(prefix="/api/admin", tags=["admin"])


@router.post("/login", response_model=AdminLoginResponse)
def admin_login(
    payload: AdminLoginRequest,
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    user, token = admin.login(payload.email, payload.password)
    return AdminLoginResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        is_admin=user.is_admin,
        token=token,
    )


@router.get("/users", response_model=list[UserDetailResponse])
def list_users(
    _: Annotated[User, Depends(require_admin)],
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Get all registered users."""
    return admin.list_users()


@router.delete("/users/{user_id}", response_model=DeleteResponse)
def delete_user(
    user_id: int,
    _: Annotated[User, Depends(require_admin)],
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Delete a user and their notes."""
    admin.delete_user(user_id)
    return DeleteResponse(message="User deleted by admin")


@router.get("/notes", response_model=list[AdminNoteResponse])
def list_notes(
    _: Annotated[User, Depends(require_admin)],
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Get all notes created by all users."""
    return admin.list_notes()


@router.delete("/notes/{note_id}", response_model=DeleteResponse)
def delete_note(
    note_id: int,
    _: Annotated[User, Depends(require_admin)],
    admin: Annotated[AdminService, Depends(get_admin_service)],
):
    """Delete any inappropriate note."""
    admin.delete_note(note_id)
    return DeleteResponse(message="Note deleted by admin")
