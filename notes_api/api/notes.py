"""Note API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, status

from notes_api.api.dependencies import get_current_user, get_note_service
from notes_api.models.user import User
from notes_api.schemas.note import DeleteResponse, NoteCreate, NoteResponse, NoteUpdate
from notes_api.services.note_service import NoteService

router = APIRouter(prefix="/api/notes", tags=["notes"])


@router.post("", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
def create_note(
    note_data: NoteCreate,
    current_user: Annotated[User, Depends(get_current_user)],
    notes: Annotated[NoteService, Depends(get_note_service)],
):
    """Create a new note."""
    return notes.create(current_user.id, note_data.title, note_data.description)


@router.get("", response_model=list[NoteResponse])
def get_notes(
    current_user: Annotated[User, Depends(get_current_user)],
    notes: Annotated[NoteService, Depends(get_note_service)],
):
    """Get all notes of the logged-in user, newest first."""
    return notes.list_own(current_user.id)


@router.put("/{note_id}", response_model=NoteResponse)
def update_note(
    note_id: int,
    note_data: NoteUpdate,
    current_user: Annotated[User, Depends(get_current_user)],
    notes: Annotated[NoteService, Depends(get_note_service)],
):
    """Update a note (owner only)."""
    return notes.update(note_id, current_user.id, note_data.title, note_data.description)


@router.delete("/{note_id}", response_model=DeleteResponse)
def delete_note(
    note_id: int,
    current_user: Annotated[User, Depends(get_current_user)],
    notes: Annotated[NoteService, Depends(get_note_service)],
):
    """Delete a note (owner only)."""
    notes.delete(note_id, current_user.id)
    return DeleteResponse(message="Note removed successfully")
