"""Note schemas."""

from datetime import datetime

from pydantic import BaseModel, Field

from notes_api.schemas.base import CamelModel


class NoteCreate(BaseModel):
    """Create a new note."""

    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=20000)


class NoteUpdate(BaseModel):
    """Update a note; omitted fields keep their value."""

    title: str | None = Field(None, max_length=255)
    description: str | None = Field(None, max_length=20000)


class NoteResponse(CamelModel):
    """Note response."""

    id: int
    user_id: int
    title: str
    description: str
    created_at: datetime
    updated_at: datetime


class NoteOwner(CamelModel):
    id: int
    name: str
    email: str | None


class AdminNoteResponse(NoteResponse):
    """Note with minimal owner info, for the admin listing."""

    user: NoteOwner | None


class DeleteResponse(BaseModel):
    message: str
