"""SQLAlchemy models."""

from notes_api.models.note import Note
from notes_api.models.user import User

__all__ = [
    "User",
    "Note",
]
