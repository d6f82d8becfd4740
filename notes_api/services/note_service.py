"""Note service: per-user CRUD with ownership checks."""

import logging

from sqlalchemy.orm import Session

from notes_api.exceptions import ForbiddenError, NotFoundError, ValidationError
from notes_api.models.note import Note

logger = logging.getLogger(__name__)


def _clean(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    return value.strip()


class NoteService:
    """Service for note operations scoped to the requesting user."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, owner_id: int, title: str | None, description: str | None) -> Note:
        title, description = _clean(title), _clean(description)
        if not title or not description:
            raise ValidationError("Title and description are required")

        note = Note(user_id=owner_id, title=title, description=description)
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)
        logger.info(f"Note {note.id} created for user {owner_id}")
        return note

    def list_own(self, owner_id: int) -> list[Note]:
        """Notes of ``owner_id``, newest first."""
        return (
            self.db.query(Note)
            .filter(Note.user_id == owner_id)
            .order_by(Note.created_at.desc(), Note.id.desc())
            .all()
        )

    def get_owned(self, note_id: int, requester_id: int) -> Note:
        """Get a note, checking that ``requester_id`` owns it."""
        note = self.db.get(Note, note_id)
        if note is None:
            raise NotFoundError("Note not found")
        if note.user_id != requester_id:
            raise ForbiddenError("Not authorized")
        return note

    def update(
        self,
        note_id: int,
        requester_id: int,
        title: str | None = None,
        description: str | None = None,
    ) -> Note:
        """Apply the supplied non-empty fields; absent ones keep their value."""
        note = self.get_owned(note_id, requester_id)

        title, description = _clean(title), _clean(description)
        if title is not None:
            note.title = title
        if description is not None:
            note.description = description

        self.db.commit()
        self.db.refresh(note)
        logger.info(f"Note {note.id} updated by user {requester_id}")
        return note

    def delete(self, note_id: int, requester_id: int) -> None:
        note = self.get_owned(note_id, requester_id)
        self.db.delete(note)
        self.db.commit()
        logger.info(f"Note {note_id} deleted by user {requester_id}")
