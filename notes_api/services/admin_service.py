"""Administrative operations across all users and notes."""

import logging

from sqlalchemy.orm import Session, joinedload

from notes_api.exceptions import AuthError, NotFoundError, ValidationError
from notes_api.models.note import Note
from notes_api.models.user import User
from notes_api.services.auth import (
    create_access_token,
    get_user_by_email,
    normalize_email,
    verify_password,
)

logger = logging.getLogger(__name__)


class AdminService:
    """Service for privileged listing and deletion."""

    def __init__(self, db: Session):
        self.db = db

    def login(self, email: str | None, password: str | None) -> tuple[User, str]:
        """Authenticate an administrator and issue a token carrying the admin claim."""
        normalized_email = normalize_email(email)
        if not normalized_email or not password:
            raise ValidationError("Email and password are required")

        user = get_user_by_email(self.db, normalized_email)
        if user is None:
            raise AuthError("Invalid email or password")
        if not verify_password(password, user.password_hash) or not user.is_admin:
            logger.warning(f"Rejected admin login for user {user.id}")
            raise AuthError("Invalid admin credentials")

        logger.info(f"Admin {user.id} logged in")
        return user, create_access_token(user.id, is_admin=True)

    def list_users(self) -> list[User]:
        return self.db.query(User).order_by(User.id).all()

    def list_notes(self) -> list[Note]:
        """All notes with their owners loaded, newest first."""
        return (
            self.db.query(Note)
            .options(joinedload(Note.user))
            .order_by(Note.created_at.desc(), Note.id.desc())
            .all()
        )

    def delete_user(self, user_id: int) -> None:
        """Delete a user together with their notes."""
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        note_count = len(user.notes)
        self.db.delete(user)
        self.db.commit()
        logger.info(f"User {user_id} deleted by admin along with {note_count} notes")

    def delete_note(self, note_id: int) -> None:
        note = self.db.get(Note, note_id)
        if note is None:
            raise NotFoundError("Note not found")
        self.db.delete(note)
        self.db.commit()
        logger.info(f"Note {note_id} deleted by admin")
