"""Note model."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from notes_api.database import Base
from notes_api.models.mixins import TimestampMixin


class Note(Base, TimestampMixin):
    """A personal text note, owned by exactly one user."""

    __tablename__ = "notes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    # Relationships
    user = relationship("User", back_populates="notes")
