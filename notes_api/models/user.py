"""User model."""

from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String
from sqlalchemy.orm import relationship

from notes_api.database import Base
from notes_api.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """Account that owns notes; reachable by email or phone."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("email IS NOT NULL OR phone IS NOT NULL", name="ck_users_email_or_phone"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    # NULLs never collide under a unique index, so email-only and phone-only users coexist
    email = Column(String(255), unique=True, nullable=True, index=True)
    phone = Column(String(32), unique=True, nullable=True, index=True)
    password_hash = Column(String(255), nullable=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    is_admin = Column(Boolean, nullable=False, default=False)

    notes = relationship(
        "Note",
        back_populates="user",
        cascade="all, delete-orphan",
    )
