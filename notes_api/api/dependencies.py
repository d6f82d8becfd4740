"""FastAPI dependencies for authentication, authorization and services."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from notes_api.database import get_db
from notes_api.exceptions import AuthError, ForbiddenError
from notes_api.models.user import User
from notes_api.services.admin_service import AdminService
from notes_api.services.auth import decode_access_token
from notes_api.services.identity_service import IdentityService
from notes_api.services.note_service import NoteService
from notes_api.services.notification_service import NotificationService
from notes_api.services.otp_ledger import OtpLedger

security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """Resolve the bearer token to a live user."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise AuthError("Not authorized, no token provided")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise AuthError("Not authorized, invalid or expired token")

    user = db.get(User, payload["sub"])
    if user is None:
        raise AuthError("User not found")
    return user


def require_admin(
    current_user: Annotated[User, Depends(get_current_user)],
) -> User:
    """Allow only callers whose user record is an administrator.

    The ``is_admin`` claim inside the token is not consulted, so revoking the
    flag takes effect on the next request.
    """
    if not current_user.is_admin:
        raise ForbiddenError("Admin access required")
    return current_user


def get_otp_ledger(request: Request) -> OtpLedger:
    return request.app.state.otp_ledger


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_identity_service(
    db: Annotated[Session, Depends(get_db)],
    ledger: Annotated[OtpLedger, Depends(get_otp_ledger)],
    notifier: Annotated[NotificationService, Depends(get_notification_service)],
) -> IdentityService:
    """Get identity service with dependencies."""
    return IdentityService(db, ledger, notifier)


def get_note_service(
    db: Annotated[Session, Depends(get_db)],
) -> NoteService:
    return NoteService(db)


def get_admin_service(
    db: Annotated[Session, Depends(get_db)],
) -> AdminService:
    return AdminService(db)
