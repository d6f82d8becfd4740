"""Authentication helpers: password hashing, JWTs and identifier normalization."""

import hashlib
import re
import secrets
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from notes_api.config import get_settings
from notes_api.models.user import User

settings = get_settings()

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ACCESS_SCOPE = "access"
RESET_SCOPE = "password_reset"

PASSWORD_SYMBOLS = "!@#$%^&*"
_STRONG_PASSWORD = re.compile(
    rf"^(?=.*[A-Z])(?=.*[0-9])(?=.*[{re.escape(PASSWORD_SYMBOLS)}]).{{6,}}$"
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def is_strong_password(password: str) -> bool:
    """At least 6 chars with an uppercase letter, a digit and one of ``!@#$%^&*``."""
    return bool(_STRONG_PASSWORD.match(password))


def normalize_email(email: str | None) -> str | None:
    if not email or not email.strip():
        return None
    return email.strip().lower()


def normalize_phone(phone: str | None) -> str | None:
    """Normalize a phone number to ``+<country code><digits>``.

    Numbers written with a leading ``+`` are taken as already international;
    anything else gets the configured country code prepended.
    """
    if not phone:
        return None
    digits = re.sub(r"\D", "", phone)
    if not digits:
        return None
    if phone.strip().startswith("+"):
        return f"+{digits}"
    return f"{settings.phone_country_code}{digits}"


def generate_otp(length: int | None = None) -> str:
    """Generate a numeric one-time code without a leading zero."""
    length = length or settings.otp_length
    floor = 10 ** (length - 1)
    return str(floor + secrets.randbelow(9 * floor))


def create_access_token(user_id: int, is_admin: bool = False) -> str:
    """Create a JWT session token."""
    expire = datetime.now(UTC) + timedelta(minutes=settings.jwt_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "is_admin": is_admin,
        "scope": ACCESS_SCOPE,
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def password_fingerprint(password_hash: str) -> str:
    """Short digest of a password hash; changes whenever the password does."""
    return hashlib.sha256(password_hash.encode()).hexdigest()[:16]


def create_reset_token(user_id: int, password_hash: str) -> str:
    """Create a short-lived JWT that only authorizes a password change.

    The token is bound to the current password hash, so it stops working
    once the password has been changed with it.
    """
    expire = datetime.now(UTC) + timedelta(minutes=settings.reset_token_expiration_minutes)
    to_encode = {
        "sub": str(user_id),
        "scope": RESET_SCOPE,
        "pwd": password_fingerprint(password_hash),
        "exp": expire,
    }
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(token: str, scope: str) -> dict | None:
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if payload.get("scope") != scope:
        return None
    try:
        payload["sub"] = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
    return payload


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a session token; ``sub`` comes back as an int."""
    return _decode(token, ACCESS_SCOPE)


def decode_reset_token(token: str) -> dict | None:
    """Decode and validate a password reset token."""
    return _decode(token, RESET_SCOPE)


def get_user_by_email(db: Session, email: str) -> User | None:
    """Get a user by (already normalized) email."""
    return db.query(User).filter(User.email == email).first()


def get_user_by_phone(db: Session, phone: str) -> User | None:
    """Get a user by (already normalized) phone."""
    return db.query(User).filter(User.phone == phone).first()
