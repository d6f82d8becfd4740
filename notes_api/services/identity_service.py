"""Registration, verification, login and password reset.

Accounts are created only once their one-time code has been verified: until
then the pending fields live in the OTP ledger, keyed by the normalized email
or phone the code was sent to.
"""

import asyncio
import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notes_api.config import Settings, get_settings
from notes_api.exceptions import (
    AuthError,
    ConflictError,
    InternalError,
    InvalidCodeError,
    NotFoundError,
    ValidationError,
)
from notes_api.models.user import User
from notes_api.services.auth import (
    create_access_token,
    create_reset_token,
    decode_reset_token,
    generate_otp,
    get_password_hash,
    get_user_by_email,
    get_user_by_phone,
    is_strong_password,
    normalize_email,
    normalize_phone,
    password_fingerprint,
    verify_password,
)
from notes_api.services.notification_service import NotificationError, NotificationService
from notes_api.services.otp_ledger import OtpChannel, OtpEntry, OtpLedger, OtpPurpose

logger = logging.getLogger(__name__)

WEAK_PASSWORD_MESSAGE = "Password must be at least 6 chars, include uppercase, number & special char"

# (purpose, is_resend) -> (email subject, email body, sms body)
_CODE_MESSAGES = {
    (OtpPurpose.REGISTER, False): (
        "Verify your account - Notes App",
        "Hello {name},\n\nYour OTP is: {code}\n\nIt will expire in {minutes} minutes.",
        "Your Notes App OTP is: {code}",
    ),
    (OtpPurpose.REGISTER, True): (
        "Resend OTP - Notes App",
        "Your new OTP is: {code}\n\nIt will expire in {minutes} minutes.",
        "Your new Notes App OTP is: {code}",
    ),
    (OtpPurpose.RESET, False): (
        "Password Reset OTP",
        "Your password reset OTP is: {code}\nIt expires in {minutes} minutes.",
        "Your Notes App password reset OTP is: {code}",
    ),
    (OtpPurpose.RESET, True): (
        "Password Reset OTP",
        "Your new password reset OTP is: {code}\nIt expires in {minutes} minutes.",
        "Your new Notes App password reset OTP is: {code}",
    ),
}


@dataclass(frozen=True)
class Identifier:
    """A normalized email or phone, doubling as the ledger key."""

    key: str
    channel: OtpChannel

    @property
    def field(self) -> str:
        return "email" if self.channel is OtpChannel.EMAIL else "phone"


@dataclass
class PendingCode:
    """A code has been issued to ``reference`` over ``channel``."""

    reference: str
    channel: OtpChannel


@dataclass
class AuthResult:
    token: str
    user: User


def resolve_identifier(email: str | None, phone: str | None) -> Identifier | None:
    """Pick the identifier a request refers to; email wins when both are given."""
    normalized_email = normalize_email(email)
    if normalized_email:
        return Identifier(normalized_email, OtpChannel.EMAIL)
    normalized_phone = normalize_phone(phone)
    if normalized_phone:
        return Identifier(normalized_phone, OtpChannel.SMS)
    return None


class IdentityService:
    """Orchestrates account lifecycle flows over the user table and the OTP ledger."""

    def __init__(
        self,
        db: Session,
        ledger: OtpLedger,
        notifier: NotificationService,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.ledger = ledger
        self.notifier = notifier
        self.settings = settings or get_settings()
        self._clock = clock or (lambda: datetime.now(UTC))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    async def start_registration(
        self,
        name: str | None,
        email: str | None,
        phone: str | None,
        password: str | None,
        confirm_password: str | None,
    ) -> PendingCode:
        """Validate a sign-up request, park it in the ledger and send the code."""
        identifier = resolve_identifier(email, phone)
        if not name or not name.strip() or not identifier or not password or not confirm_password:
            raise ValidationError("All fields are required (email OR phone)")
        if password != confirm_password:
            raise ValidationError("Passwords do not match")
        if not is_strong_password(password):
            raise ValidationError(WEAK_PASSWORD_MESSAGE)

        normalized_email = normalize_email(email)
        normalized_phone = normalize_phone(phone)
        conflict = await asyncio.to_thread(self._find_conflict, normalized_email, normalized_phone)
        if conflict:
            raise ConflictError(f"{conflict} already registered")

        entry = self._new_entry(
            identifier,
            OtpPurpose.REGISTER,
            {
                "name": name.strip(),
                "email": normalized_email,
                "phone": normalized_phone,
                "password_hash": await asyncio.to_thread(get_password_hash, password),
            },
        )
        async with self.ledger.lock(identifier.key):
            await self.ledger.put(identifier.key, entry)
        logger.info(f"Registration started for {identifier.key}")

        await self._dispatch(entry, resend=False)
        return PendingCode(reference=identifier.key, channel=identifier.channel)

    async def verify_registration(
        self, email: str | None, phone: str | None, code: str | None
    ) -> AuthResult:
        """Check the code and create the verified account."""
        identifier = self._require_identifier(email, phone)
        async with self.ledger.lock(identifier.key):
            entry = await self._check_code(
                identifier,
                code,
                OtpPurpose.REGISTER,
                not_found="No OTP request found",
                expired="OTP expired. Please request again.",
                mismatch="Invalid OTP. Try again.",
            )
            user = await asyncio.to_thread(self._create_verified_user, entry.payload)
            await self.ledger.delete(identifier.key)
            if user is None:
                raise ConflictError("Already verified")

        logger.info(f"User {user.id} verified and registered via {identifier.field}")
        return AuthResult(token=create_access_token(user.id, user.is_admin), user=user)

    async def resend_code(self, email: str | None, phone: str | None) -> PendingCode:
        """Regenerate the pending code in place and send it over the original channel."""
        identifier = self._require_identifier(email, phone)
        async with self.ledger.lock(identifier.key):
            entry = await self.ledger.get(identifier.key)
            if entry is None:
                raise NotFoundError("No pending OTP request")
            entry.code = generate_otp(self.settings.otp_length)
            entry.expires_at = self._expiry()
            await self.ledger.put(identifier.key, entry)
        logger.info(f"Resending {entry.purpose} code to {identifier.key}")

        await self._dispatch(entry, resend=True)
        return PendingCode(reference=identifier.key, channel=entry.channel)

    # ------------------------------------------------------------------
    # Login
    # ------------------------------------------------------------------
    async def login(self, email: str | None, phone: str | None, password: str | None) -> AuthResult:
        identifier = resolve_identifier(email, phone)
        if not identifier or not password:
            raise ValidationError("Email or phone and password are required")

        user = await asyncio.to_thread(self._find_user, identifier)
        if user is None:
            pending = await self.ledger.get(identifier.key)
            if pending is not None and pending.purpose is OtpPurpose.REGISTER:
                raise AuthError("Please verify your account first", status_code=400)
            logger.info(f"Login failed for {identifier.key}: unknown account")
            raise AuthError("Invalid credentials", status_code=400)
        if not user.is_verified:
            raise AuthError("Please verify your account first", status_code=400)
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info(f"Login failed for user {user.id}: wrong password")
            raise AuthError("Invalid credentials", status_code=400)

        logger.info(f"User {user.id} logged in")
        return AuthResult(token=create_access_token(user.id, user.is_admin), user=user)

    # ------------------------------------------------------------------
    # Password reset
    # ------------------------------------------------------------------
    async def start_password_reset(self, email: str | None, phone: str | None) -> PendingCode:
        identifier = self._require_identifier(email, phone)
        user = await asyncio.to_thread(self._find_user, identifier)
        if user is None:
            raise NotFoundError("User not found")

        entry = self._new_entry(identifier, OtpPurpose.RESET, {"user_id": user.id})
        async with self.ledger.lock(identifier.key):
            await self.ledger.put(identifier.key, entry)
        logger.info(f"Password reset requested for user {user.id}")

        await self._dispatch(entry, resend=False)
        return PendingCode(reference=identifier.key, channel=identifier.channel)

    async def verify_reset_code(self, email: str | None, phone: str | None, code: str | None) -> str:
        """Consume the reset code and hand out a reset token."""
        identifier = self._require_identifier(email, phone)
        async with self.ledger.lock(identifier.key):
            entry = await self._check_code(
                identifier,
                code,
                OtpPurpose.RESET,
                not_found="No reset request found",
                expired="OTP expired",
                mismatch="Invalid OTP",
            )
            await self.ledger.delete(identifier.key)

        user = await asyncio.to_thread(self.db.get, User, entry.payload["user_id"])
        if user is None:
            raise NotFoundError("User not found")
        logger.info(f"Reset code verified for user {user.id}")
        return create_reset_token(user.id, user.password_hash)

    async def complete_password_reset(
        self,
        reset_token: str | None,
        new_password: str | None,
        confirm_password: str | None,
    ) -> None:
        if not reset_token:
            raise ValidationError("Reset token required")
        if not new_password or not confirm_password:
            raise ValidationError("New password and confirmation are required")
        if new_password != confirm_password:
            raise ValidationError("Passwords do not match")
        if not is_strong_password(new_password):
            raise ValidationError(WEAK_PASSWORD_MESSAGE)

        payload = decode_reset_token(reset_token)
        if payload is None:
            raise AuthError("Invalid or expired reset token")

        user = await asyncio.to_thread(self.db.get, User, payload["sub"])
        if user is None:
            raise NotFoundError("User not found")
        # A token is spent once the password it was issued against has changed
        if not secrets.compare_digest(
            str(payload.get("pwd", "")), password_fingerprint(user.password_hash)
        ):
            raise AuthError("Invalid or expired reset token")

        password_hash = await asyncio.to_thread(get_password_hash, new_password)
        await asyncio.to_thread(self._set_password, user, password_hash)
        logger.info(f"Password reset completed for user {user.id}")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_identifier(self, email: str | None, phone: str | None) -> Identifier:
        identifier = resolve_identifier(email, phone)
        if identifier is None:
            raise ValidationError("Email or phone is required")
        return identifier

    def _find_user(self, identifier: Identifier) -> User | None:
        if identifier.channel is OtpChannel.EMAIL:
            return get_user_by_email(self.db, identifier.key)
        return get_user_by_phone(self.db, identifier.key)

    def _find_conflict(self, email: str | None, phone: str | None) -> str | None:
        """Name the identifier an existing account already uses, if any."""
        if email and get_user_by_email(self.db, email):
            return "Email"
        if phone and get_user_by_phone(self.db, phone):
            return "Phone"
        return None

    def _create_verified_user(self, payload: dict) -> User | None:
        """Insert the account parked in ``payload``; None if it already exists."""
        if self._find_conflict(payload.get("email"), payload.get("phone")):
            return None
        user = User(
            name=payload["name"],
            email=payload.get("email"),
            phone=payload.get("phone"),
            password_hash=payload["password_hash"],
            is_verified=True,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(user)
        return user

    def _set_password(self, user: User, password_hash: str) -> None:
        user.password_hash = password_hash
        self.db.commit()

    def _expiry(self) -> datetime:
        return self._clock() + timedelta(seconds=self.settings.otp_ttl_seconds)

    def _new_entry(self, identifier: Identifier, purpose: OtpPurpose, payload: dict) -> OtpEntry:
        return OtpEntry(
            code=generate_otp(self.settings.otp_length),
            expires_at=self._expiry(),
            purpose=purpose,
            channel=identifier.channel,
            destination=identifier.key,
            payload=payload,
        )

    async def _check_code(
        self,
        identifier: Identifier,
        code: str | None,
        purpose: OtpPurpose,
        *,
        not_found: str,
        expired: str,
        mismatch: str,
    ) -> OtpEntry:
        """Return the matching entry; must be called while holding the key's lock.

        An expired entry is deleted. A mismatched code leaves the entry as is.
        """
        entry = await self.ledger.get(identifier.key)
        if entry is None or entry.purpose is not purpose:
            raise NotFoundError(not_found)
        if entry.is_expired(self._clock()):
            await self.ledger.delete(identifier.key)
            raise InvalidCodeError(expired)
        if not secrets.compare_digest(str(code or "").strip().encode(), entry.code.encode()):
            raise InvalidCodeError(mismatch)
        return entry

    async def _dispatch(self, entry: OtpEntry, resend: bool) -> None:
        subject, email_body, sms_body = _CODE_MESSAGES[(entry.purpose, resend)]
        values = {
            "code": entry.code,
            "name": entry.payload.get("name", "there"),
            "minutes": max(1, self.settings.otp_ttl_seconds // 60),
        }
        try:
            if entry.channel is OtpChannel.EMAIL:
                await asyncio.to_thread(
                    self.notifier.send_email,
                    entry.destination,
                    subject,
                    email_body.format(**values),
                )
            else:
                await asyncio.to_thread(
                    self.notifier.send_sms, entry.destination, sms_body.format(**values)
                )
        except NotificationError as e:
            raise InternalError("Failed to send OTP. Please try again.") from e
