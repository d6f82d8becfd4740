"""Notification service for delivering one-time codes by email and SMS."""

import logging
import smtplib
from email.message import EmailMessage

from twilio.base.exceptions import TwilioException
from twilio.rest import Client

from notes_api.config import Settings, get_settings

logger = logging.getLogger(__name__)


class NotificationError(Exception):
    """Raised when a configured channel fails to deliver a message."""


class NotificationService:
    """Service for sending codes via email (SMTP) or SMS (Twilio).

    A channel without credentials does not fail: the message is logged
    instead, which keeps local development usable.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self._twilio_client: Client | None = None
        self._init_twilio()

    def _init_twilio(self) -> None:
        """Initialize Twilio client if credentials are available."""
        if (
            self.settings.twilio_account_sid
            and self.settings.twilio_auth_token
            and self.settings.twilio_phone_number
        ):
            self._twilio_client = Client(
                self.settings.twilio_account_sid,
                self.settings.twilio_auth_token,
            )
            logger.info("Twilio client initialized")
        else:
            logger.info("Twilio credentials not configured, SMS codes will be logged")

    @property
    def email_enabled(self) -> bool:
        return bool(
            self.settings.smtp_host and self.settings.smtp_username and self.settings.smtp_from_email
        )

    @property
    def sms_enabled(self) -> bool:
        return self._twilio_client is not None

    def send_email(self, to_email: str, subject: str, body: str) -> None:
        """Send a plain-text email."""
        if not self.email_enabled:
            logger.warning(f"[EMAIL disabled] to={to_email} subject={subject!r}: {body}")
            return

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = f"{self.settings.smtp_from_name} <{self.settings.smtp_from_email}>"
        msg["To"] = to_email
        msg.set_content(body)

        try:
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port) as server:
                server.starttls()
                server.login(self.settings.smtp_username, self.settings.smtp_password or "")
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise NotificationError(f"Failed to send email to {to_email}") from e
        logger.info(f"Email sent to {to_email}")

    def send_sms(self, phone_number: str, message: str) -> None:
        """Send an SMS via Twilio."""
        if not self._twilio_client:
            logger.warning(f"[SMS disabled] to={phone_number}: {message}")
            return

        try:
            sms = self._twilio_client.messages.create(
                body=message,
                from_=self.settings.twilio_phone_number,
                to=phone_number,
            )
        except (TwilioException, OSError) as e:
            logger.error(f"Failed to send SMS to {phone_number}: {e}")
            raise NotificationError(f"Failed to send SMS to {phone_number}") from e
        logger.info(f"SMS sent to {phone_number}, SID: {sms.sid}")
