"""Logging setup, run once from the application lifespan."""

import logging

from notes_api.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("passlib", "twilio.http_client")


def configure_logging(level: str | None = None) -> None:
    """Send application logs to stderr at ``LOG_LEVEL`` (or ``level``)."""
    level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("notes_api").setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
