"""Tests for logging setup and the error taxonomy."""

import logging

import pytest

from notes_api.exceptions import InternalError, NotFoundError
from notes_api.logging import configure_logging


@pytest.fixture
def restore_levels():
    names = ("notes_api", "passlib", "twilio.http_client")
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_configure_logging_sets_application_level(restore_levels):
    configure_logging("debug")

    assert logging.getLogger("notes_api").level == logging.DEBUG
    assert logging.getLogger("passlib").level == logging.WARNING
    assert logging.getLogger("twilio.http_client").level == logging.WARNING


def test_default_messages():
    assert NotFoundError().message == "Not found"
    assert NotFoundError().status_code == 404
    assert InternalError().status_code == 500
    assert InternalError("Failed to send OTP").message == "Failed to send OTP"
