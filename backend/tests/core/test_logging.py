import json
import logging

import pytest
import structlog

from maigewan.core.config import settings
from maigewan.core.logging import redact_sensitive_data, redact_string, setup_logging


@pytest.fixture
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


def test_sensitive_keys_are_redacted():
    event = {
        "event": "login",
        "password": "memberpass",
        "pb_auth": "%7B%22token%22...",
        "Authorization": "Bearer abc",
        "ip": "203.0.113.5",
    }

    result = redact_sensitive_data(None, "info", event)

    assert result["password"] == "***REDACTED***"
    assert result["pb_auth"] == "***REDACTED***"
    assert result["Authorization"] == "***REDACTED***"
    assert result["ip"] == "203.0.113.5"
    assert result["event"] == "login"
    # input is left untouched
    assert event["password"] == "memberpass"


def test_redact_email():
    assert redact_string("member@example.com") == "m***@example.com"


def test_redact_long_token():
    token = "abcdefghijklmnopqrstuvwxyz0123456789"
    assert redact_string(token) == "abcdefgh...6789"


def test_short_values_pass_through():
    assert redact_string("unknown") == "unknown"
    assert redact_string("Failed to authenticate.") == "Failed to authenticate."


def test_redact_email_inside_message():
    assert redact_string("Failed to write login log: member@example.com") == (
        "Failed to write login log: m***@example.com"
    )


def test_production_logging_emits_redacted_json(monkeypatch, capsys, restore_logging):
    monkeypatch.setattr(settings, "DEBUG", False)
    monkeypatch.setattr(settings, "LOG_LEVEL", "INFO")
    setup_logging()
    structlog.contextvars.bind_contextvars(request_id="req-1")

    logging.getLogger("maigewan.services.login_log").error("Failed to write login log: member@example.com")
    structlog.get_logger("maigewan.api.auth").info("login", password="memberpass")

    lines = capsys.readouterr().out.strip().splitlines()
    stdlib_entry, structlog_entry = json.loads(lines[-2]), json.loads(lines[-1])

    assert stdlib_entry["event"] == "Failed to write login log: m***@example.com"
    assert stdlib_entry["level"] == "error"
    assert stdlib_entry["logger"] == "maigewan.services.login_log"
    assert stdlib_entry["request_id"] == "req-1"
    assert "timestamp" in stdlib_entry

    assert structlog_entry["event"] == "login"
    assert structlog_entry["password"] == "***REDACTED***"
    assert structlog_entry["request_id"] == "req-1"
