"""Tests for credential redaction in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from app.core.logging import JsonFormatter, SensitiveDataFilter, clear_request_id, redact, set_request_id


@pytest.fixture
def capture():
    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_sensitive_keys_are_redacted(capture):
    logger, stream = capture

    logger.info(
        "auth.event",
        extra={
            "token": "abc123",
            "api_key": "sk-secret",
            "token_hash": "deadbeefdeadbeef",
        },
    )

    output = stream.getvalue()
    assert "abc123" not in output
    assert "sk-secret" not in output
    assert "[REDACTED]" in output
    assert "deadbeefdeadbeef" in output


def test_authorization_values_are_masked_in_nested_data(capture):
    logger, stream = capture

    logger.info(
        "headers.dump",
        extra={
            "headers": {
                "Authorization": 'Token token="abc123"',
                "user-agent": "pytest",
            },
            "notes": ["sent Bearer xyz789 upstream"],
        },
    )

    output = stream.getvalue()
    assert "abc123" not in output
    assert "xyz789" not in output
    assert "pytest" in output


def test_safe_fields_pass_through(capture):
    logger, stream = capture

    logger.info(
        "rate_limit.allowed",
        extra={
            "key_hash": "0123456789abcdef",
            "count": 3,
            "limit": 60,
            "route": "/v1/users",
        },
    )

    payload = json.loads(stream.getvalue())
    assert payload["message"] == "rate_limit.allowed"
    assert payload["count"] == 3
    assert payload["route"] == "/v1/users"
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_from_context(capture):
    logger, stream = capture
    set_request_id("req-123")

    logger.info("with_context")

    assert json.loads(stream.getvalue())["request_id"] == "req-123"


def test_redact_keeps_structure():
    value = {"Authorization": "x", "items": ("Token abc", 1)}

    assert redact(value) == {"Authorization": "[REDACTED]", "items": ("Token [REDACTED]", 1)}
