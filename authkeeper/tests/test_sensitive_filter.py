from __future__ import annotations

import pytest

from authkeeper.shared.logging.sensitive_filter import sanitize_message, sanitize_record

TOKEN = "Zq3xY8kP0vLmN2rT5wUa7bCd"


@pytest.mark.parametrize(
    ("message", "secret"),
    [
        (f"Authorization: Bearer {TOKEN}", TOKEN),
        (f"issued token={TOKEN}", TOKEN),
        (f"session_token: '{TOKEN}'", TOKEN),
        (f"reset-token={TOKEN}", TOKEN),
        ("login with password=hunter22", "hunter22"),
        ("password_hash=scrypt:32768:8:1$abc$def", "scrypt:32768"),
        ("postgresql://auth:s3cret@db:5432/auth", "s3cret"),
    ],
)
def test_secrets_are_redacted(message: str, secret: str) -> None:
    sanitized = sanitize_message(message)

    assert secret not in sanitized
    assert "***REDACTED***" in sanitized


def test_email_local_part_is_masked() -> None:
    assert sanitize_message("reset requested for alice@example.com") == (
        "reset requested for ***@example.com"
    )


def test_plain_messages_pass_through() -> None:
    message = "monitor: ended 3 expired session(s)"

    assert sanitize_message(message) == message


def test_record_filter_rewrites_message_and_keeps_record() -> None:
    record = {"message": f"token={TOKEN}", "level": "INFO"}

    assert sanitize_record(record) is True
    assert TOKEN not in record["message"]
    assert record["level"] == "INFO"
