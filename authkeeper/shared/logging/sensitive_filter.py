# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Redaction of credentials, tokens and e-mail addresses in log records."""

from __future__ import annotations

import re
from typing import Any

_REDACTED = "***REDACTED***"

# session and reset tokens are urlsafe base64, at least 22 chars for 16 bytes
_TOKEN_CHARS = r"[A-Za-z0-9_\-\.]{20,}"

_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(rf"(bearer\s+){_TOKEN_CHARS}", re.IGNORECASE), rf"\1{_REDACTED}"),
    (
        re.compile(rf"((?:session[_-]?|reset[_-]?)?token\s*[:=]\s*['\"]?){_TOKEN_CHARS}", re.IGNORECASE),
        rf"\1{_REDACTED}",
    ),
    (
        re.compile(r"((?:password(?:[_-]?hash)?|pwd|digest)\s*[:=]\s*['\"]?)[^'\"\s,]{6,}", re.IGNORECASE),
        rf"\1{_REDACTED}",
    ),
    (
        re.compile(r"\b([a-z][a-z0-9+]*://[^:/@\s]+):[^@\s]+@", re.IGNORECASE),
        rf"\1:{_REDACTED}@",
    ),
    (re.compile(r"[A-Za-z0-9._%+-]+@([A-Za-z0-9-]+(?:\.[A-Za-z0-9-]+)*\.[A-Za-z]{2,})"), r"***@\1"),
]


def sanitize_message(message: str) -> str:
    for pattern, replacement in _RULES:
        message = pattern.sub(replacement, message)
    return message


def sanitize_record(record: dict[str, Any]) -> bool:
    """loguru filter: rewrite the message in place and always keep the record."""
    if "message" in record:
        record["message"] = sanitize_message(record["message"])
    return True
