"""Opaque token generation."""

from __future__ import annotations

import secrets

from authkeeper.domain.repositories import TokenGenerator


class SecureTokenGenerator(TokenGenerator):
    """URL-safe base64 tokens drawn from the OS CSPRNG on every call."""

    def generate(self, byte_length: int = 32) -> str:
        if byte_length < 1:
            raise ValueError("byte_length must be positive")
        return secrets.token_urlsafe(byte_length)
