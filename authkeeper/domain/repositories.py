# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Protocol

from .entities import ExpiredSession, NewUser, PasswordResetToken, Session, User


class CredentialTransaction(Protocol):
    """Store operations bound to one open transaction."""

    def find_user_by_username_or_email(
        self, key: str, *, for_update: bool = False
    ) -> User | None: ...

    def find_user_by_username(
        self, username: str, *, for_update: bool = False
    ) -> User | None: ...

    def find_user_by_email(self, email: str) -> User | None: ...

    def insert_user(self, user: NewUser) -> int: ...

    def delete_user(self, user_id: int) -> None: ...

    def find_open_session(self, user_id: int) -> Session | None: ...

    def insert_session(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
        ip_address: str,
    ) -> Session: ...

    def close_session(self, token: str, now: datetime) -> bool: ...

    def find_expired_open_sessions(self, now: datetime) -> list[ExpiredSession]: ...

    def insert_reset_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> PasswordResetToken: ...

    def find_reset_token(self, token: str) -> PasswordResetToken | None: ...

    def expire_reset_tokens(self, user_id: int, now: datetime) -> int: ...

    def mark_password_reset_required(self, user_id: int, required: bool) -> None: ...

    def update_password_and_clear_reset_flag(self, user_id: int, new_digest: str) -> None: ...


class CredentialStore(Protocol):
    """Entering the context begins a transaction; a clean exit commits it
    and an exception rolls it back before propagating."""

    def transaction(self) -> AbstractContextManager[CredentialTransaction]: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...


class TokenGenerator(Protocol):
    def generate(self, byte_length: int = 32) -> str: ...


class Notifier(Protocol):
    def send(self, email: str, token: str) -> None: ...
