# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True, frozen=True)
class NewUser:

    username: str
    first_name: str
    last_name: str
    email: str
    password_hash: str


@dataclass(slots=True, frozen=True)
class User:

    id: int
    username: str
    first_name: str
    last_name: str
    email: str
    password_hash: str
    password_reset_required: bool = False


@dataclass(slots=True, frozen=True)
class Session:

    id: int
    user_id: int
    token: str
    created_at: datetime
    expires_at: datetime
    ip_address: str
    ended_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.ended_at is None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(slots=True, frozen=True)
class ExpiredSession:

    token: str
    username: str


@dataclass(slots=True, frozen=True)
class PasswordResetToken:

    id: int
    user_id: int
    token: str
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
