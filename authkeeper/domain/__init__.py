# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .entities import ExpiredSession, NewUser, PasswordResetToken, Session, User
from .exceptions import (
    DuplicateAccountError,
    DuplicateKeyError,
    EmptyPasswordError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    NoActiveSessionError,
    PasswordMismatchError,
    SessionConflictError,
    StoreOperationFailedError,
    StoreUnavailableError,
    UserNotFoundError,
)
from .repositories import (
    CredentialStore,
    CredentialTransaction,
    Notifier,
    PasswordHasher,
    TokenGenerator,
)

__all__ = [
    "ExpiredSession",
    "NewUser",
    "PasswordResetToken",
    "Session",
    "User",
    "DuplicateAccountError",
    "DuplicateKeyError",
    "EmptyPasswordError",
    "InvalidCredentialsError",
    "InvalidResetTokenError",
    "NoActiveSessionError",
    "PasswordMismatchError",
    "SessionConflictError",
    "StoreOperationFailedError",
    "StoreUnavailableError",
    "UserNotFoundError",
    "CredentialStore",
    "CredentialTransaction",
    "Notifier",
    "PasswordHasher",
    "TokenGenerator",
]
