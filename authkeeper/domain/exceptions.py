# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from authkeeper.shared.errors.base import DomainError, InfrastructureError, ValidationError


class PasswordMismatchError(ValidationError):
    reason = "Passwords do not match."

    def __init__(self) -> None:
        super().__init__(code="password_mismatch")


class EmptyPasswordError(ValidationError):
    reason = "Password fields cannot be empty."

    def __init__(self) -> None:
        super().__init__(code="empty_password")


class DuplicateAccountError(DomainError):
    code = "duplicate_account"
    status = HTTPStatus.CONFLICT
    reason = "Username or email is already registered."


class UserNotFoundError(DomainError):
    code = "user_not_found"
    status = HTTPStatus.NOT_FOUND
    reason = "User not found."


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED
    reason = "Invalid username or password."


class SessionConflictError(DomainError):
    code = "session_conflict"
    status = HTTPStatus.CONFLICT
    reason = "An active session already exists for this user."


class NoActiveSessionError(DomainError):
    code = "no_active_session"
    status = HTTPStatus.NOT_FOUND
    reason = "No active session found."


class InvalidResetTokenError(DomainError):
    code = "invalid_reset_token"
    status = HTTPStatus.BAD_REQUEST
    reason = "Password reset token is invalid or expired."


class StoreUnavailableError(InfrastructureError):
    reason = "The credential store is unavailable."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(
            "store_unavailable",
            status=HTTPStatus.SERVICE_UNAVAILABLE,
            context={"detail": detail} if detail else None,
        )


class StoreOperationFailedError(InfrastructureError):
    reason = "A credential store operation failed."

    def __init__(self, detail: str | None = None, *, code: str = "store_operation_failed") -> None:
        super().__init__(code, context={"detail": detail} if detail else None)


class DuplicateKeyError(StoreOperationFailedError):
    reason = "A unique column already holds this value."

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail, code="duplicate_key")
