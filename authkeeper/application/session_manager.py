# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Registration, login, logout and password reset orchestration."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from functools import cached_property
from typing import Any, TypeVar

from authkeeper.application.outcome import Outcome
from authkeeper.domain.entities import NewUser, Session, User
from authkeeper.domain.exceptions import (
    DuplicateAccountError,
    DuplicateKeyError,
    EmptyPasswordError,
    InvalidCredentialsError,
    InvalidResetTokenError,
    NoActiveSessionError,
    PasswordMismatchError,
    SessionConflictError,
    UserNotFoundError,
)
from authkeeper.domain.repositories import (
    CredentialStore,
    CredentialTransaction,
    Notifier,
    PasswordHasher,
    TokenGenerator,
)
from authkeeper.shared.errors.base import AppError, InfrastructureError, UnexpectedError
from authkeeper.shared.logging import correlation_scope, logger

T = TypeVar("T")

SESSION_TTL = timedelta(hours=3)
RESET_TOKEN_TTL = timedelta(hours=3)
LOCAL_IP_ADDRESS = "127.0.0.1"


def utcnow() -> datetime:
    return datetime.now(UTC)


class SessionManager:
    """Caller-facing credential and session operations.

    Each operation runs in one store transaction and reports an ``Outcome``;
    failures never escape as exceptions.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        password_hasher: PasswordHasher,
        token_generator: TokenGenerator,
        notifier: Notifier,
        session_ttl: timedelta = SESSION_TTL,
        reset_token_ttl: timedelta = RESET_TOKEN_TTL,
        token_bytes: int = 32,
        default_ip_address: str = LOCAL_IP_ADDRESS,
        require_reset_token: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._password_hasher = password_hasher
        self._tokens = token_generator
        self._notifier = notifier
        self._session_ttl = session_ttl
        self._reset_token_ttl = reset_token_ttl
        self._token_bytes = token_bytes
        self._default_ip_address = default_ip_address
        self._require_reset_token = require_reset_token
        self._clock = clock

    def register_user(
        self,
        username: str,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> Outcome[int]:
        return self._run(
            "register",
            self._register,
            username,
            first_name,
            last_name,
            email,
            password,
            confirm_password,
        )

    def login_user(
        self, identifier: str, password: str, ip_address: str | None = None
    ) -> Outcome[Session]:
        return self._run("login", self._login, identifier, password, ip_address)

    def track_session(self, username: str, ip_address: str | None = None) -> Outcome[Session]:
        return self._run("track_session", self._track, username, ip_address)

    def logout_user(self, username: str) -> Outcome[None]:
        return self._run("logout", self._logout, username)

    def end_session(self, session_token: str) -> Outcome[bool]:
        return self._run("end_session", self._end_session, session_token)

    def delete_user(self, username: str) -> Outcome[None]:
        return self._run("delete_user", self._delete_user, username)

    def forgot_password(self, email: str) -> Outcome[datetime]:
        return self._run("forgot_password", self._forgot_password, email)

    def complete_password_reset(
        self,
        email: str,
        new_password: str,
        confirm_new_password: str,
        reset_token: str | None = None,
    ) -> Outcome[None]:
        return self._run(
            "complete_password_reset",
            self._complete_password_reset,
            email,
            new_password,
            confirm_new_password,
            reset_token,
        )

    def _run(self, operation: str, func: Callable[..., T], *args: Any) -> Outcome[T]:
        with correlation_scope():
            try:
                value = func(*args)
            except InfrastructureError as exc:
                logger.error(f"{operation}: store failure ({exc.code})")
                return Outcome.failure(exc)
            except AppError as exc:
                logger.info(f"{operation}: rejected ({exc.code})")
                return Outcome.failure(exc)
            except Exception:
                logger.exception(f"{operation}: unexpected error")
                return Outcome.failure(UnexpectedError(context={"operation": operation}))
            logger.debug(f"{operation}: ok")
            return Outcome.success(value)

    @cached_property
    def _dummy_digest(self) -> str:
        # verified against when the user is unknown, so both paths hash once
        return self._password_hasher.hash(self._tokens.generate(16))

    def _register(
        self,
        username: str,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> int:
        if password != confirm_password:
            raise PasswordMismatchError()
        digest = self._password_hasher.hash(password)
        new_user = NewUser(
            username=username,
            first_name=first_name,
            last_name=last_name,
            email=email,
            password_hash=digest,
        )
        try:
            with self._store.transaction() as tx:
                user_id = tx.insert_user(new_user)
        except DuplicateKeyError as exc:
            raise DuplicateAccountError(context={"username": username}) from exc
        logger.info(f"register: created user_id={user_id} username={username}")
        return user_id

    def _login(self, identifier: str, password: str, ip_address: str | None) -> Session:
        with self._store.transaction() as tx:
            user = tx.find_user_by_username_or_email(identifier, for_update=True)
            if user is None:
                self._password_hasher.verify(password, self._dummy_digest)
                raise InvalidCredentialsError()
            if not self._password_hasher.verify(password, user.password_hash):
                raise InvalidCredentialsError()
            if user.password_reset_required:
                logger.info(f"login: user={user.username} has a pending password reset")
            session = self._open_session(tx, user, ip_address)
        logger.info(f"login: session opened for user={user.username}")
        return session

    def _track(self, username: str, ip_address: str | None) -> Session:
        with self._store.transaction() as tx:
            user = tx.find_user_by_username(username, for_update=True)
            if user is None:
                raise UserNotFoundError()
            return self._open_session(tx, user, ip_address)

    def _open_session(
        self, tx: CredentialTransaction, user: User, ip_address: str | None
    ) -> Session:
        now = self._clock()
        current = tx.find_open_session(user.id)
        if current is not None:
            if not current.is_expired(now):
                raise SessionConflictError(context={"username": user.username})
            tx.close_session(current.token, now)
            logger.info(f"session: closed expired session for user={user.username}")
        return tx.insert_session(
            user.id,
            self._tokens.generate(self._token_bytes),
            now,
            now + self._session_ttl,
            ip_address or self._default_ip_address,
        )

    def _logout(self, username: str) -> None:
        with self._store.transaction() as tx:
            user = tx.find_user_by_username(username)
            current = tx.find_open_session(user.id) if user is not None else None
            if current is None:
                raise NoActiveSessionError(context={"username": username})
            tx.close_session(current.token, self._clock())
        logger.info(f"logout: session closed for user={username}")

    def _end_session(self, session_token: str) -> bool:
        with self._store.transaction() as tx:
            return tx.close_session(session_token, self._clock())

    def _delete_user(self, username: str) -> None:
        with self._store.transaction() as tx:
            user = tx.find_user_by_username(username)
            if user is None:
                raise UserNotFoundError(context={"username": username})
            tx.delete_user(user.id)
        logger.info(f"delete_user: removed user={username}")

    def _forgot_password(self, email: str) -> datetime:
        token = self._tokens.generate(self._token_bytes)
        expires_at = self._clock() + self._reset_token_ttl
        with self._store.transaction() as tx:
            user = tx.find_user_by_email(email)
            if user is None:
                raise UserNotFoundError()
            tx.insert_reset_token(user.id, token, expires_at)
            tx.mark_password_reset_required(user.id, True)
        logger.info(f"forgot_password: reset token issued for user={user.username}")
        try:
            self._notifier.send(email, token)
        except Exception:
            logger.exception("forgot_password: reset notification failed")
        return expires_at

    def _complete_password_reset(
        self,
        email: str,
        new_password: str,
        confirm_new_password: str,
        reset_token: str | None,
    ) -> None:
        now = self._clock()
        with self._store.transaction() as tx:
            user = tx.find_user_by_email(email)
            if user is None:
                raise UserNotFoundError()
            if not new_password or not confirm_new_password:
                raise EmptyPasswordError()
            if new_password != confirm_new_password:
                raise PasswordMismatchError()
            self._check_reset_allowed(tx, user, reset_token, now)
            tx.update_password_and_clear_reset_flag(
                user.id, self._password_hasher.hash(new_password)
            )
            expired = tx.expire_reset_tokens(user.id, now)
        logger.info(
            f"complete_password_reset: password updated for user={user.username}, "
            f"{expired} reset token(s) invalidated"
        )

    def _check_reset_allowed(
        self,
        tx: CredentialTransaction,
        user: User,
        reset_token: str | None,
        now: datetime,
    ) -> None:
        if reset_token is None:
            if self._require_reset_token:
                raise InvalidResetTokenError(context={"detail": "token_required"})
            if not user.password_reset_required:
                raise InvalidResetTokenError(context={"detail": "reset_not_requested"})
            return
        record = tx.find_reset_token(reset_token)
        if record is None or record.user_id != user.id or record.is_expired(now):
            raise InvalidResetTokenError()
