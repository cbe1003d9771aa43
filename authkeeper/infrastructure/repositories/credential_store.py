# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import UTC, datetime

from sqlalchemy import or_
from sqlalchemy.orm import Session

from authkeeper.domain.entities import ExpiredSession, NewUser
from authkeeper.domain.entities import PasswordResetToken as DomainPasswordResetToken
from authkeeper.domain.entities import Session as DomainSession
from authkeeper.domain.entities import User as DomainUser
from authkeeper.domain.repositories import CredentialStore, CredentialTransaction
from authkeeper.infrastructure.db.models import PasswordReset, User, UserSession
from authkeeper.infrastructure.unit_of_work import SqlAlchemyUnitOfWork


def _as_utc(value: datetime) -> datetime:
    # SQLite keeps wall-clock fields only: bind and read everything as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_user(row: User) -> DomainUser:
    return DomainUser(
        id=row.user_id,
        username=row.username,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        password_hash=row.password_hash,
        password_reset_required=bool(row.password_reset_required),
    )


def _to_session(row: UserSession) -> DomainSession:
    return DomainSession(
        id=row.session_id,
        user_id=row.user_id,
        token=row.session_token,
        created_at=_as_utc(row.created_at),
        expires_at=_as_utc(row.expires_at),
        ip_address=row.ip_address,
        ended_at=_as_utc(row.end_session_at) if row.end_session_at else None,
    )


def _to_reset_token(row: PasswordReset) -> DomainPasswordResetToken:
    return DomainPasswordResetToken(
        id=row.id,
        user_id=row.user_id,
        token=row.reset_token,
        expires_at=_as_utc(row.expires_at),
    )


class SqlAlchemyCredentialTransaction(CredentialTransaction):
    def __init__(self, session: Session) -> None:
        self._session = session

    def find_user_by_username_or_email(
        self, key: str, *, for_update: bool = False
    ) -> DomainUser | None:
        query = (
            self._session.query(User)
            .filter(or_(User.username == key, User.email == key))
            .order_by(User.user_id.asc())
        )
        if for_update:
            query = query.with_for_update()
        row = query.first()
        return _to_user(row) if row else None

    def find_user_by_username(
        self, username: str, *, for_update: bool = False
    ) -> DomainUser | None:
        query = self._session.query(User).filter(User.username == username)
        if for_update:
            query = query.with_for_update()
        row = query.first()
        return _to_user(row) if row else None

    def find_user_by_email(self, email: str) -> DomainUser | None:
        row = self._session.query(User).filter(User.email == email).first()
        return _to_user(row) if row else None

    def insert_user(self, user: NewUser) -> int:
        row = User(
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password_hash=user.password_hash,
            password_reset_required=False,
        )
        self._session.add(row)
        self._session.flush()
        return row.user_id

    def delete_user(self, user_id: int) -> None:
        row = self._session.get(User, user_id)
        if row is None:
            return
        self._session.delete(row)
        self._session.flush()

    def find_open_session(self, user_id: int) -> DomainSession | None:
        row = (
            self._session.query(UserSession)
            .filter(UserSession.user_id == user_id, UserSession.end_session_at.is_(None))
            .order_by(UserSession.session_id.desc())
            .first()
        )
        return _to_session(row) if row else None

    def insert_session(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
        ip_address: str,
    ) -> DomainSession:
        row = UserSession(
            user_id=user_id,
            session_token=token,
            created_at=_as_utc(created_at),
            expires_at=_as_utc(expires_at),
            ip_address=ip_address,
        )
        self._session.add(row)
        self._session.flush()
        return _to_session(row)

    def close_session(self, token: str, now: datetime) -> bool:
        updated = (
            self._session.query(UserSession)
            .filter(
                UserSession.session_token == token,
                UserSession.end_session_at.is_(None),
            )
            .update({UserSession.end_session_at: _as_utc(now)}, synchronize_session=False)
        )
        return updated > 0

    def find_expired_open_sessions(self, now: datetime) -> list[ExpiredSession]:
        rows = (
            self._session.query(UserSession.session_token, User.username)
            .join(User, UserSession.user_id == User.user_id)
            .filter(UserSession.expires_at < _as_utc(now), UserSession.end_session_at.is_(None))
            .order_by(UserSession.expires_at.asc())
            .all()
        )
        return [ExpiredSession(token=token, username=username) for token, username in rows]

    def insert_reset_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> DomainPasswordResetToken:
        row = PasswordReset(user_id=user_id, reset_token=token, expires_at=_as_utc(expires_at))
        self._session.add(row)
        self._session.flush()
        return _to_reset_token(row)

    def find_reset_token(self, token: str) -> DomainPasswordResetToken | None:
        row = (
            self._session.query(PasswordReset)
            .filter(PasswordReset.reset_token == token)
            .first()
        )
        return _to_reset_token(row) if row else None

    def expire_reset_tokens(self, user_id: int, now: datetime) -> int:
        now = _as_utc(now)
        return (
            self._session.query(PasswordReset)
            .filter(PasswordReset.user_id == user_id, PasswordReset.expires_at > now)
            .update({PasswordReset.expires_at: now}, synchronize_session=False)
        )

    def mark_password_reset_required(self, user_id: int, required: bool) -> None:
        self._session.query(User).filter(User.user_id == user_id).update(
            {User.password_reset_required: required}, synchronize_session=False
        )

    def update_password_and_clear_reset_flag(self, user_id: int, new_digest: str) -> None:
        self._session.query(User).filter(User.user_id == user_id).update(
            {User.password_hash: new_digest, User.password_reset_required: False},
            synchronize_session=False,
        )


class SqlAlchemyCredentialStore(CredentialStore):
    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    @contextmanager
    def transaction(self) -> Iterator[SqlAlchemyCredentialTransaction]:
        with SqlAlchemyUnitOfWork(self._session_factory) as uow:
            yield SqlAlchemyCredentialTransaction(uow.session)
