from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from authkeeper.domain.entities import (
    ExpiredSession,
    NewUser,
    PasswordResetToken,
    Session,
    User,
)
from authkeeper.domain.exceptions import (
    DuplicateKeyError,
    StoreOperationFailedError,
    StoreUnavailableError,
)
from authkeeper.domain.repositories import CredentialStore, CredentialTransaction

# cheap salted method so the suite stays fast
FAST_HASH_METHOD = "pbkdf2:sha256:1000"


class FrozenClock:
    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    def send(self, email: str, token: str) -> None:
        self.sent.append((email, token))

    @property
    def last_token(self) -> str:
        return self.sent[-1][1]


class FailingNotifier:
    def send(self, email: str, token: str) -> None:
        raise ConnectionError("smtp down")


@dataclass
class _State:
    users: dict[int, User] = field(default_factory=dict)
    sessions: dict[int, Session] = field(default_factory=dict)
    resets: dict[int, PasswordResetToken] = field(default_factory=dict)
    seq: int = 0

    def copy(self) -> _State:
        # entities are frozen, so copying the tables is enough
        return _State(
            users=dict(self.users),
            sessions=dict(self.sessions),
            resets=dict(self.resets),
            seq=self.seq,
        )

    def next_id(self) -> int:
        self.seq += 1
        return self.seq


class InMemoryTransaction(CredentialTransaction):
    def __init__(self, state: _State, fail_on: set[str]) -> None:
        self._state = state
        self._fail_on = fail_on

    def _check(self, operation: str) -> None:
        if operation in self._fail_on:
            raise StoreOperationFailedError(operation)

    def find_user_by_username_or_email(
        self, key: str, *, for_update: bool = False
    ) -> User | None:
        self._check("find_user")
        for user in sorted(self._state.users.values(), key=lambda u: u.id):
            if key in (user.username, user.email):
                return user
        return None

    def find_user_by_username(self, username: str, *, for_update: bool = False) -> User | None:
        self._check("find_user")
        return next((u for u in self._state.users.values() if u.username == username), None)

    def find_user_by_email(self, email: str) -> User | None:
        self._check("find_user")
        return next((u for u in self._state.users.values() if u.email == email), None)

    def insert_user(self, user: NewUser) -> int:
        self._check("insert_user")
        for existing in self._state.users.values():
            if existing.username == user.username or existing.email == user.email:
                raise DuplicateKeyError("users")
        user_id = self._state.next_id()
        self._state.users[user_id] = User(
            id=user_id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            password_hash=user.password_hash,
        )
        return user_id

    def delete_user(self, user_id: int) -> None:
        self._check("delete_user")
        self._state.users.pop(user_id, None)
        for table in (self._state.sessions, self._state.resets):
            for key in [k for k, v in table.items() if v.user_id == user_id]:
                del table[key]

    def find_open_session(self, user_id: int) -> Session | None:
        self._check("find_open_session")
        open_sessions = [
            s for s in self._state.sessions.values() if s.user_id == user_id and s.is_open
        ]
        return max(open_sessions, key=lambda s: s.id, default=None)

    def insert_session(
        self,
        user_id: int,
        token: str,
        created_at: datetime,
        expires_at: datetime,
        ip_address: str,
    ) -> Session:
        self._check("insert_session")
        if any(s.token == token for s in self._state.sessions.values()):
            raise DuplicateKeyError("user_sessions")
        session = Session(
            id=self._state.next_id(),
            user_id=user_id,
            token=token,
            created_at=created_at,
            expires_at=expires_at,
            ip_address=ip_address,
        )
        self._state.sessions[session.id] = session
        return session

    def close_session(self, token: str, now: datetime) -> bool:
        self._check("close_session")
        for key, session in self._state.sessions.items():
            if session.token == token and session.is_open:
                self._state.sessions[key] = replace(session, ended_at=now)
                return True
        return False

    def find_expired_open_sessions(self, now: datetime) -> list[ExpiredSession]:
        self._check("find_expired")
        result = []
        for session in sorted(self._state.sessions.values(), key=lambda s: s.expires_at):
            if session.is_open and session.expires_at < now:
                user = self._state.users[session.user_id]
                result.append(ExpiredSession(token=session.token, username=user.username))
        return result

    def insert_reset_token(
        self, user_id: int, token: str, expires_at: datetime
    ) -> PasswordResetToken:
        self._check("insert_reset_token")
        record = PasswordResetToken(
            id=self._state.next_id(), user_id=user_id, token=token, expires_at=expires_at
        )
        self._state.resets[record.id] = record
        return record

    def find_reset_token(self, token: str) -> PasswordResetToken | None:
        return next((r for r in self._state.resets.values() if r.token == token), None)

    def expire_reset_tokens(self, user_id: int, now: datetime) -> int:
        count = 0
        for key, record in self._state.resets.items():
            if record.user_id == user_id and record.expires_at > now:
                self._state.resets[key] = replace(record, expires_at=now)
                count += 1
        return count

    def mark_password_reset_required(self, user_id: int, required: bool) -> None:
        self._check("mark_password_reset_required")
        user = self._state.users[user_id]
        self._state.users[user_id] = replace(user, password_reset_required=required)

    def update_password_and_clear_reset_flag(self, user_id: int, new_digest: str) -> None:
        self._check("update_password")
        user = self._state.users[user_id]
        self._state.users[user_id] = replace(
            user, password_hash=new_digest, password_reset_required=False
        )


class InMemoryCredentialStore(CredentialStore):
    """Copy-on-begin store that counts commits and rollbacks."""

    def __init__(self) -> None:
        self._state = _State()
        self.begins = 0
        self.commits = 0
        self.rollbacks = 0
        self.unavailable = False
        self.fail_on: set[str] = set()

    @contextmanager
    def transaction(self) -> Iterator[InMemoryTransaction]:
        if self.unavailable:
            raise StoreUnavailableError("connection refused")
        self.begins += 1
        working = self._state.copy()
        try:
            yield InMemoryTransaction(working, self.fail_on)
        except BaseException:
            self.rollbacks += 1
            raise
        self._state = working
        self.commits += 1

    @property
    def users(self) -> dict[int, User]:
        return self._state.users

    @property
    def sessions(self) -> dict[int, Session]:
        return self._state.sessions

    @property
    def resets(self) -> dict[int, PasswordResetToken]:
        return self._state.resets

    def user_named(self, username: str) -> User:
        return next(u for u in self._state.users.values() if u.username == username)

    def open_sessions_of(self, username: str) -> list[Session]:
        user = self.user_named(username)
        return [s for s in self._state.sessions.values() if s.user_id == user.id and s.is_open]
