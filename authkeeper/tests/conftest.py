from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy.engine import Engine

from authkeeper.application.services.password_hashing import (
    Sha256PasswordHasher,
    WerkzeugPasswordHasher,
)
from authkeeper.application.services.tokens import SecureTokenGenerator
from authkeeper.application.session_manager import SessionManager
from authkeeper.infrastructure.db import build_engine, build_session_factory, init_db
from authkeeper.infrastructure.repositories.credential_store import SqlAlchemyCredentialStore
from authkeeper.shared.config import DatabaseConfig
from authkeeper.tests.fakes import (
    FAST_HASH_METHOD,
    FrozenClock,
    InMemoryCredentialStore,
    RecordingNotifier,
)

@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture()
def store() -> InMemoryCredentialStore:
    return InMemoryCredentialStore()


@pytest.fixture()
def manager(
    store: InMemoryCredentialStore, notifier: RecordingNotifier, clock: FrozenClock
) -> SessionManager:
    return SessionManager(
        store=store,
        password_hasher=Sha256PasswordHasher(),
        token_generator=SecureTokenGenerator(),
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture()
def alice(manager: SessionManager) -> int:
    outcome = manager.register_user("alice", "A", "A", "a@x.com", "Passw0rd", "Passw0rd")
    assert outcome.ok
    return outcome.value


@pytest.fixture()
def sql_engine(tmp_path) -> Iterator[Engine]:
    engine = build_engine(DatabaseConfig(url=f"sqlite:///{tmp_path / 'auth.db'}"))
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def sql_store(sql_engine: Engine) -> SqlAlchemyCredentialStore:
    return SqlAlchemyCredentialStore(build_session_factory(sql_engine))


@pytest.fixture()
def sql_manager(
    sql_store: SqlAlchemyCredentialStore, notifier: RecordingNotifier, clock: FrozenClock
) -> SessionManager:
    return SessionManager(
        store=sql_store,
        password_hasher=WerkzeugPasswordHasher(method=FAST_HASH_METHOD),
        token_generator=SecureTokenGenerator(),
        notifier=notifier,
        clock=clock,
    )
