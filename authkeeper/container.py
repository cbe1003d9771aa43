"""Application dependency container."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from functools import cached_property

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from authkeeper.application.services.password_hashing import build_password_hasher
from authkeeper.application.services.tokens import SecureTokenGenerator
from authkeeper.application.session_manager import SessionManager, utcnow
from authkeeper.application.session_monitor import SessionMonitor
from authkeeper.domain.repositories import Notifier, PasswordHasher
from authkeeper.infrastructure.db import build_engine, build_session_factory, init_db
from authkeeper.infrastructure.notifier import ConsoleNotifier
from authkeeper.infrastructure.repositories.credential_store import SqlAlchemyCredentialStore
from authkeeper.shared.config import AppConfig, load_config


class Container:
    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        notifier: Notifier | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.config = config or load_config()
        self._notifier = notifier
        self._clock = clock

    @cached_property
    def engine(self) -> Engine:
        return build_engine(self.config.database)

    @cached_property
    def session_factory(self) -> sessionmaker[Session]:
        return build_session_factory(self.engine)

    @cached_property
    def credential_store(self) -> SqlAlchemyCredentialStore:
        return SqlAlchemyCredentialStore(self.session_factory)

    @cached_property
    def password_hasher(self) -> PasswordHasher:
        security = self.config.security
        return build_password_hasher(
            security.password_hasher, method=security.password_hash_method
        )

    @cached_property
    def token_generator(self) -> SecureTokenGenerator:
        return SecureTokenGenerator()

    @cached_property
    def notifier(self) -> Notifier:
        return self._notifier or ConsoleNotifier()

    @cached_property
    def session_manager(self) -> SessionManager:
        sessions = self.config.sessions
        return SessionManager(
            store=self.credential_store,
            password_hasher=self.password_hasher,
            token_generator=self.token_generator,
            notifier=self.notifier,
            session_ttl=sessions.ttl,
            reset_token_ttl=sessions.reset_token_ttl,
            token_bytes=sessions.token_bytes,
            default_ip_address=sessions.default_ip_address,
            require_reset_token=self.config.security.require_reset_token,
            clock=self._clock,
        )

    @cached_property
    def session_monitor(self) -> SessionMonitor:
        return SessionMonitor(
            store=self.credential_store,
            manager=self.session_manager,
            interval=self.config.monitor.interval_seconds,
            abort_on_store_failure=self.config.monitor.abort_on_store_failure,
            clock=self._clock,
        )

    def init_db(self) -> None:
        init_db(self.engine)

    def close(self) -> None:
        if "session_monitor" in self.__dict__:
            self.session_monitor.stop()
        if "engine" in self.__dict__:
            self.engine.dispose()
