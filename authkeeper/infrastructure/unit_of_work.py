# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Database unit of work implementation."""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, field

from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.orm import Session

from authkeeper.domain.exceptions import (
    DuplicateKeyError,
    StoreOperationFailedError,
    StoreUnavailableError,
)
from authkeeper.shared.errors.base import AppError, InfrastructureError
from authkeeper.shared.logging import logger

_UNIQUE_MARKERS = ("unique", "duplicate")


def translate_error(exc: SQLAlchemyError) -> InfrastructureError:
    """Map a driver-level failure onto the store error taxonomy."""

    detail = type(exc).__name__
    if isinstance(exc, IntegrityError):
        message = str(exc.orig).lower()
        if any(marker in message for marker in _UNIQUE_MARKERS):
            return DuplicateKeyError(detail)
        return StoreOperationFailedError(detail)
    if isinstance(exc, (OperationalError, InterfaceError, DisconnectionError)):
        return StoreUnavailableError(detail)
    return StoreOperationFailedError(detail)


@dataclass(slots=True)
class SqlAlchemyUnitOfWork(AbstractContextManager):
    """One transaction: commit on clean exit, rollback on any exception."""

    session_factory: Callable[[], Session]
    _session: Session | None = field(default=None, init=False, repr=False)

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self._session = self.session_factory()
        logger.debug("uow: session opened")
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        assert self._session is not None
        try:
            if exc is None:
                try:
                    self._session.commit()
                except SQLAlchemyError as commit_exc:
                    logger.exception("uow: commit failed, rolling back")
                    self._session.rollback()
                    raise translate_error(commit_exc) from commit_exc
                logger.debug("uow: committed")
            else:
                if isinstance(exc, AppError):
                    logger.debug(f"uow: rollback due to {exc_type.__name__}")
                else:
                    logger.warning(f"uow: rollback due to {exc_type.__name__}")
                try:
                    self._session.rollback()
                except SQLAlchemyError:
                    logger.exception("uow: rollback failed")
        finally:
            self._session.close()
            logger.debug("uow: session closed")
            self._session = None
        if isinstance(exc, SQLAlchemyError):
            raise translate_error(exc) from exc

    @property
    def session(self) -> Session:
        if self._session is None:
            msg = "UnitOfWork session accessed before entering context"
            raise RuntimeError(msg)
        return self._session
