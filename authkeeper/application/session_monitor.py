# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Background reclamation of expired sessions."""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import datetime

from authkeeper.application.session_manager import SessionManager, utcnow
from authkeeper.domain.exceptions import StoreUnavailableError
from authkeeper.domain.repositories import CredentialStore
from authkeeper.shared.errors.base import AppError
from authkeeper.shared.logging import correlation_scope, logger

SWEEP_INTERVAL_SECONDS = 60.0


class SessionMonitor:
    """Periodically ends sessions whose expiry has passed.

    Lifecycle is ``start()`` then ``stop()``; ``stop()`` wakes the worker out
    of its wait and joins it. ``sweep_once()`` can be called directly.
    """

    def __init__(
        self,
        *,
        store: CredentialStore,
        manager: SessionManager,
        interval: float = SWEEP_INTERVAL_SECONDS,
        abort_on_store_failure: bool = False,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._manager = manager
        self._interval = interval
        self._abort_on_store_failure = abort_on_store_failure
        self._clock = clock
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self._sweeps = 0

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    @property
    def sweeps(self) -> int:
        return self._sweeps

    @property
    def interval(self) -> float:
        return self._interval

    def start(self) -> None:
        if self.is_running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="session-monitor", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        thread = self._thread
        if thread is None:
            return
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("monitor: worker did not stop within timeout")
            return
        self._thread = None

    def __enter__(self) -> SessionMonitor:
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def sweep_once(self) -> int:
        now = self._clock()
        with self._store.transaction() as tx:
            expired = tx.find_expired_open_sessions(now)
        closed = 0
        for item in expired:
            outcome = self._manager.end_session(item.token)
            if isinstance(outcome.error, StoreUnavailableError):
                raise outcome.error
            if not outcome.ok:
                logger.warning(
                    f"monitor: could not end session for user={item.username} ({outcome.code})"
                )
                continue
            if outcome.value:
                closed += 1
                logger.info(f"monitor: ended expired session for user={item.username}")
        return closed

    def _run(self) -> None:
        logger.info(f"monitor: start (interval={self._interval}s)")
        try:
            while not self._stop.is_set():
                self._sweeps += 1
                with correlation_scope(f"sweep-{self._sweeps}"):
                    try:
                        closed = self.sweep_once()
                        if closed:
                            logger.info(f"monitor: sweep closed {closed} session(s)")
                    except StoreUnavailableError:
                        logger.exception("monitor: credential store unavailable")
                        if self._abort_on_store_failure:
                            logger.error("monitor: aborting after store failure")
                            return
                    except AppError as exc:
                        logger.error(f"monitor: sweep failed ({exc.code})")
                    except Exception:
                        logger.exception("monitor: unexpected sweep failure")
                self._stop.wait(self._interval)
        finally:
            logger.info("monitor: stop")
