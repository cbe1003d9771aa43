# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Delivery of password reset tokens."""

from __future__ import annotations

import sys
from typing import TextIO

from authkeeper.domain.repositories import Notifier
from authkeeper.shared.logging import logger


class ConsoleNotifier(Notifier):
    """Writes the reset message to a text stream instead of sending mail."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    def send(self, email: str, token: str) -> None:
        stream = self._stream or sys.stdout
        print(f"Password reset link sent to {email} with token: {token}", file=stream)
        stream.flush()
        logger.info(f"notifier: reset message written for {email}")
