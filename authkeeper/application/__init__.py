# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .outcome import Outcome
from .services.password_hashing import (
    Sha256PasswordHasher,
    WerkzeugPasswordHasher,
    build_password_hasher,
    constant_time_compare,
)
from .services.tokens import SecureTokenGenerator
from .session_manager import SessionManager
from .session_monitor import SessionMonitor

__all__ = [
    "Outcome",
    "Sha256PasswordHasher",
    "WerkzeugPasswordHasher",
    "build_password_hasher",
    "constant_time_compare",
    "SecureTokenGenerator",
    "SessionManager",
    "SessionMonitor",
]
