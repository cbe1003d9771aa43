# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from authkeeper.shared.errors.base import AppError

T = TypeVar("T")


@dataclass(slots=True, frozen=True)
class Outcome(Generic[T]):
    """Result of a caller-facing operation: a value or the error that stopped it."""

    ok: bool
    value: T | None = None
    error: AppError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Outcome[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: AppError) -> Outcome[T]:
        return cls(ok=False, error=error)

    @property
    def code(self) -> str | None:
        return self.error.code if self.error else None

    @property
    def reason(self) -> str:
        return self.error.reason if self.error else ""

    def __bool__(self) -> bool:
        return self.ok

    def to_dict(self) -> dict[str, Any]:
        if self.error is not None:
            return {"ok": False, **self.error.to_dict()}
        return {"ok": True}
