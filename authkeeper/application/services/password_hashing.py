"""Password hashing strategies."""

from __future__ import annotations

import hashlib

from werkzeug.security import check_password_hash, generate_password_hash

from authkeeper.domain.repositories import PasswordHasher


def constant_time_compare(a: str, b: str) -> bool:
    """Compare two strings without short-circuiting on the first difference.

    Inputs of different length compare unequal straight away; the length of a
    digest is not secret. For equal lengths every byte pair is visited.
    """

    left = a.encode("utf-8")
    right = b.encode("utf-8")
    if len(left) != len(right):
        return False
    result = 0
    for x, y in zip(left, right):
        result |= x ^ y
    return result == 0


class Sha256PasswordHasher(PasswordHasher):
    """Unsalted SHA-256 hex digest, kept for stores created with it."""

    def hash(self, password: str) -> str:
        return hashlib.sha256(password.encode("utf-8")).hexdigest()

    def verify(self, password: str, hashed: str) -> bool:
        return constant_time_compare(self.hash(password), hashed)


class WerkzeugPasswordHasher(PasswordHasher):
    def __init__(self, method: str = "scrypt") -> None:
        self._method = method

    def hash(self, password: str) -> str:
        return str(generate_password_hash(password, method=self._method))

    def verify(self, password: str, hashed: str) -> bool:
        return bool(check_password_hash(hashed, password))


def build_password_hasher(scheme: str, *, method: str = "scrypt") -> PasswordHasher:
    if scheme == "sha256":
        return Sha256PasswordHasher()
    if scheme == "scrypt":
        return WerkzeugPasswordHasher(method=method)
    raise ValueError(f"unknown password hasher: {scheme}")
