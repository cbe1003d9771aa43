# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from datetime import timedelta
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_SECTION_CONFIG = SettingsConfigDict(
    env_file=".env",
    env_file_encoding="utf-8",
    extra="ignore",
    validate_by_name=True,
)


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


class DatabaseConfig(BaseSettings):
    url: str = Field("sqlite:///authkeeper.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")
    echo: bool = Field(False, alias="DATABASE_ECHO")

    model_config = _SECTION_CONFIG

    @field_validator("echo", mode="before")
    @classmethod
    def _parse_echo(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class SessionConfig(BaseSettings):
    ttl_seconds: int = Field(3 * 60 * 60, ge=1, alias="SESSION_TTL_SECONDS")
    reset_token_ttl_seconds: int = Field(3 * 60 * 60, ge=1, alias="RESET_TOKEN_TTL_SECONDS")
    token_bytes: int = Field(32, ge=16, le=128, alias="TOKEN_BYTES")
    default_ip_address: str = Field("127.0.0.1", alias="DEFAULT_IP_ADDRESS")

    model_config = _SECTION_CONFIG

    @property
    def ttl(self) -> timedelta:
        return timedelta(seconds=self.ttl_seconds)

    @property
    def reset_token_ttl(self) -> timedelta:
        return timedelta(seconds=self.reset_token_ttl_seconds)


class MonitorConfig(BaseSettings):
    interval_seconds: float = Field(60.0, gt=0, alias="MONITOR_INTERVAL_SECONDS")
    abort_on_store_failure: bool = Field(False, alias="MONITOR_ABORT_ON_STORE_FAILURE")

    model_config = _SECTION_CONFIG

    @field_validator("abort_on_store_failure", mode="before")
    @classmethod
    def _parse_abort(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class SecurityConfig(BaseSettings):
    # "sha256" is the legacy unsalted digest
    password_hasher: Literal["scrypt", "sha256"] = Field("scrypt", alias="PASSWORD_HASHER")
    password_hash_method: str = Field("scrypt", alias="PASSWORD_HASH_METHOD")
    require_reset_token: bool = Field(False, alias="REQUIRE_RESET_TOKEN")

    model_config = _SECTION_CONFIG

    @field_validator("require_reset_token", mode="before")
    @classmethod
    def _parse_require(cls, value: str | bool) -> bool:
        return _parse_bool(value)


def _database_config_factory() -> DatabaseConfig:
    return DatabaseConfig()  # type: ignore[call-arg]


def _session_config_factory() -> SessionConfig:
    return SessionConfig()  # type: ignore[call-arg]


def _monitor_config_factory() -> MonitorConfig:
    return MonitorConfig()  # type: ignore[call-arg]


def _security_config_factory() -> SecurityConfig:
    return SecurityConfig()  # type: ignore[call-arg]


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    log_file: str | None = Field(None, alias="LOG_FILE")

    database: DatabaseConfig = Field(default_factory=_database_config_factory)
    sessions: SessionConfig = Field(default_factory=_session_config_factory)
    monitor: MonitorConfig = Field(default_factory=_monitor_config_factory)
    security: SecurityConfig = Field(default_factory=_security_config_factory)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
        validate_assignment=True,
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.security.password_hasher == "sha256":
            print(
                "\n❌ CRITICAL SECURITY ERROR: unsalted PASSWORD_HASHER=sha256 in production!\n"
                "   Use PASSWORD_HASHER=scrypt so every digest carries its own salt.\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if not self.security.require_reset_token:
            warnings.append("⚠️  Password reset does not require the emailed token")
        if self.database.url.startswith("sqlite"):
            warnings.append("⚠️  SQLite database in production")
        if self.debug_logging:
            warnings.append("⚠️  DEBUG_LOGGING is enabled")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print(
                "   Consider tightening these settings in production.\n",
                file=sys.stderr,
            )

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "MonitorConfig",
    "SecurityConfig",
    "SessionConfig",
    "load_config",
]
