from __future__ import annotations

from datetime import timedelta

import pytest

from authkeeper.application.services.password_hashing import (
    Sha256PasswordHasher,
    WerkzeugPasswordHasher,
)
from authkeeper.container import Container
from authkeeper.shared.config import AppConfig, SecurityConfig

_ENV_KEYS = (
    "APP_ENV",
    "DATABASE_URL",
    "PASSWORD_HASHER",
    "REQUIRE_RESET_TOKEN",
    "SESSION_TTL_SECONDS",
    "MONITOR_INTERVAL_SECONDS",
    "MONITOR_ABORT_ON_STORE_FAILURE",
    "DEBUG_LOGGING",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    # keep a developer's .env out of the picture
    monkeypatch.chdir(tmp_path)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def test_defaults() -> None:
    config = AppConfig()

    assert config.is_production() is False
    assert config.database.url == "sqlite:///authkeeper.db"
    assert config.sessions.ttl == timedelta(hours=3)
    assert config.sessions.reset_token_ttl == timedelta(hours=3)
    assert config.sessions.token_bytes == 32
    assert config.sessions.default_ip_address == "127.0.0.1"
    assert config.monitor.interval_seconds == 60.0
    assert config.monitor.abort_on_store_failure is False
    assert config.security.password_hasher == "scrypt"
    assert config.security.require_reset_token is False


def test_environment_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "sqlite:///other.db")
    monkeypatch.setenv("SESSION_TTL_SECONDS", "60")
    monkeypatch.setenv("MONITOR_INTERVAL_SECONDS", "5")
    monkeypatch.setenv("MONITOR_ABORT_ON_STORE_FAILURE", "yes")
    monkeypatch.setenv("REQUIRE_RESET_TOKEN", "1")

    config = AppConfig()

    assert config.database.url == "sqlite:///other.db"
    assert config.sessions.ttl == timedelta(minutes=1)
    assert config.monitor.interval_seconds == 5.0
    assert config.monitor.abort_on_store_failure is True
    assert config.security.require_reset_token is True


def test_production_refuses_unsalted_hasher(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_ENV", "production")
    monkeypatch.setenv("PASSWORD_HASHER", "sha256")

    with pytest.raises(SystemExit):
        AppConfig()


def test_production_warns_about_weak_settings(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv("APP_ENV", "prod")

    config = AppConfig()

    assert config.is_production()
    err = capsys.readouterr().err
    assert "SQLite database in production" in err
    assert "does not require the emailed token" in err


@pytest.mark.parametrize(
    ("scheme", "expected"),
    [("scrypt", WerkzeugPasswordHasher), ("sha256", Sha256PasswordHasher)],
)
def test_container_picks_configured_hasher(scheme: str, expected: type) -> None:
    config = AppConfig().model_copy(
        update={"security": SecurityConfig(password_hasher=scheme)}
    )

    assert isinstance(Container(config).password_hasher, expected)


def test_container_wires_session_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONITOR_INTERVAL_SECONDS", "2.5")
    container = Container(AppConfig())

    monitor = container.session_monitor

    assert monitor.interval == 2.5
    container.close()
