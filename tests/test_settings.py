"""Tests for service settings (settings.py)."""

import pytest
from pydantic import ValidationError

from opa_console.settings import Settings


def test_missing_opa_server_url_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    """Without OPA_SERVER_URL the settings cannot be built at all."""
    monkeypatch.delenv("OPA_SERVER_URL", raising=False)

    with pytest.raises(ValidationError):
        Settings()


def test_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPA_SERVER_URL", "http://opa.internal:8181/")
    monkeypatch.setenv("OPA_CONSOLE_SYNC_TIMEOUT_SECONDS", "2.5")
    monkeypatch.setenv("OPA_CONSOLE_LOG_FORMAT", "console")

    settings = Settings()

    assert settings.opa_server_url == "http://opa.internal:8181"
    assert settings.sync_timeout_seconds == 2.5
    assert settings.log_format == "console"


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("OPA_SERVER_URL", "http://localhost:8181")

    settings = Settings()

    assert settings.sync_timeout_seconds == 10.0
    assert settings.permissions_data_path == "permissions"
    assert settings.log_format == "json"


def test_blank_url_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Settings(opa_server_url="   ")
