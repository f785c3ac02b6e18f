"""Tests for environment-based settings."""

import pytest

from pjledger import config
from pjledger.config import Settings
from pjledger.domain.errors import ValidationError

ENV_VARS = (
    "PJLEDGER_DB_PATH",
    "PJLEDGER_CLIENT",
    "PJLEDGER_LOG_LEVEL",
    "PJLEDGER_MATCH_WINDOW_DAYS",
    "PJLEDGER_REPORT_WORKERS",
    "PJLEDGER_INSIGHTS_HISTORY",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    settings = Settings.from_env()
    assert settings == Settings()
    assert settings.client_id == "default"
    assert settings.match_window_days == 3
    assert settings.report_workers == 4


def test_values_from_environment(monkeypatch):
    monkeypatch.setenv("PJLEDGER_DB_PATH", "/tmp/books.db")
    monkeypatch.setenv("PJLEDGER_CLIENT", "acme")
    monkeypatch.setenv("PJLEDGER_LOG_LEVEL", "debug")
    monkeypatch.setenv("PJLEDGER_MATCH_WINDOW_DAYS", "5")
    monkeypatch.setenv("PJLEDGER_REPORT_WORKERS", "2")
    monkeypatch.setenv("PJLEDGER_INSIGHTS_HISTORY", "12")

    settings = Settings.from_env()

    assert settings.database_path == "/tmp/books.db"
    assert settings.client_id == "acme"
    assert settings.log_level == "DEBUG"
    assert settings.match_window_days == 5
    assert settings.report_workers == 2
    assert settings.insights_history_months == 12
    assert settings.resolved_database_path() == "/tmp/books.db"


@pytest.mark.parametrize(
    "name, value",
    [
        ("PJLEDGER_MATCH_WINDOW_DAYS", "three"),
        ("PJLEDGER_MATCH_WINDOW_DAYS", "-1"),
        ("PJLEDGER_REPORT_WORKERS", "0"),
        ("PJLEDGER_LOG_LEVEL", "LOUD"),
    ],
)
def test_invalid_values_raise(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValidationError, match=name):
        Settings.from_env()


def test_default_database_path_creates_directory(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "DEFAULT_DB_DIR", tmp_path / ".pjledger")
    path = Settings().resolved_database_path()
    assert path == str(tmp_path / ".pjledger" / "pjledger.db")
    assert (tmp_path / ".pjledger").is_dir()
