"""Tests for the CLI entry point."""

from pjledger.cli.main import cli


def test_help_lists_commands(cli_runner):
    result = cli_runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("account", "category", "import", "categorize", "rule", "sale", "reconcile", "report"):
        assert command in result.output


def test_client_from_environment(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("PJLEDGER_CLIENT", "acme")
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Main"]
    )
    assert result.exit_code == 0

    monkeypatch.delenv("PJLEDGER_CLIENT")
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert "No accounts found" in result.output


def test_db_path_from_environment(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("PJLEDGER_DB_PATH", temp_db.database_path)
    result = cli_runner.invoke(cli, ["account", "create", "Main"])
    assert result.exit_code == 0
    assert "Created account 'Main'" in result.output


def test_invalid_setting_exits(cli_runner, temp_db, monkeypatch):
    monkeypatch.setenv("PJLEDGER_REPORT_WORKERS", "none")
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert result.exit_code == 1
    assert "PJLEDGER_REPORT_WORKERS must be an integer" in result.output


def test_verbose_flag(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "-v", "account", "list"])
    assert result.exit_code == 0
