"""Tests for account service and commands."""

import pytest

from pjledger.cli.main import cli
from pjledger.domain.errors import ConflictError, NotFoundError


def test_create_and_get_account(account_service):
    account_id = account_service.create_account("default", "Operating", "Itau")
    account = account_service.get_account(account_id)
    assert account.name == "Operating"
    assert account.bank_name == "Itau"
    assert account.client_id == "default"


def test_account_names_are_unique_per_client(account_service):
    account_service.create_account("default", "Operating", "Itau")
    with pytest.raises(ConflictError):
        account_service.create_account("default", "Operating", "Bradesco")
    # Another client may reuse the name
    account_service.create_account("acme", "Operating", "Itau")
    assert len(account_service.list_accounts("acme")) == 1


def test_resolve_account_by_name_or_id(account_service, sample_account):
    assert account_service.resolve_account("default", "Operating") == sample_account.id
    assert account_service.resolve_account("default", str(sample_account.id)) == sample_account.id
    with pytest.raises(NotFoundError):
        account_service.resolve_account("default", "Missing")
    with pytest.raises(NotFoundError):
        account_service.resolve_account("acme", sample_account.id)


def test_resolve_accounts_defaults_to_all(account_service, sample_account, second_account):
    assert account_service.resolve_accounts("default") == [sample_account.id, second_account.id]
    assert account_service.resolve_accounts("default", ("Savings", "Savings")) == [
        second_account.id
    ]


def test_account_create_with_bank(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Operating", "--bank", "Itau"]
    )

    assert result.exit_code == 0
    assert "Created account 'Operating'" in result.output
    assert "ID:" in result.output


def test_account_create_without_bank(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "create", "Itau"])

    assert result.exit_code == 0
    assert "Bank name set to 'Itau'" in result.output


def test_account_create_duplicate(cli_runner, temp_db, sample_account):
    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "account", "create", "Operating"]
    )
    assert result.exit_code == 1
    assert "already exists" in result.output


def test_account_list_empty(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert result.exit_code == 0
    assert "No accounts found" in result.output


def test_account_list_is_scoped_to_client(cli_runner, temp_db, sample_account):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "account", "list"])
    assert "Operating" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "--client", "acme", "account", "list"]
    )
    assert "No accounts found" in result.output
