"""Tests for category service and commands."""

import pytest

from pjledger.cli.commands.category import DEFAULT_CATEGORIES
from pjledger.cli.main import cli
from pjledger.domain.category import make_path
from pjledger.domain.entities import LedgerGroup
from pjledger.domain.errors import ConflictError, NotFoundError, ValidationError


def test_make_path():
    assert make_path("GENERAL_ADMIN", "Água e Luz") == "GENERAL_ADMIN.AGUA_E_LUZ"
    with pytest.raises(ValidationError):
        make_path("GENERAL_ADMIN", "!!")


def test_create_category_under_group_root(category_service):
    path = category_service.create_category(
        "Payroll", client_id="default", ledger_group=LedgerGroup.GENERAL_ADMIN
    )
    assert path == "GENERAL_ADMIN.PAYROLL"

    category = category_service.get_category_by_path(path, client_id="default")
    assert category.level == 1
    assert category.parent_path == "GENERAL_ADMIN"
    assert category.ledger_group == LedgerGroup.GENERAL_ADMIN


def test_create_nested_category_inherits_group(category_service):
    parent = category_service.create_category(
        "Occupancy",
        client_id="default",
        ledger_group=LedgerGroup.GENERAL_ADMIN,
        accepts_postings=False,
    )
    child = category_service.create_category("Rent", client_id="default", parent_path=parent)

    rent = category_service.get_category_by_path(child, client_id="default")
    assert child == "GENERAL_ADMIN.OCCUPANCY.RENT"
    assert rent.level == 2
    assert rent.ledger_group == LedgerGroup.GENERAL_ADMIN
    assert not category_service.get_category_by_path(parent, client_id="default").accepts_postings


def test_create_category_validation(category_service):
    with pytest.raises(ValidationError, match="required"):
        category_service.create_category("Loose", client_id="default")
    with pytest.raises(NotFoundError):
        category_service.create_category("Orphan", client_id="default", parent_path="OTHER.NOPE")
    with pytest.raises(ValidationError, match="does not match"):
        category_service.create_category(
            "Mixed", client_id="default", ledger_group=LedgerGroup.FINANCIAL, parent_path="OTHER"
        )


def test_duplicate_category_is_a_conflict(category_service):
    category_service.create_category("Fees", client_id="default", ledger_group=LedgerGroup.FINANCIAL)
    with pytest.raises(ConflictError):
        category_service.create_category(
            "fees", client_id="default", ledger_group=LedgerGroup.FINANCIAL
        )


def test_client_categories_shadow_global_ones(category_service):
    category_service.create_category("Fees", ledger_group=LedgerGroup.FINANCIAL)
    category_service.create_category(
        "Fees", client_id="acme", ledger_group=LedgerGroup.FINANCIAL, sort_order=5
    )

    acme = {c.path: c for c in category_service.list_categories("acme")}
    other = {c.path: c for c in category_service.list_categories("default")}

    assert acme["FINANCIAL.FEES"].sort_order == 5
    assert other["FINANCIAL.FEES"].sort_order == 0


def test_category_index_contains_plan(category_service, sample_categories):
    index = category_service.get_category_index("default")
    assert len(index) == len(LedgerGroup) + len(DEFAULT_CATEGORIES)
    assert index.get("GENERAL_ADMIN.OCCUPANCY.RENT").level == 2
    index.validate()


def test_category_init_and_list(cli_runner, temp_db):
    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])
    assert "No categories found" in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "init"])
    assert result.exit_code == 0
    assert f"Successfully created {len(DEFAULT_CATEGORIES)} categories." in result.output

    result = cli_runner.invoke(cli, ["--db-path", temp_db.database_path, "category", "list"])
    assert result.exit_code == 0
    assert "Occupancy [group] (GENERAL_ADMIN.OCCUPANCY)" in result.output
    assert "Rent (GENERAL_ADMIN.OCCUPANCY.RENT)" in result.output


def test_category_create_command(cli_runner, temp_db):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "category", "create", "Ads", "--group", "commercial_marketing"],
    )
    assert result.exit_code == 0
    assert "Created category 'Ads' (COMMERCIAL_MARKETING.ADS)" in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "category", "create", "Loose"]
    )
    assert result.exit_code == 1
    assert "required" in result.output
