"""Tests for statement import service and command."""

from decimal import Decimal

import pytest

from pjledger.cli.main import cli
from pjledger.domain.entities import LedgerGroup, MatchType, RuleClassification
from pjledger.domain.errors import ConflictError, NotFoundError, ParseError

ROWS = [
    "2024-03-01,1200.00,PIX RECEBIDO CLIENTE A,F1",
    "2024-03-02,-89.90,TARIFA PACOTE,F2",
    "2024-03-02,-350.00,BOLETO ENERGIA,F3",
]


def test_import_statement(import_service, transaction_service, sample_account, write_csv):
    result = import_service.import_statement("default", write_csv(ROWS), sample_account.id)

    assert result["imported"] == 3
    assert result["skipped"] == 0
    assert [w.code for w in result["warnings"]] == ["missing_closing_balance"]

    txns = transaction_service.list_transactions(account_ids=[sample_account.id])
    assert [txn.external_id for txn in txns] == ["F1", "F2", "F3"]
    assert txns[1].amount == Decimal("-89.90")
    assert all(txn.source_hash for txn in txns)


def test_same_file_is_rejected(import_service, sample_account, write_csv):
    path = write_csv(ROWS)
    import_service.import_statement("default", path, sample_account.id)
    with pytest.raises(ConflictError, match="already imported"):
        import_service.import_statement("default", path, sample_account.id)


def test_overlapping_statement_skips_duplicates(import_service, sample_account, write_csv):
    import_service.import_statement("default", write_csv(ROWS, name="feb.csv"), sample_account.id)
    overlapping = ROWS[1:] + ["2024-03-04,500.00,PIX RECEBIDO CLIENTE B,F4"]

    result = import_service.import_statement(
        "default", write_csv(overlapping, name="mar.csv"), sample_account.id
    )

    assert result["imported"] == 1
    assert result["skipped"] == 2


def test_rules_apply_to_new_transactions(
    import_service, rule_service, transaction_service, sample_account, write_csv
):
    rule_id = rule_service.add_rule("default", "tarifa", MatchType.CONTAINS, LedgerGroup.FINANCIAL)

    result = import_service.import_statement("default", write_csv(ROWS), sample_account.id)

    assert result["categorized"] == 1
    fee = transaction_service.list_transactions(account_ids=[sample_account.id])[1]
    assert fee.classification == RuleClassification(
        rule_id=rule_id, ledger_group=LedgerGroup.FINANCIAL
    )


def test_balance_divergence_is_a_warning(import_service, sample_account, write_csv):
    result = import_service.import_statement(
        "default",
        write_csv(ROWS),
        sample_account.id,
        opening_balance=Decimal("0"),
        closing_balance=Decimal("1000.00"),
    )
    assert result["imported"] == 3
    assert [w.code for w in result["warnings"]] == ["balance_divergence"]


def test_bad_row_rejects_file(import_service, transaction_service, sample_account, write_csv):
    rows = ROWS + ["2024-03-05,twelve,BROKEN,F9"]
    with pytest.raises(ParseError):
        import_service.import_statement("default", write_csv(rows), sample_account.id)
    assert transaction_service.list_transactions(account_ids=[sample_account.id]) == []


def test_account_of_another_client_is_not_found(import_service, sample_account, write_csv):
    with pytest.raises(NotFoundError):
        import_service.import_statement("acme", write_csv(ROWS), sample_account.id)


def test_missing_file(import_service, sample_account, tmp_path):
    with pytest.raises(FileNotFoundError):
        import_service.import_statement("default", str(tmp_path / "nope.csv"), sample_account.id)


def test_import_command(cli_runner, temp_db, sample_account, write_csv):
    path = write_csv(ROWS)
    result = cli_runner.invoke(
        cli,
        [
            "--db-path", temp_db.database_path,
            "import", path,
            "--account", "Operating",
            "--opening-balance", "0",
            "--closing-balance", "760.10",
        ],
    )

    assert result.exit_code == 0, result.output
    assert "Imported: 3 transactions" in result.output
    assert "Skipped: 0 duplicates" in result.output
    assert "Warnings" not in result.output

    result = cli_runner.invoke(
        cli, ["--db-path", temp_db.database_path, "import", path, "--account", "Operating"]
    )
    assert result.exit_code == 1
    assert "already imported" in result.output


def test_import_command_unknown_account(cli_runner, temp_db, write_csv):
    result = cli_runner.invoke(
        cli,
        ["--db-path", temp_db.database_path, "import", write_csv(ROWS), "--account", "Nope"],
    )
    assert result.exit_code == 1
    assert "Account 'Nope' not found" in result.output
