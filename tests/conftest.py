"""Shared pytest fixtures for pjledger tests."""

import tempfile
import os
from datetime import date
from decimal import Decimal
import pytest

from pjledger.database.factories import create_sqlite_database
from pjledger.domain.account import AccountService
from pjledger.domain.category import CategoryService
from pjledger.domain.entities import CategoryDefinition, LedgerGroup, Transaction
from pjledger.domain.reconciliation import ReconciliationService
from pjledger.domain.report import ReportService
from pjledger.domain.rules import RuleService
from pjledger.domain.sale import SaleService
from pjledger.domain.statement_import import StatementImportService
from pjledger.domain.transaction import TransactionService

CLIENT = "default"


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for CLI tests
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def account_service(temp_db):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db)


@pytest.fixture
def category_service(temp_db):
    """Create a CategoryService with a temporary database."""
    return CategoryService(temp_db)


@pytest.fixture
def transaction_service(temp_db):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db)


@pytest.fixture
def rule_service(temp_db):
    """Create a RuleService with a temporary database."""
    return RuleService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a StatementImportService with a temporary database."""
    return StatementImportService(temp_db)


@pytest.fixture
def sale_service(temp_db):
    """Create a SaleService with a temporary database."""
    return SaleService(temp_db)


@pytest.fixture
def reconciliation_service(temp_db):
    """Create a ReconciliationService with a temporary database."""
    return ReconciliationService(temp_db)


@pytest.fixture
def report_service(temp_db):
    """Create a ReportService with a temporary database."""
    return ReportService(temp_db, max_workers=2)


@pytest.fixture
def sample_account(account_service):
    """Create a sample account for testing."""
    account_id = account_service.create_account(
        client_id=CLIENT, name="Operating", bank_name="Test Bank"
    )
    return account_service.get_account(account_id)


@pytest.fixture
def second_account(account_service):
    """Create a second account of the same client."""
    account_id = account_service.create_account(
        client_id=CLIENT, name="Savings", bank_name="Test Bank"
    )
    return account_service.get_account(account_id)


@pytest.fixture
def sample_categories(category_service):
    """Create the default category plan for the test client and return its paths."""
    from pjledger.cli.commands.category import DEFAULT_CATEGORIES

    paths = []
    for position, (label, parent_path, accepts_postings) in enumerate(DEFAULT_CATEGORIES):
        paths.append(
            category_service.create_category(
                label=label,
                client_id=CLIENT,
                parent_path=parent_path,
                sort_order=position,
                accepts_postings=accepts_postings,
            )
        )
    return paths


@pytest.fixture
def write_csv(tmp_path):
    """Write CSV statement rows to a file and return its path."""

    def _write(rows, name="statement.csv", header="Date,Amount,Description,FITID"):
        path = tmp_path / name
        path.write_text(header + "\n" + "\n".join(rows) + "\n", encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def make_txn(amount, day=date(2024, 3, 10), txn_id=None, account_id=1, **kwargs):
    """Build an unsaved transaction for engine tests."""
    return Transaction(
        id=txn_id,
        account_id=account_id,
        date=day,
        amount=Decimal(str(amount)),
        **kwargs,
    )


def make_definition(path, parent_path, group, label=None, level=1, accepts_postings=True,
                    sort_order=0):
    """Build a category definition for engine tests."""
    return CategoryDefinition(
        id=path,
        label=label or path.rsplit(".", 1)[-1].title(),
        path=path,
        level=level,
        sort_order=sort_order,
        parent_path=parent_path,
        accepts_postings=accepts_postings,
        ledger_group=group,
    )


@pytest.fixture
def plan_definitions():
    """Small chart of accounts: GENERAL_ADMIN > Occupancy (no postings) > Rent."""
    return [
        make_definition(
            "GENERAL_ADMIN.OCCUPANCY",
            "GENERAL_ADMIN",
            LedgerGroup.GENERAL_ADMIN,
            label="Occupancy",
            accepts_postings=False,
        ),
        make_definition(
            "GENERAL_ADMIN.OCCUPANCY.RENT",
            "GENERAL_ADMIN.OCCUPANCY",
            LedgerGroup.GENERAL_ADMIN,
            label="Rent",
            level=2,
        ),
        make_definition(
            "REVENUE.PRODUCT_SALES",
            "REVENUE",
            LedgerGroup.REVENUE,
            label="Product Sales",
        ),
    ]

