"""Statement import domain service."""

import logging
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from pjledger.database.base import Database
from pjledger.domain.classifier import apply_categorization_rules
from pjledger.domain.entities import Transaction
from pjledger.domain.errors import (
    ConflictError,
    NotFoundError,
    account_not_found,
    statement_already_imported,
)
from pjledger.domain.ingestion import ingest_statement
from pjledger.utils.statement_reader import file_sha256, read_csv_statement

logger = logging.getLogger(__name__)


class StatementImportService:
    """Service for importing bank statement files."""

    def __init__(self, db: Database):
        """Initialize statement import service.

        Args:
            db: Database instance
        """
        self.db = db

    def import_statement(
        self,
        client_id: str,
        file_path: str,
        account_id: int,
        opening_balance: Optional[Decimal] = None,
        closing_balance: Optional[Decimal] = None,
        dayfirst: bool = False,
    ) -> dict[str, Any]:
        """Import transactions from a statement file.

        The file is rejected as a whole if any entry fails to parse. Enabled
        categorization rules are applied to the new transactions before they
        are stored.

        Args:
            client_id: Client importing the file
            file_path: Path to the statement file
            account_id: Account the statement belongs to
            opening_balance: Balance before the statement, for the balance check
            closing_balance: Closing balance reported by the bank
            dayfirst: Read ambiguous numeric dates as day/month

        Returns:
            Dict with import statistics:
            - imported: number of transactions imported
            - skipped: number of duplicates skipped
            - categorized: number of new transactions classified by rules
            - warnings: list of ValidationWarning

        Raises:
            NotFoundError: If the account doesn't belong to the client
            ConflictError: If the same file was already imported for the client
            ParseError: If any entry cannot be parsed
            FileNotFoundError: If the file doesn't exist
        """
        account = self.db.get_account(account_id)
        if account is None or account.client_id != client_id:
            raise NotFoundError(account_not_found(account_id))

        path = Path(file_path)
        if not path.exists():
            raise FileNotFoundError(f"Statement file not found: {file_path}")

        file_hash = file_sha256(path)
        if self.db.statement_imported(client_id, file_hash):
            raise ConflictError(statement_already_imported(file_hash))

        sections = read_csv_statement(
            path,
            account_label=account.name,
            opening_balance=opening_balance,
            closing_balance=closing_balance,
        )

        existing = self.db.list_transactions(account_ids=[account_id])
        pending: list[Transaction] = []
        skipped = 0
        warnings = []
        for section in sections:
            result = ingest_statement(
                section,
                existing=existing,
                pending=pending,
                account_id=account_id,
                source_hash=file_hash,
                dayfirst=dayfirst,
            )
            pending.extend(result.accepted)
            skipped += result.duplicates
            warnings.extend(result.warnings)

        rules = self.db.list_rules(client_id, enabled_only=True)
        to_store: list[Transaction] = []
        categorized = 0
        for txn in pending:
            changed = apply_categorization_rules([txn], rules)
            if changed:
                categorized += 1
                txn = changed[0]
            to_store.append(txn)

        self.db.record_statement_import(
            client_id=client_id,
            account_id=account_id,
            file_name=path.name,
            file_hash=file_hash,
            transactions=to_store,
            skipped_count=skipped,
        )
        logger.info(
            "Imported %s into account %s: %d new, %d duplicates, %d categorized",
            path.name,
            account_id,
            len(to_store),
            skipped,
            categorized,
        )
        return {
            "imported": len(to_store),
            "skipped": skipped,
            "categorized": categorized,
            "warnings": warnings,
        }
