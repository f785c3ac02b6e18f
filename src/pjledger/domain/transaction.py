"""Transaction domain service."""

from dataclasses import replace
from typing import Optional, Sequence
from datetime import date
from decimal import Decimal

from pjledger.database.base import Database
from pjledger.domain.category import CategoryService
from pjledger.domain.entities import (
    CENT,
    LedgerGroup,
    ManualClassification,
    Transaction as TransactionEntity,
)
from pjledger.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    category_path_not_found,
    transaction_not_found,
)


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db: Database):
        """Initialize transaction service.

        Args:
            db: Database instance
        """
        self.db = db
        self.category_service = CategoryService(db)

    def create_transaction(
        self,
        account_id: int,
        date: date,
        amount: Decimal,
        description: str = "",
        external_id: Optional[str] = None,
        legacy_category: Optional[str] = None,
        legacy_item: Optional[str] = None,
    ) -> int:
        """Create a transaction.

        Args:
            account_id: Account ID
            date: Transaction date
            amount: Signed amount; positive is money in
            description: Bank description
            external_id: Identifier assigned by the bank (FITID)
            legacy_category: Free-text category label from an older system
            legacy_item: Free-text item label from an older system

        Returns:
            Transaction ID

        Raises:
            NotFoundError: If account doesn't exist
        """
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        txn = TransactionEntity(
            id=None,
            account_id=account_id,
            date=date,
            amount=Decimal(amount).quantize(CENT),
            description=description or "",
            external_id=external_id,
            legacy_category=legacy_category,
            legacy_item=legacy_item,
        )
        return self.db.create_transactions([txn])[0]

    def get_transaction(self, transaction_id: int) -> Optional[TransactionEntity]:
        """Get transaction by ID."""
        return self.db.get_transaction(transaction_id)

    def list_transactions(
        self,
        account_ids: Optional[Sequence[int]] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[TransactionEntity]:
        """List transactions with optional account and date filters."""
        return self.db.list_transactions(
            account_ids=account_ids, start_date=start_date, end_date=end_date
        )

    def categorize(
        self,
        transaction_id: int,
        client_id: Optional[str] = None,
        ledger_group: Optional[LedgerGroup] = None,
        category_path: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> TransactionEntity:
        """Classify a transaction by hand.

        The group defaults to the category's group when only a category is
        given. Manual classifications are never overwritten by rules.

        Returns:
            Updated transaction

        Raises:
            NotFoundError: If the transaction or the category doesn't exist
            ValidationError: If neither group nor category is given, or they disagree
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))

        category_id = None
        if category_path is not None:
            index = self.category_service.get_category_index(client_id)
            definition = index.get(category_path)
            if definition is None:
                raise NotFoundError(category_path_not_found(category_path))
            if ledger_group is not None and ledger_group != definition.ledger_group:
                raise ValidationError(
                    f"Category '{category_path}' belongs to {definition.ledger_group.value}, "
                    f"not {ledger_group.value}"
                )
            ledger_group = definition.ledger_group
            category_id = definition.id

        if ledger_group is None:
            raise ValidationError("A ledger group or a category is required")

        updated = replace(
            txn,
            classification=ManualClassification(
                ledger_group=ledger_group,
                category_id=category_id,
                category_path=category_path,
                subcategory=subcategory,
            ),
        )
        self.db.update_classifications([updated])
        return updated
