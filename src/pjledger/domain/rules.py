"""Categorization rule domain service."""

import logging
from typing import Optional, Sequence

from pjledger.database.base import Database
from pjledger.domain.category import CategoryService
from pjledger.domain.classifier import apply_categorization_rules, extract_pattern
from pjledger.domain.entities import (
    CategorizationRule,
    LedgerGroup,
    ManualClassification,
    MatchType,
)
from pjledger.domain.errors import (
    NotFoundError,
    ValidationError,
    category_path_not_found,
    transaction_not_found,
)

logger = logging.getLogger(__name__)


class RuleService:
    """Service for managing and applying categorization rules."""

    def __init__(self, db: Database):
        """Initialize rule service.

        Args:
            db: Database instance
        """
        self.db = db
        self.category_service = CategoryService(db)

    def add_rule(
        self,
        client_id: str,
        pattern: str,
        match_type: MatchType,
        ledger_group: LedgerGroup,
        category_path: Optional[str] = None,
        subcategory: Optional[str] = None,
    ) -> int:
        """Create a categorization rule.

        Returns:
            Rule ID

        Raises:
            ValidationError: If the pattern is empty or the category is in another group
            NotFoundError: If the category doesn't exist
        """
        pattern = (pattern or "").strip()
        if not pattern:
            raise ValidationError("Rule pattern cannot be empty")

        if category_path is not None:
            definition = self.category_service.get_category_index(client_id).get(category_path)
            if definition is None:
                raise NotFoundError(category_path_not_found(category_path))
            if definition.ledger_group != ledger_group:
                raise ValidationError(
                    f"Category '{category_path}' belongs to {definition.ledger_group.value}, "
                    f"not {ledger_group.value}"
                )

        return self.db.create_rule(
            client_id=client_id,
            pattern=pattern,
            match_type=match_type,
            ledger_group=ledger_group,
            category_path=category_path,
            subcategory=subcategory,
        )

    def list_rules(self, client_id: str) -> list[CategorizationRule]:
        """List a client's rules in evaluation order."""
        return self.db.list_rules(client_id)

    def learn_from_transaction(
        self,
        client_id: str,
        transaction_id: int,
        match_type: MatchType = MatchType.CONTAINS,
    ) -> int:
        """Create a rule from a manually classified transaction.

        The pattern is taken from the transaction description.

        Returns:
            Rule ID

        Raises:
            NotFoundError: If the transaction doesn't exist
            ValidationError: If the transaction has no manual classification
        """
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        classification = txn.classification
        if not isinstance(classification, ManualClassification):
            raise ValidationError(
                f"Transaction {transaction_id} must be categorized before a rule can be learned"
            )
        if not txn.description.strip():
            raise ValidationError(f"Transaction {transaction_id} has no description")

        return self.add_rule(
            client_id=client_id,
            pattern=extract_pattern(txn.description, match_type),
            match_type=match_type,
            ledger_group=classification.ledger_group,
            category_path=classification.category_path,
            subcategory=classification.subcategory,
        )

    def apply_rules(
        self, client_id: str, account_ids: Optional[Sequence[int]] = None
    ) -> int:
        """Reclassify a client's transactions with its enabled rules.

        Returns:
            Number of transactions whose classification changed
        """
        rules = self.db.list_rules(client_id, enabled_only=True)
        if not rules:
            return 0
        if account_ids is None:
            account_ids = [acc.id for acc in self.db.list_accounts(client_id=client_id)]
        transactions = self.db.list_transactions(account_ids=account_ids)

        changed = apply_categorization_rules(transactions, rules)
        if changed:
            self.db.update_classifications(changed)
        logger.info("Rules reclassified %d of %d transactions", len(changed), len(transactions))
        return len(changed)
