"""Reconciliation domain service."""

import logging
from datetime import timedelta
from typing import Optional

from pjledger.database.base import Database
from pjledger.domain.entities import MatchConfirmation, MatchSuggestion
from pjledger.domain.errors import (
    NotFoundError,
    ValidationError,
    sale_leg_not_found,
    transaction_not_found,
)
from pjledger.domain.settlement import (
    DEFAULT_MATCH_WINDOW_DAYS,
    confirm_match,
    suggest_matches,
)

logger = logging.getLogger(__name__)


class ReconciliationService:
    """Service for matching sale settlement parcels with bank deposits."""

    def __init__(self, db: Database, window_days: int = DEFAULT_MATCH_WINDOW_DAYS):
        """Initialize reconciliation service.

        Args:
            db: Database instance
            window_days: Maximum distance in days between due date and deposit
        """
        self.db = db
        self.window_days = window_days

    def _client_account_ids(self, leg_id: int) -> list[int]:
        client_id = self.db.get_sale_leg_client(leg_id)
        return [acc.id for acc in self.db.list_accounts(client_id=client_id)]

    def suggest(self, leg_id: int) -> list[MatchSuggestion]:
        """Suggest bank deposits for the open parcels of a sale leg.

        Returns:
            Suggestions, best score first

        Raises:
            NotFoundError: If the leg doesn't exist
        """
        leg = self.db.get_sale_leg(leg_id)
        if leg is None:
            raise NotFoundError(sale_leg_not_found(leg_id))

        open_parcels = [p for p in leg.settlement_plan if not p.is_matched]
        if not open_parcels:
            return []

        window = timedelta(days=self.window_days)
        candidates = self.db.list_transactions(
            account_ids=self._client_account_ids(leg_id),
            start_date=min(p.due_date for p in open_parcels) - window,
            end_date=max(p.due_date for p in open_parcels) + window,
            unreconciled_only=True,
        )
        return suggest_matches(open_parcels, candidates, window_days=self.window_days)

    def confirm(
        self,
        leg_id: int,
        parcel_n: int,
        transaction_id: int,
        note: Optional[str] = None,
    ) -> MatchConfirmation:
        """Confirm that a bank transaction settles one parcel of a leg.

        Returns:
            MatchConfirmation with the stored leg and transaction

        Raises:
            NotFoundError: If the leg, parcel or transaction doesn't exist
            ValidationError: If the transaction belongs to another client
            ConflictError: If the transaction or the parcel is already matched
        """
        leg = self.db.get_sale_leg(leg_id)
        if leg is None:
            raise NotFoundError(sale_leg_not_found(leg_id))
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        if txn.account_id not in self._client_account_ids(leg_id):
            raise ValidationError(
                f"Transaction {transaction_id} does not belong to the sale's client"
            )

        confirmation = confirm_match(leg, parcel_n, txn, note=note)
        self.db.save_match_confirmation(confirmation)
        logger.info(
            "Leg %s parcel %d settled by transaction %s (%s)",
            leg_id,
            parcel_n,
            transaction_id,
            confirmation.leg.reconciliation_state.value,
        )
        return confirmation
