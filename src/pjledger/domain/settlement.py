"""Settlement plans and reconciliation of bank deposits against them."""

import logging
import re
from dataclasses import replace
from datetime import date, timedelta
from decimal import ROUND_DOWN, Decimal
from typing import Iterable, Optional, Sequence

from dateutil.relativedelta import relativedelta

from pjledger.domain.entities import (
    CENT,
    MatchConfirmation,
    MatchSuggestion,
    ReconciliationState,
    SaleLeg,
    SettlementKind,
    SettlementParcel,
    SettlementRule,
    Transaction,
)
from pjledger.domain.errors import (
    ConflictError,
    NotFoundError,
    parcel_already_settled,
    transaction_already_reconciled,
)

logger = logging.getLogger(__name__)

DEFAULT_RULE = SettlementRule(SettlementKind.DAYS_AFTER, 1)
AMOUNT_TOLERANCE = Decimal("0.01")
DEFAULT_MATCH_WINDOW_DAYS = 3

_DAYS_RULE = re.compile(r"^d\+(\d+)$")
_INSTALLMENT_RULE = re.compile(r"^(?:d\+(\d+))?[_/]?(por_parcela|monthly|installments)$")


def parse_settlement_rule(text: Optional[str]) -> SettlementRule:
    """Parse a payment method's settlement rule.

    ``D+N`` pays out N days after the sale; ``D+N_por_parcela`` (also
    ``D+N/por_parcela``), ``monthly`` or ``installments`` pays one
    installment per month. Anything else falls back to ``D+1``.
    """
    if not text:
        return DEFAULT_RULE
    normalized = text.strip().lower().replace(" ", "")

    match = _INSTALLMENT_RULE.match(normalized)
    if match:
        days = int(match.group(1)) if match.group(1) else 30
        return SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, days)

    match = _DAYS_RULE.match(normalized)
    if match:
        return SettlementRule(SettlementKind.DAYS_AFTER, int(match.group(1)))

    logger.debug("Unrecognized settlement rule %r, using D+1", text)
    return DEFAULT_RULE


def split_installments(net_amount: Decimal, count: int) -> list[Decimal]:
    """Split an amount into ``count`` cent-exact installments.

    Every installment but the last is ``net / count`` truncated to the cent;
    the last absorbs the remainder so the parts sum to ``net_amount``.
    """
    count = max(count, 1)
    net_amount = Decimal(net_amount)
    base = (net_amount / count).quantize(CENT, rounding=ROUND_DOWN)
    parts = [base] * (count - 1)
    parts.append(net_amount - base * (count - 1))
    return parts


def generate_settlement_plan(
    sale_date: date,
    rule: Optional[SettlementRule],
    installments: int,
    net_amount: Decimal,
) -> list[SettlementParcel]:
    """Compute the expected payouts of a sale leg.

    Args:
        sale_date: Date of the sale
        rule: Settlement rule of the payment method (None means D+1)
        installments: Number of installments for monthly rules
        net_amount: Amount expected after fees

    Returns:
        Parcels ordered by installment number
    """
    rule = rule or DEFAULT_RULE

    if rule.kind == SettlementKind.MONTHLY_INSTALLMENTS:
        amounts = split_installments(net_amount, installments)
        return [
            SettlementParcel(
                n=number,
                due_date=sale_date + relativedelta(months=number),
                expected_amount=amount,
            )
            for number, amount in enumerate(amounts, start=1)
        ]

    return [
        SettlementParcel(
            n=1,
            due_date=sale_date + timedelta(days=rule.days),
            expected_amount=Decimal(net_amount),
        )
    ]


def score_match(days_difference: int) -> int:
    """Score a candidate by date distance; an exact date scores 100."""
    return 100 - 10 * days_difference


def suggest_matches(
    parcels: Iterable[SettlementParcel],
    candidates: Iterable[Transaction],
    window_days: int = DEFAULT_MATCH_WINDOW_DAYS,
) -> list[MatchSuggestion]:
    """Score bank deposits against unmatched parcels.

    Only unreconciled, positive transactions within one cent of the expected
    amount and ``window_days`` of the due date qualify.

    Returns:
        Suggestions, best score first
    """
    open_parcels = [parcel for parcel in parcels if not parcel.is_matched]
    pool = [txn for txn in candidates if not txn.reconciled and txn.amount > 0]

    suggestions: list[MatchSuggestion] = []
    for parcel in open_parcels:
        for txn in pool:
            if abs(txn.amount - parcel.expected_amount) >= AMOUNT_TOLERANCE:
                continue
            days = abs((txn.date - parcel.due_date).days)
            if days > window_days:
                continue
            suggestions.append(
                MatchSuggestion(
                    parcel_n=parcel.n,
                    transaction_id=txn.id,
                    date=txn.date,
                    amount=txn.amount,
                    description=txn.description,
                    days_difference=days,
                    score=score_match(days),
                    reason=(
                        f"Amount: {parcel.expected_amount:.2f} | "
                        f"Due: {parcel.due_date.isoformat()} (difference: {days} days)"
                    ),
                )
            )

    suggestions.sort(
        key=lambda s: (-s.score, s.parcel_n, s.date, s.transaction_id or 0)
    )
    return suggestions


def reconciliation_state(parcels: Sequence[SettlementParcel]) -> ReconciliationState:
    """Derive a leg's state from its matched parcel ratio."""
    matched = sum(1 for parcel in parcels if parcel.is_matched)
    if parcels and matched == len(parcels):
        return ReconciliationState.FULLY_MATCHED
    if matched > 0:
        return ReconciliationState.PARTIALLY_MATCHED
    return ReconciliationState.PENDING


def confirm_match(
    leg: SaleLeg,
    parcel_n: int,
    txn: Transaction,
    note: Optional[str] = None,
) -> MatchConfirmation:
    """Mark one parcel and one transaction as mutually matched.

    Args:
        leg: Sale leg owning the parcel
        parcel_n: Installment number of the parcel
        txn: Bank transaction received for it
        note: Optional reconciliation note stored on the leg

    Returns:
        MatchConfirmation with the updated leg and transaction

    Raises:
        NotFoundError: If the leg has no such parcel
        ConflictError: If the transaction is already reconciled or the parcel
            already settled
    """
    parcel = next((p for p in leg.settlement_plan if p.n == parcel_n), None)
    if parcel is None:
        raise NotFoundError(f"Sale leg {leg.id} has no parcel {parcel_n}")
    if txn.reconciled:
        raise ConflictError(transaction_already_reconciled(txn.id))
    if parcel.is_matched:
        raise ConflictError(parcel_already_settled(parcel_n))

    plan = tuple(
        replace(p, received_tx_id=txn.id, received_at=txn.date) if p.n == parcel_n else p
        for p in leg.settlement_plan
    )
    updated_leg = replace(
        leg,
        settlement_plan=plan,
        reconciliation_state=reconciliation_state(plan),
        notes=note if note else leg.notes,
    )
    logger.debug(
        "Matched parcel %d of leg %s with transaction %s", parcel_n, leg.id, txn.id
    )
    return MatchConfirmation(leg=updated_leg, transaction=replace(txn, reconciled=True))
