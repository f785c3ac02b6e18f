"""Tests for settlement plans and parcel matching."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_txn
from pjledger.domain.entities import (
    ReconciliationState,
    SaleLeg,
    SettlementKind,
    SettlementParcel,
    SettlementRule,
)
from pjledger.domain.errors import ConflictError, NotFoundError
from pjledger.domain.settlement import (
    DEFAULT_RULE,
    confirm_match,
    generate_settlement_plan,
    parse_settlement_rule,
    reconciliation_state,
    score_match,
    split_installments,
    suggest_matches,
)


@pytest.mark.parametrize(
    "text, expected",
    [
        ("D+30", SettlementRule(SettlementKind.DAYS_AFTER, 30)),
        ("d + 2", SettlementRule(SettlementKind.DAYS_AFTER, 2)),
        ("D+30/por_parcela", SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, 30)),
        ("D+30_por_parcela", SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, 30)),
        ("monthly", SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, 30)),
        ("whenever", DEFAULT_RULE),
        (None, DEFAULT_RULE),
    ],
)
def test_parse_settlement_rule(text, expected):
    assert parse_settlement_rule(text) == expected


def test_settlement_rule_str():
    assert str(SettlementRule(SettlementKind.DAYS_AFTER, 2)) == "D+2"
    assert str(SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, 30)) == "D+30/por_parcela"


def test_split_installments_puts_remainder_on_last():
    parts = split_installments(Decimal("100.00"), 3)
    assert parts == [Decimal("33.33"), Decimal("33.33"), Decimal("33.34")]
    assert sum(parts) == Decimal("100.00")


def test_days_after_plan_has_single_parcel():
    plan = generate_settlement_plan(
        date(2024, 3, 1), SettlementRule(SettlementKind.DAYS_AFTER, 2), 1, Decimal("97.50")
    )
    assert plan == [SettlementParcel(n=1, due_date=date(2024, 3, 3), expected_amount=Decimal("97.50"))]


def test_missing_rule_defaults_to_next_day():
    plan = generate_settlement_plan(date(2024, 3, 1), None, 1, Decimal("10.00"))
    assert plan[0].due_date == date(2024, 3, 2)


def test_monthly_plan_is_cent_exact_and_month_aware():
    plan = generate_settlement_plan(
        date(2024, 1, 31),
        SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, 30),
        3,
        Decimal("970.00"),
    )
    assert [p.n for p in plan] == [1, 2, 3]
    assert [p.due_date for p in plan] == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]
    assert sum(p.expected_amount for p in plan) == Decimal("970.00")
    assert plan[-1].expected_amount == Decimal("323.34")


def test_underscore_installment_rule_builds_monthly_plan():
    plan = generate_settlement_plan(
        date(2024, 3, 1),
        parse_settlement_rule("D+30_por_parcela"),
        3,
        Decimal("970.00"),
    )
    assert len(plan) == 3
    assert [p.due_date for p in plan] == [date(2024, 4, 1), date(2024, 5, 1), date(2024, 6, 1)]


def test_score_match():
    assert score_match(0) == 100
    assert score_match(2) == 80


def _parcel(n=1, due=date(2024, 3, 2), amount="100.00", **kwargs):
    return SettlementParcel(n=n, due_date=due, expected_amount=Decimal(amount), **kwargs)


def test_suggest_matches_filters_and_ranks():
    candidates = [
        make_txn("100.00", day=date(2024, 3, 4), txn_id=1, description="LATE"),
        make_txn("100.00", day=date(2024, 3, 2), txn_id=2, description="ON TIME"),
        make_txn("100.00", day=date(2024, 3, 7), txn_id=3, description="TOO LATE"),
        make_txn("100.50", day=date(2024, 3, 2), txn_id=4, description="WRONG AMOUNT"),
        make_txn("-100.00", day=date(2024, 3, 2), txn_id=5, description="OUTFLOW"),
        make_txn("100.00", day=date(2024, 3, 2), txn_id=6, reconciled=True),
    ]

    suggestions = suggest_matches([_parcel()], candidates, window_days=3)

    assert [(s.transaction_id, s.score) for s in suggestions] == [(2, 100), (1, 80)]
    assert suggestions[1].days_difference == 2
    assert "Due: 2024-03-02" in suggestions[0].reason


def test_suggest_matches_skips_settled_parcels():
    parcel = _parcel(received_tx_id=9, received_at=date(2024, 3, 2))
    candidates = [make_txn("100.00", day=date(2024, 3, 2), txn_id=2)]
    assert suggest_matches([parcel], candidates) == []


def test_reconciliation_state():
    assert reconciliation_state([_parcel(1), _parcel(2)]) == ReconciliationState.PENDING
    assert (
        reconciliation_state([_parcel(1, received_tx_id=1), _parcel(2)])
        == ReconciliationState.PARTIALLY_MATCHED
    )
    assert (
        reconciliation_state([_parcel(1, received_tx_id=1), _parcel(2, received_tx_id=2)])
        == ReconciliationState.FULLY_MATCHED
    )


@pytest.fixture
def leg():
    return SaleLeg(
        id=1,
        sale_id=1,
        method="card",
        settlement_rule=SettlementRule(SettlementKind.MONTHLY_INSTALLMENTS, 30),
        installments=2,
        gross_amount=Decimal("200.00"),
        fees=Decimal("0.00"),
        net_amount=Decimal("200.00"),
        settlement_plan=(
            _parcel(1, date(2024, 4, 1)),
            _parcel(2, date(2024, 5, 1)),
        ),
    )


def test_confirm_match_updates_leg_and_transaction(leg):
    txn = make_txn("100.00", day=date(2024, 4, 2), txn_id=10)

    confirmation = confirm_match(leg, 1, txn, note="first payout")

    assert confirmation.transaction.reconciled
    assert confirmation.leg.reconciliation_state == ReconciliationState.PARTIALLY_MATCHED
    assert confirmation.leg.matched_parcels == 1
    assert confirmation.leg.settlement_plan[0].received_tx_id == 10
    assert confirmation.leg.settlement_plan[0].received_at == date(2024, 4, 2)
    assert confirmation.leg.notes == "first payout"
    # Input leg is unchanged
    assert leg.matched_parcels == 0


def test_confirm_all_parcels_fully_matches(leg):
    first = confirm_match(leg, 1, make_txn("100.00", txn_id=10))
    second = confirm_match(first.leg, 2, make_txn("100.00", txn_id=11))
    assert second.leg.reconciliation_state == ReconciliationState.FULLY_MATCHED


def test_confirm_rejects_reconciled_transaction(leg):
    txn = make_txn("100.00", txn_id=10, reconciled=True)
    with pytest.raises(ConflictError, match="already reconciled"):
        confirm_match(leg, 1, txn)


def test_confirm_rejects_settled_parcel(leg):
    first = confirm_match(leg, 1, make_txn("100.00", txn_id=10))
    with pytest.raises(ConflictError, match="already settled"):
        confirm_match(first.leg, 1, make_txn("100.00", txn_id=11))


def test_confirm_rejects_unknown_parcel(leg):
    with pytest.raises(NotFoundError):
        confirm_match(leg, 3, make_txn("100.00", txn_id=10))
