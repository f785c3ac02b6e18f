"""Tests for cash-flow summaries, cost breakdowns and monthly insights."""

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_txn
from pjledger.domain.entities import (
    LedgerGroup,
    ManualClassification,
    Sale,
    SaleLeg,
    SettlementParcel,
    SettlementRule,
)
from pjledger.domain.insights import (
    available_months,
    build_cost_breakdown,
    build_monthly_insights,
    compute_month,
    summarize_cash_flow,
    summarize_receivables,
)


def _sale(sale_id, day, gross, channel=None, customer=None):
    return Sale(
        id=sale_id,
        client_id="default",
        date=day,
        gross_amount=Decimal(gross),
        net_amount=Decimal(gross),
        channel=channel,
        customer=customer,
    )


@pytest.fixture
def march_transactions():
    return [
        make_txn("1000.00", day=date(2024, 3, 5), txn_id=1, description="PIX CLIENTE"),
        make_txn(
            "-100.00", day=date(2024, 3, 6), txn_id=2, description="DAS", legacy_category="Deduções"
        ),
        make_txn(
            "-200.00",
            day=date(2024, 3, 7),
            txn_id=3,
            description="ALUGUEL",
            classification=ManualClassification(
                ledger_group=LedgerGroup.GENERAL_ADMIN, subcategory="Rent"
            ),
        ),
        make_txn(
            "10.00",
            day=date(2024, 3, 8),
            txn_id=4,
            description="RENDIMENTO",
            classification=ManualClassification(ledger_group=LedgerGroup.FINANCIAL),
        ),
        make_txn("-40.00", day=date(2024, 3, 9), txn_id=5, description="SAQUE"),
        make_txn("300.00", day=date(2024, 2, 10), txn_id=6, description="PIX FEVEREIRO"),
    ]


@pytest.fixture
def march_sales():
    return [
        _sale(1, date(2024, 3, 5), "600.00", channel="Store", customer="Ana"),
        _sale(2, date(2024, 3, 6), "400.00", channel="Online"),
    ]


def test_summarize_cash_flow():
    txns = [
        make_txn("100.00", day=date(2024, 3, 1)),
        make_txn("50.00", day=date(2024, 3, 1)),
        make_txn("-30.00", day=date(2024, 3, 4)),
    ]

    summary = summarize_cash_flow(txns)

    assert summary.total_in == Decimal("150.00")
    assert summary.total_out == Decimal("30.00")
    assert summary.balance == Decimal("120.00")
    assert summary.largest_in == Decimal("100.00")
    assert summary.inflow_count == 2
    assert summary.outflow_count == 1
    assert summary.average_ticket_in == Decimal("75.00")
    assert summary.coverage_days == 4
    assert summary.daily_net_flows == (
        (date(2024, 3, 1), Decimal("150.00")),
        (date(2024, 3, 4), Decimal("-30.00")),
    )


def test_summarize_cash_flow_respects_range():
    txns = [make_txn("100.00", day=date(2024, 3, 1)), make_txn("-30.00", day=date(2024, 3, 4))]
    summary = summarize_cash_flow(txns, start_date=date(2024, 3, 2), end_date=date(2024, 3, 31))
    assert summary.transaction_count == 1
    assert summary.start_date == date(2024, 3, 2)
    assert summary.coverage_days == 30


def test_summarize_cash_flow_empty():
    summary = summarize_cash_flow([])
    assert summary.transaction_count == 0
    assert summary.coverage_days == 0
    assert summary.average_ticket_out == Decimal("0.00")


def test_available_months_newest_first(march_transactions):
    sales = [_sale(9, date(2024, 1, 20), "10.00")]
    assert available_months(march_transactions, sales) == ["2024-03", "2024-02", "2024-01"]


def test_compute_month_summary(march_transactions, march_sales):
    summary = compute_month("2024-03", march_transactions, march_sales).summary

    assert summary["billing"] == Decimal("1000.00")
    assert summary["revenue"] == Decimal("1000.00")
    assert summary["revenue_deductions"] == Decimal("100.00")
    assert summary["gross_profit"] == Decimal("900.00")
    assert summary["general_admin"] == Decimal("200.00")
    assert summary["financial_in"] == Decimal("10.00")
    assert summary["other_out"] == Decimal("40.00")
    assert summary["expenses"] == Decimal("340.00")
    assert summary["net_profit"] == Decimal("670.00")
    assert summary["net_margin"] == Decimal("67.00")
    assert summary["average_ticket"] == Decimal("500.00")
    assert summary["sales_count"] == 2
    assert summary["balance"] == Decimal("670.00")


def test_cost_breakdown_defaults_to_latest_month(march_transactions):
    breakdown = build_cost_breakdown(march_transactions)

    assert breakdown["month"] == "2024-03"
    groups = {g["group"]: g for g in breakdown["groups"]}
    assert groups[LedgerGroup.GENERAL_ADMIN]["items"][0]["label"] == "Rent"
    assert breakdown["groups"][0]["group"] == LedgerGroup.GENERAL_ADMIN
    assert breakdown["totals"]["net"] == Decimal("670.00")
    assert breakdown["uncategorized"]["count"] == 1
    assert breakdown["uncategorized"]["items"][0]["description"] == "SAQUE"


def test_cost_breakdown_unknown_month_falls_back(march_transactions):
    assert build_cost_breakdown(march_transactions, month="2023-01")["month"] == "2024-03"
    assert build_cost_breakdown(march_transactions, month="2024-02")["month"] == "2024-02"


def test_cost_breakdown_without_activity():
    breakdown = build_cost_breakdown([])
    assert breakdown["month"] is None
    assert breakdown["groups"] == []


def test_monthly_insights(march_transactions, march_sales):
    insights = build_monthly_insights(march_transactions, march_sales, history_months=6)

    assert insights["month"] == "2024-03"
    assert [row["month"] for row in insights["history"]] == ["2024-02", "2024-03"]
    assert insights["history"][0]["revenue"] == Decimal("300.00")

    highlights = insights["highlights"]
    assert [s["sale_id"] for s in highlights["top_sales"]] == [1, 2]
    assert highlights["top_sales"][1]["customer"] == "Unnamed customer"
    assert [c["transaction_id"] for c in highlights["top_costs"]] == [3, 2, 5]
    assert highlights["revenue_channels"][0] == {
        "channel": "Store",
        "total": Decimal("600.00"),
        "count": 1,
        "percentage": Decimal("60.00"),
    }


def test_monthly_insights_history_is_limited(march_transactions):
    insights = build_monthly_insights(march_transactions, history_months=1)
    assert [row["month"] for row in insights["history"]] == ["2024-03"]


def test_summarize_receivables():
    legs = [
        SaleLeg(
            id=1,
            sale_id=1,
            method="card",
            settlement_rule=SettlementRule(),
            installments=3,
            gross_amount=Decimal("300.00"),
            fees=Decimal("0.00"),
            net_amount=Decimal("300.00"),
            settlement_plan=(
                SettlementParcel(1, date(2024, 3, 1), Decimal("100.00"), received_tx_id=5),
                SettlementParcel(2, date(2024, 4, 1), Decimal("100.00")),
                SettlementParcel(3, date(2024, 5, 1), Decimal("100.00")),
            ),
        )
    ]

    summary = summarize_receivables(legs, today=date(2024, 4, 15))

    assert summary.count == 2
    assert summary.amount == Decimal("200.00")
    assert summary.overdue_count == 1
    assert summary.overdue_amount == Decimal("100.00")
    ranged = summarize_receivables(legs, today=date(2024, 4, 15), start_date=date(2024, 5, 1))
    assert ranged.count == 1
