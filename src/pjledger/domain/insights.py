"""Flat cash-flow summaries, cost breakdowns and monthly insights."""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence

from pjledger.domain.classifier import subcategory_label
from pjledger.domain.entities import (
    CENT,
    ZERO,
    CashFlowSummary,
    LedgerGroup,
    ManualClassification,
    RuleClassification,
    Sale,
    SaleLeg,
    Transaction,
)
from pjledger.domain.ledger_groups import LEDGER_GROUP_LABELS, get_ledger_group
from pjledger.utils.date_parser import month_key

TOP_ITEMS = 10
TOP_SALES = 5


def _in_range(value: date, start: Optional[date], end: Optional[date]) -> bool:
    if start is not None and value < start:
        return False
    if end is not None and value > end:
        return False
    return True


def summarize_cash_flow(
    transactions: Sequence[Transaction],
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> CashFlowSummary:
    """Summarize inflows and outflows of transactions within a date range.

    Without explicit bounds the range is the span of the transaction dates.
    """
    selected = [txn for txn in transactions if _in_range(txn.date, start_date, end_date)]
    if selected:
        dates = sorted(txn.date for txn in selected)
        start_date = start_date or dates[0]
        end_date = end_date or dates[-1]

    inflows = [txn.amount for txn in selected if txn.amount > 0]
    outflows = [-txn.amount for txn in selected if txn.amount < 0]

    daily: dict[date, Decimal] = defaultdict(lambda: ZERO)
    for txn in selected:
        daily[txn.date] += txn.amount

    return CashFlowSummary(
        total_in=sum(inflows, ZERO),
        total_out=sum(outflows, ZERO),
        inflow_count=len(inflows),
        outflow_count=len(outflows),
        largest_in=max(inflows, default=ZERO),
        largest_out=max(outflows, default=ZERO),
        transaction_count=len(selected),
        daily_net_flows=tuple(sorted(daily.items())),
        start_date=start_date,
        end_date=end_date,
    )


@dataclass(frozen=True)
class ReceivablesSummary:
    """Open settlement parcels, overall and overdue."""

    amount: Decimal = ZERO
    count: int = 0
    overdue_amount: Decimal = ZERO
    overdue_count: int = 0


def summarize_receivables(
    legs: Sequence[SaleLeg],
    today: date,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> ReceivablesSummary:
    """Total the unmatched parcels due within a range."""
    parcels = [
        parcel
        for leg in legs
        for parcel in leg.settlement_plan
        if not parcel.is_matched and _in_range(parcel.due_date, start_date, end_date)
    ]
    overdue = [parcel for parcel in parcels if parcel.due_date < today]
    return ReceivablesSummary(
        amount=sum((p.expected_amount for p in parcels), ZERO),
        count=len(parcels),
        overdue_amount=sum((p.expected_amount for p in overdue), ZERO),
        overdue_count=len(overdue),
    )


def available_months(
    transactions: Sequence[Transaction], sales: Sequence[Sale] = ()
) -> list[str]:
    """Return the ``YYYY-MM`` keys with activity, newest first."""
    months = {month_key(txn.date) for txn in transactions}
    months.update(month_key(sale.date) for sale in sales)
    return sorted(months, reverse=True)


def _is_uncategorized(txn: Transaction) -> bool:
    if isinstance(txn.classification, (RuleClassification, ManualClassification)):
        return False
    return not txn.legacy_category


@dataclass
class _GroupAccumulator:
    inflows: Decimal = ZERO
    outflows: Decimal = ZERO
    items: dict[str, list[Decimal]] = field(default_factory=dict)


@dataclass
class MonthlyComputation:
    """Per-month aggregates shared by breakdowns and insights."""

    month: str
    transactions: list[Transaction]
    sales: list[Sale]
    groups: dict[LedgerGroup, _GroupAccumulator]
    uncategorized: list[Transaction]
    summary: dict[str, Any]


def _uncategorized_block(transactions: list[Transaction]) -> dict[str, Any]:
    ordered = sorted(transactions, key=lambda txn: (-abs(txn.amount), txn.date))
    return {
        "total": sum((abs(txn.amount) for txn in transactions), ZERO),
        "count": len(transactions),
        "items": [
            {
                "transaction_id": txn.id,
                "date": txn.date,
                "description": txn.description,
                "amount": abs(txn.amount),
            }
            for txn in ordered[:TOP_ITEMS]
        ],
    }


def compute_month(
    month: str, transactions: Sequence[Transaction], sales: Sequence[Sale]
) -> MonthlyComputation:
    """Aggregate one month of transactions and sales by ledger group."""
    month_txns = [txn for txn in transactions if month_key(txn.date) == month]
    month_sales = [sale for sale in sales if month_key(sale.date) == month]

    groups: dict[LedgerGroup, _GroupAccumulator] = {}
    uncategorized: list[Transaction] = []
    revenue = ZERO
    expenses = ZERO

    for txn in month_txns:
        group = get_ledger_group(txn)
        acc = groups.setdefault(group, _GroupAccumulator())
        item = acc.items.setdefault(subcategory_label(txn, group), [ZERO, ZERO])
        if txn.amount >= 0:
            acc.inflows += txn.amount
            item[0] += txn.amount
            if group == LedgerGroup.REVENUE and txn.amount > 0:
                revenue += txn.amount
        else:
            acc.outflows += -txn.amount
            item[1] += -txn.amount
            expenses += -txn.amount
            if _is_uncategorized(txn):
                uncategorized.append(txn)

    def outflows_of(group: LedgerGroup) -> Decimal:
        return groups[group].outflows if group in groups else ZERO

    def inflows_of(group: LedgerGroup) -> Decimal:
        return groups[group].inflows if group in groups else ZERO

    billing = sum((sale.gross_amount for sale in month_sales), ZERO)
    deductions = outflows_of(LedgerGroup.REVENUE_DEDUCTIONS)
    general_admin = outflows_of(LedgerGroup.GENERAL_ADMIN)
    commercial = outflows_of(LedgerGroup.COMMERCIAL_MARKETING)
    financial_in = inflows_of(LedgerGroup.FINANCIAL)
    financial_out = outflows_of(LedgerGroup.FINANCIAL)
    other_in = inflows_of(LedgerGroup.OTHER)
    other_out = outflows_of(LedgerGroup.OTHER)

    gross_profit = revenue - deductions
    net_profit = (
        gross_profit
        - (general_admin + commercial + financial_out + other_out)
        + financial_in
        + other_in
    )
    net_margin = (net_profit / revenue * 100).quantize(CENT) if revenue > 0 else ZERO
    average_ticket = (billing / len(month_sales)).quantize(CENT) if month_sales else ZERO

    summary = {
        "billing": billing,
        "revenue": revenue,
        "expenses": expenses,
        "balance": sum((txn.amount for txn in month_txns), ZERO),
        "gross_profit": gross_profit,
        "net_profit": net_profit,
        "net_margin": net_margin,
        "average_ticket": average_ticket,
        "sales_count": len(month_sales),
        "revenue_deductions": deductions,
        "general_admin": general_admin,
        "commercial_marketing": commercial,
        "financial_in": financial_in,
        "financial_out": financial_out,
        "other_in": other_in,
        "other_out": other_out,
    }

    return MonthlyComputation(
        month=month,
        transactions=month_txns,
        sales=month_sales,
        groups=groups,
        uncategorized=uncategorized,
        summary=summary,
    )


def _target_month(months: list[str], month: Optional[str]) -> Optional[str]:
    if month and month in months:
        return month
    return months[0] if months else None


def build_cost_breakdown(
    transactions: Sequence[Transaction],
    sales: Sequence[Sale] = (),
    month: Optional[str] = None,
) -> dict[str, Any]:
    """Break one month down by ledger group and subcategory label.

    An unknown or missing month selects the most recent month with activity.
    """
    months = available_months(transactions, sales)
    target = _target_month(months, month)
    if target is None:
        return {
            "month": None,
            "available_months": months,
            "totals": {"inflows": ZERO, "outflows": ZERO, "net": ZERO},
            "groups": [],
            "uncategorized": _uncategorized_block([]),
        }

    current = compute_month(target, transactions, sales)
    groups = []
    for group, acc in current.groups.items():
        items = [
            {
                "label": label,
                "inflows": values[0],
                "outflows": values[1],
                "net": values[0] - values[1],
            }
            for label, values in acc.items.items()
        ]
        items.sort(key=lambda item: (-item["outflows"], -item["inflows"], item["label"]))
        groups.append(
            {
                "group": group,
                "label": LEDGER_GROUP_LABELS[group],
                "inflows": acc.inflows,
                "outflows": acc.outflows,
                "net": acc.inflows - acc.outflows,
                "items": items,
            }
        )
    groups.sort(key=lambda g: (-g["outflows"], -g["inflows"], g["group"].value))

    inflows = sum((g["inflows"] for g in groups), ZERO)
    outflows = sum((g["outflows"] for g in groups), ZERO)
    return {
        "month": target,
        "available_months": months,
        "totals": {"inflows": inflows, "outflows": outflows, "net": inflows - outflows},
        "groups": groups,
        "uncategorized": _uncategorized_block(current.uncategorized),
    }


def build_monthly_insights(
    transactions: Sequence[Transaction],
    sales: Sequence[Sale] = (),
    month: Optional[str] = None,
    history_months: int = 6,
) -> dict[str, Any]:
    """Build the month summary, history series and highlights."""
    months = available_months(transactions, sales)
    target = _target_month(months, month)
    if target is None:
        return {
            "month": None,
            "available_months": months,
            "summary": {},
            "history": [],
            "highlights": {
                "top_sales": [],
                "top_costs": [],
                "revenue_channels": [],
                "uncategorized": _uncategorized_block([]),
            },
        }

    current = compute_month(target, transactions, sales)
    recent = sorted(months)[-history_months:] if history_months > 0 else []
    history = [
        {"month": key, **compute_month(key, transactions, sales).summary}
        for key in recent
    ]

    top_sales = sorted(current.sales, key=lambda sale: -sale.gross_amount)[:TOP_SALES]
    top_costs = sorted(
        (txn for txn in current.transactions if txn.amount < 0),
        key=lambda txn: txn.amount,
    )[:TOP_ITEMS]

    channels: dict[str, list] = {}
    for sale in current.sales:
        entry = channels.setdefault(sale.channel or "Unknown channel", [ZERO, 0])
        entry[0] += sale.gross_amount
        entry[1] += 1
    billing = current.summary["billing"] or sum((v[0] for v in channels.values()), ZERO)
    revenue_channels = sorted(
        (
            {
                "channel": channel,
                "total": total,
                "count": count,
                "percentage": (total / billing * 100).quantize(CENT) if billing > 0 else ZERO,
            }
            for channel, (total, count) in channels.items()
        ),
        key=lambda c: (-c["total"], c["channel"]),
    )

    return {
        "month": target,
        "available_months": months,
        "summary": current.summary,
        "history": history,
        "highlights": {
            "top_sales": [
                {
                    "sale_id": sale.id,
                    "date": sale.date,
                    "amount": sale.gross_amount,
                    "net_amount": sale.net_amount,
                    "customer": sale.customer or "Unnamed customer",
                    "channel": sale.channel,
                }
                for sale in top_sales
            ],
            "top_costs": [
                {
                    "transaction_id": txn.id,
                    "date": txn.date,
                    "description": txn.description,
                    "amount": -txn.amount,
                    "group": get_ledger_group(txn),
                    "group_label": LEDGER_GROUP_LABELS[get_ledger_group(txn)],
                }
                for txn in top_costs
            ],
            "revenue_channels": revenue_channels,
            "uncategorized": _uncategorized_block(current.uncategorized),
        },
    }
