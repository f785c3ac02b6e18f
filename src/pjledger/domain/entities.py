"""Domain model entities for pjledger.

These are pure data classes representing bookkeeping concepts, independent of
the database schema. Identity-bearing records are frozen; changes such as a
reclassification or a reconciliation produce a new instance that the caller
persists.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


class LedgerGroup(Enum):
    """Top-level classification bucket for every transaction."""

    REVENUE = "REVENUE"
    REVENUE_DEDUCTIONS = "REVENUE_DEDUCTIONS"
    GENERAL_ADMIN = "GENERAL_ADMIN"
    COMMERCIAL_MARKETING = "COMMERCIAL_MARKETING"
    FINANCIAL = "FINANCIAL"
    OTHER = "OTHER"


class ReconciliationState(Enum):
    """Reconciliation progress of a sale leg."""

    PENDING = "pending"
    PARTIALLY_MATCHED = "partially_matched"
    FULLY_MATCHED = "fully_matched"


class SettlementKind(Enum):
    """How a payment method pays out."""

    DAYS_AFTER = "days_after"
    MONTHLY_INSTALLMENTS = "monthly_installments"


class MatchType(Enum):
    """How a categorization rule pattern is compared to a description."""

    EXACT = "exact"
    CONTAINS = "contains"
    STARTS_WITH = "starts_with"


@dataclass(frozen=True)
class Unclassified:
    """Transaction not yet classified."""

    kind = "none"


@dataclass(frozen=True)
class RuleClassification:
    """Classification assigned by a categorization rule."""

    rule_id: int
    ledger_group: LedgerGroup
    category_id: Optional[str] = None
    category_path: Optional[str] = None
    subcategory: Optional[str] = None

    kind = "rule"


@dataclass(frozen=True)
class ManualClassification:
    """Classification assigned by a person."""

    ledger_group: LedgerGroup
    category_id: Optional[str] = None
    category_path: Optional[str] = None
    subcategory: Optional[str] = None

    kind = "manual"


Classification = Union[Unclassified, RuleClassification, ManualClassification]

UNCLASSIFIED = Unclassified()


@dataclass(frozen=True)
class Account:
    """Bank account domain entity."""

    id: int
    client_id: str
    name: str
    bank_name: str
    created_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Bank-sourced ledger entry."""

    id: Optional[int]
    account_id: int
    date: date
    amount: Decimal
    description: str = ""
    external_id: Optional[str] = None
    source_hash: Optional[str] = None
    legacy_category: Optional[str] = None
    legacy_item: Optional[str] = None
    classification: Classification = UNCLASSIFIED
    reconciled: bool = False
    imported_at: Optional[datetime] = None


@dataclass(frozen=True)
class CategoryDefinition:
    """One node of a client's chart of accounts."""

    id: str
    label: str
    path: str
    level: int
    sort_order: int
    parent_path: Optional[str]
    accepts_postings: bool
    ledger_group: LedgerGroup


@dataclass
class CategoryHierarchyNode:
    """Computed category node with rolled-up totals."""

    id: str
    label: str
    path: str
    level: int
    sort_order: int
    parent_path: Optional[str]
    accepts_postings: bool
    ledger_group: LedgerGroup
    inflows: Decimal = ZERO
    outflows: Decimal = ZERO
    direct_inflows: Decimal = ZERO
    direct_outflows: Decimal = ZERO
    children: list["CategoryHierarchyNode"] = field(default_factory=list)

    @property
    def net(self) -> Decimal:
        return self.inflows - self.outflows


@dataclass(frozen=True)
class Totals:
    """Inflow/outflow totals."""

    inflows: Decimal = ZERO
    outflows: Decimal = ZERO

    @property
    def net(self) -> Decimal:
        return self.inflows - self.outflows


@dataclass
class CategoryHierarchy:
    """Forest of category nodes plus lookups."""

    roots: list[CategoryHierarchyNode] = field(default_factory=list)
    nodes_by_path: dict[str, CategoryHierarchyNode] = field(default_factory=dict)
    root_by_ledger_group: dict[LedgerGroup, CategoryHierarchyNode] = field(
        default_factory=dict
    )

    @property
    def totals(self) -> Totals:
        return Totals(
            inflows=sum((root.inflows for root in self.roots), ZERO),
            outflows=sum((root.outflows for root in self.roots), ZERO),
        )


@dataclass(frozen=True)
class ValidationWarning:
    """Non-blocking problem found while processing."""

    code: str
    message: str
    context: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class RawStatementEntry:
    """Statement entry as decoded by a statement parser.

    ``date`` and ``amount`` may still be raw strings.
    """

    date: Union[date, str, None]
    amount: Union[Decimal, str, int, float, None]
    description: str = ""
    external_id: Optional[str] = None
    type_hint: Optional[str] = None


@dataclass(frozen=True)
class StatementSection:
    """One account section of a parsed statement file."""

    account_id: Optional[str]
    currency: Optional[str]
    entries: tuple[RawStatementEntry, ...]
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    opening_balance: Optional[Decimal] = None
    reported_closing_balance: Optional[Decimal] = None


@dataclass(frozen=True)
class IngestResult:
    """Outcome of ingesting one batch of statement entries."""

    accepted: tuple[Transaction, ...]
    duplicates: int
    warnings: tuple[ValidationWarning, ...] = ()


@dataclass(frozen=True)
class SettlementRule:
    """Payout schedule rule of a payment method."""

    kind: SettlementKind = SettlementKind.DAYS_AFTER
    days: int = 1

    def __str__(self) -> str:
        if self.kind == SettlementKind.MONTHLY_INSTALLMENTS:
            return f"D+{self.days}/por_parcela"
        return f"D+{self.days}"


@dataclass(frozen=True)
class SettlementParcel:
    """Expected payout of one installment."""

    n: int
    due_date: date
    expected_amount: Decimal
    received_tx_id: Optional[int] = None
    received_at: Optional[date] = None

    @property
    def is_matched(self) -> bool:
        return self.received_tx_id is not None


@dataclass(frozen=True)
class SaleLeg:
    """Payment instrument of a sale with its settlement plan."""

    id: Optional[int]
    sale_id: Optional[int]
    method: str
    settlement_rule: SettlementRule
    installments: int
    gross_amount: Decimal
    fees: Decimal
    net_amount: Decimal
    settlement_plan: tuple[SettlementParcel, ...] = ()
    reconciliation_state: ReconciliationState = ReconciliationState.PENDING
    notes: Optional[str] = None

    @property
    def matched_parcels(self) -> int:
        return sum(1 for parcel in self.settlement_plan if parcel.is_matched)


@dataclass(frozen=True)
class Sale:
    """Sale record with one or more payment legs."""

    id: Optional[int]
    client_id: str
    date: date
    gross_amount: Decimal
    net_amount: Decimal
    invoice_number: Optional[str] = None
    customer: Optional[str] = None
    channel: Optional[str] = None
    legs: tuple[SaleLeg, ...] = ()


@dataclass(frozen=True)
class MatchSuggestion:
    """Scored candidate pairing of a parcel with a bank deposit."""

    parcel_n: int
    transaction_id: Optional[int]
    date: date
    amount: Decimal
    description: str
    days_difference: int
    score: int
    reason: str


@dataclass(frozen=True)
class MatchConfirmation:
    """Updated leg and transaction after a confirmed match."""

    leg: SaleLeg
    transaction: Transaction


@dataclass(frozen=True)
class CategorizationRule:
    """Description pattern that assigns a ledger group."""

    id: int
    client_id: str
    pattern: str
    match_type: MatchType
    ledger_group: LedgerGroup
    category_path: Optional[str] = None
    subcategory: Optional[str] = None
    enabled: bool = True


@dataclass(frozen=True)
class CashFlowSummary:
    """Flat totals and KPIs of a set of transactions."""

    total_in: Decimal = ZERO
    total_out: Decimal = ZERO
    inflow_count: int = 0
    outflow_count: int = 0
    largest_in: Decimal = ZERO
    largest_out: Decimal = ZERO
    transaction_count: int = 0
    daily_net_flows: tuple[tuple[date, Decimal], ...] = ()
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def balance(self) -> Decimal:
        return self.total_in - self.total_out

    @property
    def coverage_days(self) -> int:
        if self.start_date is None or self.end_date is None:
            return 0
        return (self.end_date - self.start_date).days + 1

    @property
    def average_ticket_in(self) -> Decimal:
        if self.inflow_count == 0:
            return ZERO
        return (self.total_in / self.inflow_count).quantize(CENT)

    @property
    def average_ticket_out(self) -> Decimal:
        if self.outflow_count == 0:
            return ZERO
        return (self.total_out / self.outflow_count).quantize(CENT)
