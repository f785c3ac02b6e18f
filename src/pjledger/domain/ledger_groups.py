"""Ledger group labels, ordering and keyword inference."""

import re
import unicodedata
from decimal import Decimal
from typing import Optional

from pjledger.domain.entities import (
    LedgerGroup,
    ManualClassification,
    RuleClassification,
    Transaction,
)

LEDGER_GROUP_LABELS: dict[LedgerGroup, str] = {
    LedgerGroup.REVENUE: "Revenue",
    LedgerGroup.REVENUE_DEDUCTIONS: "(-) Revenue Deductions",
    LedgerGroup.GENERAL_ADMIN: "(-) General & Administrative Expenses",
    LedgerGroup.COMMERCIAL_MARKETING: "(-) Commercial & Marketing Expenses",
    LedgerGroup.FINANCIAL: "(-/+) Financial Income and Expenses",
    LedgerGroup.OTHER: "(-/+) Other Non-Operating Income and Expenses",
}

LEDGER_GROUP_SORT_ORDER: dict[LedgerGroup, int] = {
    LedgerGroup.REVENUE: 10,
    LedgerGroup.REVENUE_DEDUCTIONS: 20,
    LedgerGroup.GENERAL_ADMIN: 30,
    LedgerGroup.COMMERCIAL_MARKETING: 40,
    LedgerGroup.FINANCIAL: 50,
    LedgerGroup.OTHER: 60,
}

# Substrings of the normalized label, checked in order; the first hit decides the group.
_KEYWORDS: tuple[tuple[tuple[str, ...], LedgerGroup], ...] = (
    (("DEDU",), LedgerGroup.REVENUE_DEDUCTIONS),
    (("GER", "ADM"), LedgerGroup.GENERAL_ADMIN),
    (("COM", "MARK"), LedgerGroup.COMMERCIAL_MARKETING),
    (("FINAN",), LedgerGroup.FINANCIAL),
    (("RECEITA", "FATUR", "REVENUE", "BILLING", "SALES"), LedgerGroup.REVENUE),
    (("OUTR", "OTHER"), LedgerGroup.OTHER),
)


def normalize_label(value: Optional[str]) -> str:
    """Strip accents and punctuation and upper-case a free-text label."""
    decomposed = unicodedata.normalize("NFD", value or "")
    without_accents = "".join(
        char for char in decomposed if unicodedata.category(char) != "Mn"
    )
    return re.sub(r"[^a-zA-Z0-9\s]", "", without_accents).upper()


def parse_ledger_group(value: str) -> LedgerGroup:
    """Parse a ledger group from its value or name, case-insensitively.

    Raises:
        ValueError: If the value is not a ledger group
    """
    normalized = value.strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return LedgerGroup(normalized)
    except ValueError:
        valid = ", ".join(group.value for group in LedgerGroup)
        raise ValueError(f"Unknown ledger group '{value}'. Valid groups: {valid}")


def infer_group_from_legacy(
    value: Optional[str], amount: Decimal
) -> Optional[LedgerGroup]:
    """Infer a ledger group from a legacy free-text category label.

    A revenue keyword on a negative amount is read as a deduction.
    """
    if not value:
        return None
    normalized = normalize_label(value)

    for keywords, group in _KEYWORDS:
        if any(keyword in normalized for keyword in keywords):
            if group == LedgerGroup.REVENUE and amount < 0:
                return LedgerGroup.REVENUE_DEDUCTIONS
            return group
    return None


def get_ledger_group(txn: Transaction) -> LedgerGroup:
    """Resolve the ledger group of a transaction without a category index."""
    classification = txn.classification
    if isinstance(classification, (RuleClassification, ManualClassification)):
        return classification.ledger_group

    legacy = infer_group_from_legacy(
        txn.legacy_category, txn.amount
    ) or infer_group_from_legacy(txn.legacy_item, txn.amount)
    if legacy is not None:
        return legacy

    return LedgerGroup.REVENUE if txn.amount >= 0 else LedgerGroup.OTHER


def root_path(group: LedgerGroup) -> str:
    """Path of the synthetic root node of a ledger group."""
    return group.value
