"""Statement ingestion with sign normalization and deduplication."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from pjledger.domain.entities import (
    CENT,
    ZERO,
    IngestResult,
    RawStatementEntry,
    StatementSection,
    Transaction,
    ValidationWarning,
)
from pjledger.domain.errors import ParseError, entry_parse_failed
from pjledger.utils.amount_parser import parse_amount
from pjledger.utils.date_parser import parse_date

logger = logging.getLogger(__name__)

BALANCE_TOLERANCE = Decimal("0.01")

CREDIT_HINTS = frozenset({"credit", "c", "cr", "dep", "directdep", "int", "div"})
DEBIT_HINTS = frozenset(
    {"debit", "d", "db", "payment", "fee", "srvchg", "check", "atm", "pos", "xfer_out"}
)


@dataclass(frozen=True)
class ParsedEntry:
    """Statement entry with typed date and signed amount."""

    index: int
    date: date
    amount: Decimal
    description: str
    external_id: Optional[str]


def normalize_description(value: Optional[str]) -> str:
    """Case-fold and collapse whitespace for description comparison."""
    return " ".join((value or "").split()).casefold()


def descriptions_compatible(a: Optional[str], b: Optional[str]) -> bool:
    """Equal after normalization, or one contains the other.

    Two empty descriptions are compatible; an empty one never matches a
    non-empty one.
    """
    left = normalize_description(a)
    right = normalize_description(b)
    if not left or not right:
        return left == right
    return left == right or left in right or right in left


def _round_cents(amount: Decimal) -> Decimal:
    return Decimal(amount).quantize(CENT)


def is_duplicate(
    candidate: ParsedEntry, others: Iterable[Transaction]
) -> bool:
    """Check whether a parsed entry matches any known transaction.

    Two entries match when both carry the same external id, or when date and
    cent-rounded amount are equal and the descriptions are compatible.
    """
    amount = _round_cents(candidate.amount)
    for txn in others:
        if candidate.external_id and txn.external_id:
            if candidate.external_id == txn.external_id:
                return True
        if (
            txn.date == candidate.date
            and _round_cents(txn.amount) == amount
            and descriptions_compatible(txn.description, candidate.description)
        ):
            return True
    return False


def normalize_sign(
    amount: Decimal, type_hint: Optional[str]
) -> tuple[Decimal, bool]:
    """Coerce the amount sign to a credit/debit hint.

    Returns:
        Tuple of (amount, coerced)
    """
    if not type_hint or amount == 0:
        return amount, False
    hint = type_hint.strip().lower()
    if hint in CREDIT_HINTS and amount < 0:
        return -amount, True
    if hint in DEBIT_HINTS and amount > 0:
        return -amount, True
    return amount, False


def parse_entries(
    raw_entries: Sequence[RawStatementEntry], dayfirst: bool = False
) -> tuple[list[ParsedEntry], list[ValidationWarning]]:
    """Parse every entry of a batch, failing on the first bad one.

    Raises:
        ParseError: If any entry has an unparsable amount or a missing or
            unparsable date
    """
    parsed: list[ParsedEntry] = []
    warnings: list[ValidationWarning] = []

    for index, entry in enumerate(raw_entries):
        try:
            entry_date = parse_date(entry.date, dayfirst=dayfirst)
        except ValueError as e:
            raise ParseError(entry_parse_failed(index, str(e))) from e
        try:
            amount = parse_amount(entry.amount)
        except ValueError as e:
            raise ParseError(entry_parse_failed(index, str(e))) from e

        amount, coerced = normalize_sign(amount, entry.type_hint)
        if coerced:
            warnings.append(
                ValidationWarning(
                    code="sign_coerced",
                    message=(
                        f"Entry {index}: amount sign changed to match "
                        f"'{entry.type_hint}' hint"
                    ),
                    context={"index": index, "amount": str(amount)},
                )
            )

        external_id = (entry.external_id or "").strip() or None
        parsed.append(
            ParsedEntry(
                index=index,
                date=entry_date,
                amount=amount,
                description=(entry.description or "").strip(),
                external_id=external_id,
            )
        )

    return parsed, warnings


def ingest_batch(
    raw_entries: Sequence[RawStatementEntry],
    existing: Sequence[Transaction] = (),
    pending: Sequence[Transaction] = (),
    account_id: int = 0,
    source_hash: Optional[str] = None,
    dayfirst: bool = False,
) -> IngestResult:
    """Filter a batch of statement entries down to new transactions.

    Args:
        raw_entries: Entries decoded from one statement section
        existing: Transactions already persisted for the account
        pending: Transactions accepted earlier in the same import, not yet persisted
        account_id: Account the accepted transactions belong to
        source_hash: Content hash of the originating file
        dayfirst: Read ambiguous numeric dates as day/month

    Returns:
        IngestResult with accepted transactions, duplicate count and warnings

    Raises:
        ParseError: If any entry cannot be parsed; nothing is accepted
    """
    parsed, warnings = parse_entries(raw_entries, dayfirst=dayfirst)

    known = list(existing) + list(pending)
    accepted: list[Transaction] = []
    duplicates = 0

    for entry in parsed:
        if is_duplicate(entry, known):
            duplicates += 1
            logger.debug("Skipping duplicate statement entry %d", entry.index)
            continue
        txn = Transaction(
            id=None,
            account_id=account_id,
            date=entry.date,
            amount=entry.amount,
            description=entry.description,
            external_id=entry.external_id,
            source_hash=source_hash,
        )
        accepted.append(txn)
        known.append(txn)

    return IngestResult(
        accepted=tuple(accepted), duplicates=duplicates, warnings=tuple(warnings)
    )


def check_statement_balance(
    section: StatementSection,
    opening_balance: Optional[Decimal] = None,
    dayfirst: bool = False,
) -> list[ValidationWarning]:
    """Cross-check the reported closing balance of a statement section.

    Args:
        section: Parsed statement section
        opening_balance: Balance before the section; falls back to the
            section's own opening balance, then zero
        dayfirst: Read ambiguous numeric dates as day/month

    Returns:
        Warnings for a missing closing balance, a divergence above one cent,
        or a section without entries
    """
    warnings: list[ValidationWarning] = []
    account = section.account_id or "unknown"

    if not section.entries:
        warnings.append(
            ValidationWarning(
                code="empty_statement",
                message=f"Account {account}: statement has no transactions",
                context={"account": account},
            )
        )

    if section.reported_closing_balance is None:
        warnings.append(
            ValidationWarning(
                code="missing_closing_balance",
                message=f"Account {account}: statement reports no closing balance",
                context={"account": account},
            )
        )
        return warnings

    if opening_balance is None:
        opening_balance = section.opening_balance
    if opening_balance is None:
        opening_balance = ZERO

    parsed, _ = parse_entries(section.entries, dayfirst=dayfirst)
    net = sum((entry.amount for entry in parsed), ZERO)
    expected = opening_balance + net
    reported = section.reported_closing_balance
    if abs(reported - expected) > BALANCE_TOLERANCE:
        warnings.append(
            ValidationWarning(
                code="balance_divergence",
                message=(
                    f"Account {account}: reported closing balance {reported} "
                    f"differs from computed {expected}"
                ),
                context={
                    "account": account,
                    "reported": str(reported),
                    "computed": str(expected),
                },
            )
        )
    return warnings


def ingest_statement(
    section: StatementSection,
    existing: Sequence[Transaction] = (),
    pending: Sequence[Transaction] = (),
    account_id: int = 0,
    opening_balance: Optional[Decimal] = None,
    source_hash: Optional[str] = None,
    dayfirst: bool = False,
) -> IngestResult:
    """Ingest one statement section and cross-check its balance."""
    result = ingest_batch(
        section.entries,
        existing=existing,
        pending=pending,
        account_id=account_id,
        source_hash=source_hash,
        dayfirst=dayfirst,
    )
    balance_warnings = check_statement_balance(
        section, opening_balance=opening_balance, dayfirst=dayfirst
    )
    return IngestResult(
        accepted=result.accepted,
        duplicates=result.duplicates,
        warnings=result.warnings + tuple(balance_warnings),
    )
