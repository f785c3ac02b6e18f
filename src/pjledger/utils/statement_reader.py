"""Statement file reading."""

import csv
import hashlib
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pjledger.domain.entities import RawStatementEntry, StatementSection

# Accepted header names per field, compared case-insensitively.
HEADER_ALIASES = {
    "date": ("date", "posted", "posting date", "data"),
    "amount": ("amount", "value", "valor"),
    "description": ("description", "memo", "name", "payee", "historico"),
    "external_id": ("fitid", "id", "transaction id", "reference"),
    "type_hint": ("type", "trntype", "kind"),
}

REQUIRED_FIELDS = ("date", "amount")


def file_sha256(path: str | Path) -> str:
    """Return the hex SHA-256 digest of a file's bytes."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _map_headers(fieldnames: list[str]) -> dict[str, str]:
    """Map statement fields to the CSV column that carries them."""
    lookup = {name.strip().lower(): name for name in fieldnames if name}
    columns = {}
    for field, aliases in HEADER_ALIASES.items():
        for alias in aliases:
            if alias in lookup:
                columns[field] = lookup[alias]
                break
    return columns


def read_csv_statement(
    path: str | Path,
    account_label: Optional[str] = None,
    currency: Optional[str] = None,
    opening_balance: Optional[Decimal] = None,
    closing_balance: Optional[Decimal] = None,
) -> list[StatementSection]:
    """Read a CSV bank statement into a single statement section.

    Values are kept as raw strings; parsing happens during ingestion so a
    bad row rejects the whole file.

    Args:
        path: CSV file path
        account_label: Account identifier reported in warnings
        currency: Currency code of the statement
        opening_balance: Balance before the first entry, if known
        closing_balance: Closing balance reported by the bank, if known

    Returns:
        List with one StatementSection

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file has no header or lacks date/amount columns
    """
    csv_path = Path(path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Statement file not found: {path}")

    entries = []
    with open(csv_path, "r", encoding="utf-8-sig", newline="") as f:
        sample = f.read(2048)
        f.seek(0)
        try:
            delimiter = csv.Sniffer().sniff(sample, delimiters=",;\t|").delimiter
        except csv.Error:
            delimiter = ","

        reader = csv.DictReader(f, delimiter=delimiter)
        if not reader.fieldnames:
            raise ValueError("Statement file has no columns")

        columns = _map_headers(reader.fieldnames)
        missing = [field for field in REQUIRED_FIELDS if field not in columns]
        if missing:
            raise ValueError(
                f"Statement file missing required columns: {', '.join(missing)}"
            )

        for row in reader:
            if not any((value or "").strip() for value in row.values() if isinstance(value, str)):
                continue
            values = {
                field: (row.get(column) or "").strip() for field, column in columns.items()
            }
            entries.append(
                RawStatementEntry(
                    date=values["date"],
                    amount=values["amount"],
                    description=values.get("description", ""),
                    external_id=values.get("external_id") or None,
                    type_hint=values.get("type_hint") or None,
                )
            )

    return [
        StatementSection(
            account_id=account_label,
            currency=currency,
            entries=tuple(entries),
            opening_balance=opening_balance,
            reported_closing_balance=closing_balance,
        )
    ]
