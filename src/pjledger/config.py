"""Runtime settings sourced from environment variables."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pjledger.domain.errors import ValidationError

DEFAULT_DB_DIR = Path.home() / ".pjledger"
DEFAULT_CLIENT = "default"


def _int_from_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValidationError(f"{name} must be an integer, got '{raw}'")
    if value < minimum:
        raise ValidationError(f"{name} must be at least {minimum}, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Settings for the ledger engine and CLI.

    Attributes:
        database_path: SQLite file; None selects ``~/.pjledger/pjledger.db``.
        client_id: Client whose books commands operate on.
        log_level: Logging level name.
        match_window_days: Date tolerance for reconciliation suggestions.
        report_workers: Worker threads used to build per-account reports.
        insights_history_months: Months shown in the insights history series.
    """

    database_path: Optional[str] = None
    client_id: str = DEFAULT_CLIENT
    log_level: str = "WARNING"
    match_window_days: int = 3
    report_workers: int = 4
    insights_history_months: int = 6

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables.

        Raises:
            ValidationError: If a numeric variable is not a valid integer
        """
        log_level = os.getenv("PJLEDGER_LOG_LEVEL", "WARNING").strip().upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ValidationError(f"PJLEDGER_LOG_LEVEL has unknown level '{log_level}'")
        return cls(
            database_path=os.getenv("PJLEDGER_DB_PATH") or None,
            client_id=os.getenv("PJLEDGER_CLIENT", DEFAULT_CLIENT).strip() or DEFAULT_CLIENT,
            log_level=log_level,
            match_window_days=_int_from_env("PJLEDGER_MATCH_WINDOW_DAYS", 3),
            report_workers=_int_from_env("PJLEDGER_REPORT_WORKERS", 4, minimum=1),
            insights_history_months=_int_from_env("PJLEDGER_INSIGHTS_HISTORY", 6),
        )

    def resolved_database_path(self) -> str:
        """Return the database path, creating the default directory if needed."""
        if self.database_path:
            return self.database_path
        DEFAULT_DB_DIR.mkdir(exist_ok=True)
        return str(DEFAULT_DB_DIR / "pjledger.db")


__all__ = ["Settings"]
