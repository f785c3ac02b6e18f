"""Utility functions for pjledger."""

from pjledger.utils.date_parser import parse_date
from pjledger.utils.amount_parser import parse_amount

__all__ = ["parse_date", "parse_amount"]
