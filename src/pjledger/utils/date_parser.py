"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

# OFX timestamps: YYYYMMDD[HHMMSS[.XXX]][[+-]TZ:NAME]
_OFX_DATE = re.compile(r"^(\d{8})(\d{6}(\.\d+)?)?(\[.*\])?$")


def parse_date(date_str, dayfirst: bool = False) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - OFX timestamps: "20240115120000[-3:BRT]"
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats (date objects pass through)
        dayfirst: Read ambiguous numeric dates as day/month ("10/01/2024")

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    if isinstance(date_str, datetime):
        return date_str.date()
    if isinstance(date_str, date):
        return date_str
    if date_str is None or not str(date_str).strip():
        raise ValueError("Empty date string")

    date_str = str(date_str).strip().lower()
    today = date.today()

    ofx_match = _OFX_DATE.match(date_str)
    if ofx_match:
        try:
            return datetime.strptime(ofx_match.group(1), "%Y%m%d").date()
        except ValueError as e:
            raise ValueError(f"Could not parse date '{date_str}': {e}")

    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "this month": today.replace(day=1),
        "last month": (today - relativedelta(months=1)).replace(day=1),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    if date_str in relative_dates:
        return relative_dates[date_str]

    try:
        dt = date_parser.parse(date_str, dayfirst=dayfirst)
        return dt.date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


def month_key(value: date) -> str:
    """Return the ``YYYY-MM`` key of a date."""
    return value.strftime("%Y-%m")


def month_range(key: str) -> tuple[date, date]:
    """Return the first and last day of a ``YYYY-MM`` month key.

    Raises:
        ValueError: If the key is not a valid month
    """
    try:
        start = datetime.strptime(key.strip(), "%Y-%m").date()
    except ValueError:
        raise ValueError(f"Invalid month '{key}', expected YYYY-MM")
    end = start + relativedelta(months=1) - timedelta(days=1)
    return (start, end)


def get_date_range(period: str) -> tuple[date, date]:
    """Get start and end dates for a specified period.

    Args:
        period: this-month, last-month, this-year, last-year, or a YYYY-MM key

    Returns:
        Tuple of (start_date, end_date) for the specified period

    Raises:
        ValueError: If period string is not recognized
    """
    period = period.strip().lower()
    today = date.today()

    if period == "this-month":
        return (today.replace(day=1), today)
    if period == "last-month":
        return month_range(month_key(today - relativedelta(months=1)))
    if period == "this-year":
        return (today.replace(month=1, day=1), today)
    if period == "last-year":
        start = today.replace(month=1, day=1) - relativedelta(years=1)
        return (start, today.replace(month=1, day=1) - timedelta(days=1))
    if re.fullmatch(r"\d{4}-\d{2}", period):
        return month_range(period)

    raise ValueError(
        f"Unknown period: '{period}'. Supported periods: this-month, last-month, "
        "this-year, last-year, YYYY-MM"
    )
