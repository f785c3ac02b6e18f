"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re


def _normalize_separators(amount_str: str) -> str:
    """Turn thousands/decimal separators into plain ``1234.56`` form.

    The right-most of ``.``/``,`` is the decimal separator when both appear;
    a lone ``,`` followed by exactly two digits is a decimal comma.
    """
    last_dot = amount_str.rfind(".")
    last_comma = amount_str.rfind(",")

    if last_dot >= 0 and last_comma >= 0:
        if last_comma > last_dot:
            return amount_str.replace(".", "").replace(",", ".")
        return amount_str.replace(",", "")

    if last_comma >= 0:
        if re.fullmatch(r"-?\d+,\d{1,2}", amount_str):
            return amount_str.replace(",", ".")
        return amount_str.replace(",", "")

    return amount_str


def parse_amount(amount_str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45" / "R$ 123,45"
    - "-123.45"
    - "-$123.45"
    - "1,234.56" / "1.234,56"
    - "(123.45)" (negative in parentheses)

    Decimal and int values are passed through; floats go through ``str``.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if isinstance(amount_str, Decimal):
        if not amount_str.is_finite():
            raise ValueError(f"Could not parse amount '{amount_str}'")
        return amount_str
    if isinstance(amount_str, bool):
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if isinstance(amount_str, (int, float)):
        return parse_amount(str(amount_str))

    if amount_str is None or not str(amount_str).strip():
        raise ValueError("Empty amount string")

    # Remove whitespace
    amount_str = str(amount_str).strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols
    amount_str = re.sub(r"R\$|[$€£¥]", "", amount_str)
    amount_str = re.sub(r"\s+", "", amount_str)

    # Leading "+" and trailing "-" forms
    if amount_str.startswith("+"):
        amount_str = amount_str[1:]
    if amount_str.endswith("-") and not amount_str.startswith("-"):
        amount_str = "-" + amount_str[:-1]

    amount_str = _normalize_separators(amount_str)

    try:
        amount = Decimal(amount_str)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if not amount.is_finite():
        raise ValueError(f"Could not parse amount '{amount_str}'")
    if is_negative:
        amount = -amount
    return amount
