"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥]")
_CURRENCY_SUFFIX = re.compile(r"\s*[A-Za-z]{3}$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse a payment or obligation amount string into a Decimal.

    Handles various formats:
    - "400"
    - "400.50"
    - "$1,250.00"
    - "1250.00 USD"

    The result is not range-checked; the settlement engine rejects
    non-positive amounts and anything finer than cents.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    cleaned = _CURRENCY_SUFFIX.sub("", amount_str.strip())
    cleaned = _CURRENCY_SYMBOLS.sub("", cleaned).replace(",", "").strip()

    try:
        return Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{amount_str}'")
