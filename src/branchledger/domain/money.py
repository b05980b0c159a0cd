"""Decimal money coercion and validation."""

import re
from decimal import Decimal, InvalidOperation
from typing import Any

from branchledger.domain.errors import ValidationError

MONEY_PLACES = 2
CENT = Decimal("0.01")
# Numeric(14, 2) columns hold 12 integer digits.
MAX_AMOUNT = Decimal("1000000000000")
CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


def to_money(value: Any, field: str = "amount") -> Decimal:
    """Coerce ``value`` to an exact Decimal amount with cent scale.

    Accepts Decimal, int and numeric strings. Binary floats are rejected
    outright since they cannot represent most cent values exactly.

    Raises:
        ValidationError: If the value is not an exact, finite amount with at
            most two significant fractional digits, or its magnitude is
            MAX_AMOUNT or more
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise ValidationError(
            f"{field} must be a decimal or integer, not {type(value).__name__}", field=field
        )
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, str)):
        try:
            amount = Decimal(value.strip() if isinstance(value, str) else value)
        except InvalidOperation:
            raise ValidationError(f"{field} '{value}' is not a number", field=field)
    else:
        raise ValidationError(f"{field} is required", field=field)

    if not amount.is_finite():
        raise ValidationError(f"{field} must be finite", field=field)
    if abs(amount) >= MAX_AMOUNT:
        raise ValidationError(f"{field} must be less than {MAX_AMOUNT:,}", field=field)
    cents = amount.quantize(CENT)
    if amount != cents:
        raise ValidationError(
            f"{field} may have at most {MONEY_PLACES} decimal places", field=field
        )
    return cents


def to_positive_money(value: Any, field: str = "amount") -> Decimal:
    """Coerce ``value`` with :func:`to_money` and require it to be > 0."""
    amount = to_money(value, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than 0", field=field)
    return amount


def normalize_currency(currency: str | None) -> str:
    """Validate a three-letter currency code."""
    code = (currency or "").strip().upper()
    if not CURRENCY_PATTERN.match(code):
        raise ValidationError(f"Invalid currency code '{currency}'", field="currency")
    return code
