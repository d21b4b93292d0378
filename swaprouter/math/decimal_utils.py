"""Shared high-precision Decimal utilities for amount calculations.

Amounts are carried as Decimal with AMOUNT_DECIMALS fractional digits. All
arithmetic runs inside a 78-digit context so that intermediate products of
large reserves never lose integer digits. Forward conversions (what a swap
pays out) are floored; inverse conversions (what a swap requires) are rounded
up, so quotes are always conservative for the trader.

Decimal contexts are thread-local: every function that does arithmetic enters
the high-precision context itself instead of relying on the caller's.
"""

from __future__ import annotations

import decimal
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation

# 78 digits of precision, enough for 60 integer digits plus 18 fractional digits
DECIMAL_HIGH_PREC_CONTEXT = decimal.Context(prec=78, rounding=ROUND_FLOOR)

# Same precision, rounding toward +inf (used for required-input math)
DECIMAL_CEIL_CONTEXT = decimal.Context(prec=78, rounding=ROUND_CEILING)

AMOUNT_DECIMALS = 18
AMOUNT_QUANTUM = Decimal(1).scaleb(-AMOUNT_DECIMALS)

# Amounts and reserves stay below 10**30 so that the product of two of them
# still carries AMOUNT_DECIMALS fractional digits within 78 digits
MAX_AMOUNT_INTEGER_DIGITS = 30
MAX_AMOUNT = Decimal(10) ** MAX_AMOUNT_INTEGER_DIGITS


def floor_amount(value: Decimal) -> Decimal:
    """Quantize to AMOUNT_DECIMALS fractional digits, rounding toward -inf."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_FLOOR)


def ceil_amount(value: Decimal) -> Decimal:
    """Quantize to AMOUNT_DECIMALS fractional digits, rounding toward +inf."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return value.quantize(AMOUNT_QUANTUM, rounding=ROUND_CEILING)


def within_amount_limit(value: Decimal) -> bool:
    """Whether value fits the fixed-point range (|value| < MAX_AMOUNT)."""
    return abs(value) < MAX_AMOUNT


def check_amount_limit(value: Decimal) -> Decimal:
    """Return value unchanged if it fits the fixed-point range.

    Raises:
        ValueError: If value has MAX_AMOUNT_INTEGER_DIGITS or more integer digits
    """
    if not within_amount_limit(value):
        raise ValueError(
            f"Amount exceeds supported precision (below 1e{MAX_AMOUNT_INTEGER_DIGITS}): {value}"
        )
    return value


def to_decimal(value: object) -> Decimal:
    """Convert a str/int/Decimal to Decimal.

    Binary floats are rejected: an amount like 0.1 cannot be represented
    exactly and would silently change the quote.

    Raises:
        ValueError: If value is a float, bool, non-numeric or non-finite
    """
    if isinstance(value, bool):
        raise ValueError("Amount must be a decimal number, got bool")
    if isinstance(value, float):
        raise ValueError(f"Amount must be a decimal string, not a float: {value!r}")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation as err:
            raise ValueError(f"Amount must be a decimal number string: '{value}'") from err
    else:
        raise ValueError(f"Amount must be string, int or Decimal, got {type(value).__name__}")

    if not result.is_finite():
        raise ValueError(f"Amount must be finite: '{value}'")
    return result


def format_amount(value: Decimal) -> str:
    """Render an amount as a plain decimal string without trailing zeros."""
    if value == 0:
        return "0"
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return f"{value.normalize():f}"


def format_percent(fraction: Decimal, places: int = 2) -> str:
    """Render a fraction (0.0123) as a percentage string ("1.23%")."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        percent = (fraction * 100).quantize(Decimal(1).scaleb(-places), rounding=ROUND_FLOOR)
    return f"{percent}%"


def format_usd(value: Decimal) -> str:
    """Render a USD amount in cents ("$15.00"); sub-cent amounts show as "<$0.01"."""
    if 0 < value < Decimal("0.01"):
        return "<$0.01"
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        cents = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"${cents}"


__all__ = [
    "DECIMAL_HIGH_PREC_CONTEXT",
    "DECIMAL_CEIL_CONTEXT",
    "AMOUNT_DECIMALS",
    "AMOUNT_QUANTUM",
    "MAX_AMOUNT",
    "MAX_AMOUNT_INTEGER_DIGITS",
    "within_amount_limit",
    "check_amount_limit",
    "floor_amount",
    "ceil_amount",
    "to_decimal",
    "format_amount",
    "format_percent",
    "format_usd",
]
