"""Fixed-point Decimal arithmetic for token amounts."""

from swaprouter.math.decimal_utils import (
    AMOUNT_DECIMALS,
    AMOUNT_QUANTUM,
    DECIMAL_CEIL_CONTEXT,
    DECIMAL_HIGH_PREC_CONTEXT,
    MAX_AMOUNT,
    MAX_AMOUNT_INTEGER_DIGITS,
    ceil_amount,
    check_amount_limit,
    floor_amount,
    format_amount,
    format_percent,
    format_usd,
    to_decimal,
    within_amount_limit,
)

__all__ = [
    "AMOUNT_DECIMALS",
    "AMOUNT_QUANTUM",
    "DECIMAL_CEIL_CONTEXT",
    "DECIMAL_HIGH_PREC_CONTEXT",
    "MAX_AMOUNT",
    "MAX_AMOUNT_INTEGER_DIGITS",
    "ceil_amount",
    "check_amount_limit",
    "floor_amount",
    "format_amount",
    "format_percent",
    "format_usd",
    "to_decimal",
    "within_amount_limit",
]
