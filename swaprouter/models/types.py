"""Shared type definitions for routing models.

Token symbols and chain identifiers are normalized to upper case so that
"eth", " ETH " and "Eth" name the same asset everywhere in the router.
"""

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

from swaprouter.math.decimal_utils import check_amount_limit, to_decimal


def normalize_token(token: str) -> str:
    """Normalize a token symbol (strip whitespace, upper case)."""
    return token.strip().upper()


def normalize_chain(chain: str) -> str:
    """Normalize a chain identifier (strip whitespace, upper case)."""
    return chain.strip().upper()


def validate_token(value: Any) -> str:
    """Validate and normalize a token symbol.

    Raises:
        ValueError: If value is not a non-empty string
    """
    if not isinstance(value, str):
        raise ValueError(f"Token must be a string, got {type(value).__name__}")
    token = normalize_token(value)
    if not token:
        raise ValueError("Token must not be empty")
    return token


def validate_optional_chain(value: Any) -> str | None:
    """Validate a chain identifier; empty values mean "unspecified"."""
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"Chain must be a string, got {type(value).__name__}")
    chain = normalize_chain(value)
    return chain or None


def validate_positive_amount(value: Any) -> Decimal:
    """Validate that a value is a positive, finite decimal amount.

    Accepts decimal strings, ints and Decimal. Floats are rejected because
    they cannot carry exact decimal amounts.

    Returns:
        The amount as Decimal

    Raises:
        ValueError: If the value is not a finite decimal, is not > 0 or is
            too large for fixed-point arithmetic
    """
    amount = to_decimal(value)
    if amount <= 0:
        raise ValueError(f"Amount must be greater than zero: '{value}'")
    return check_amount_limit(amount)


# Upper-case token symbol
TokenSymbol = Annotated[
    str,
    BeforeValidator(validate_token),
    Field(description="Token symbol, normalized to upper case"),
]

# Optional upper-case chain identifier
ChainId = Annotated[
    str | None,
    BeforeValidator(validate_optional_chain),
    Field(description="Chain identifier, normalized to upper case"),
]

# Positive decimal amount (never a binary float)
PositiveAmount = Annotated[
    Decimal,
    BeforeValidator(validate_positive_amount),
    Field(description="Positive decimal amount"),
]


__all__ = [
    "normalize_token",
    "normalize_chain",
    "validate_token",
    "validate_optional_chain",
    "validate_positive_amount",
    "TokenSymbol",
    "ChainId",
    "PositiveAmount",
]
