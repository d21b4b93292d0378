"""Base types shared by every pool variant.

A pool quotes swaps between its two tokens. All variants expose the same
capability (LiquidityPool protocol) so that the pricer never needs to know
which curve it is walking.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Protocol, runtime_checkable

from swaprouter.constants import BPS_DENOMINATOR
from swaprouter.math.decimal_utils import (
    DECIMAL_CEIL_CONTEXT,
    DECIMAL_HIGH_PREC_CONTEXT,
    ceil_amount,
    floor_amount,
)
from swaprouter.models.types import normalize_token


@dataclass(frozen=True)
class SwapQuote:
    """Result of simulating a swap through one pool.

    Attributes:
        pool_id: Identifier of the quoting pool
        token_in: Input token
        token_out: Output token
        amount_in: Input amount including the fee
        amount_out: Output amount after fee and price impact
        fee_paid: Fee charged, in units of token_in
        price_impact: Fraction of value lost to the curve, in [0, 1)
        spot_price: Marginal token_out per token_in before the trade
    """

    pool_id: str
    token_in: str
    token_out: str
    amount_in: Decimal
    amount_out: Decimal
    fee_paid: Decimal
    price_impact: Decimal
    spot_price: Decimal


@dataclass(frozen=True)
class PoolDepth:
    """Depth descriptor of a pool oriented for one input token.

    For curve pools these are the reserves; for order books they are the
    total input the book absorbs and the total output it can pay.
    """

    token_in: str
    token_out: str
    reserve_in: Decimal
    reserve_out: Decimal


@runtime_checkable
class LiquidityPool(Protocol):
    """Protocol implemented by every pool variant."""

    pool_id: str
    chain: str
    fee_bps: int
    protocol: str
    updated_at: datetime | None

    @property
    def kind(self) -> str: ...

    @property
    def tokens(self) -> tuple[str, str]: ...

    def supports(self, token: str) -> bool: ...

    def other_token(self, token: str) -> str: ...

    def has_liquidity(self) -> bool: ...

    def depth(self, token_in: str) -> PoolDepth: ...

    def spot_price(self, token_in: str) -> Decimal | None: ...

    def quote(self, token_in: str, amount_in: Decimal) -> SwapQuote | None: ...

    def quote_exact_output(self, token_in: str, amount_out: Decimal) -> SwapQuote | None: ...


class TwoTokenPool:
    """Mixin with token bookkeeping for pools holding token0/token1.

    Subclasses are dataclasses defining pool_id, token0 and token1.
    """

    pool_id: str
    token0: str
    token1: str

    @property
    def tokens(self) -> tuple[str, str]:
        """The pool's tokens as (token0, token1)."""
        return self.token0, self.token1

    def supports(self, token: str) -> bool:
        """Check whether the pool trades the given token."""
        return normalize_token(token) in (self.token0, self.token1)

    def other_token(self, token: str) -> str:
        """Get the counterpart of a token in this pool.

        Raises:
            ValueError: If the token is not in the pool
        """
        token_norm = normalize_token(token)
        if token_norm == self.token0:
            return self.token1
        if token_norm == self.token1:
            return self.token0
        raise ValueError(f"Token {token} not in pool {self.pool_id}")

    def is_token0(self, token: str) -> bool:
        """Whether token is token0 (raises if it is in neither slot)."""
        token_norm = normalize_token(token)
        if token_norm == self.token0:
            return True
        if token_norm == self.token1:
            return False
        raise ValueError(f"Token {token} not in pool {self.pool_id}")


def validate_fee_bps(fee_bps: int) -> None:
    """Fee must be in [0, 10000) basis points."""
    if not 0 <= fee_bps < BPS_DENOMINATOR:
        raise ValueError(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {fee_bps}")


def amount_after_fee(amount_in: Decimal, fee_bps: int) -> Decimal:
    """Input amount left for the curve after deducting the pool fee (floored)."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return floor_amount(amount_in * (BPS_DENOMINATOR - fee_bps) / BPS_DENOMINATOR)


def split_fee(amount_in: Decimal, fee_bps: int) -> tuple[Decimal, Decimal]:
    """Split an input into (amount reaching the curve, fee paid)."""
    after_fee = amount_after_fee(amount_in, fee_bps)
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return after_fee, amount_in - after_fee


def amount_before_fee(amount_after: Decimal, fee_bps: int) -> Decimal:
    """Gross input needed so that amount_after reaches the curve (rounded up)."""
    with decimal.localcontext(DECIMAL_CEIL_CONTEXT):
        return ceil_amount(amount_after * BPS_DENOMINATOR / (BPS_DENOMINATOR - fee_bps))


def price_impact(amount_in_after_fee: Decimal, amount_out: Decimal, spot_price: Decimal) -> Decimal:
    """Fraction of value lost versus converting at the spot price.

    impact = 1 - amount_out / (amount_in_after_fee * spot_price), clamped at 0.
    """
    if amount_in_after_fee <= 0 or spot_price <= 0:
        return Decimal(0)
    with decimal.localcontext(DECIMAL_CEIL_CONTEXT):
        ideal = amount_in_after_fee * spot_price
        impact = 1 - amount_out / ideal
    if impact <= 0:
        return Decimal(0)
    return ceil_amount(impact)


__all__ = [
    "SwapQuote",
    "PoolDepth",
    "LiquidityPool",
    "TwoTokenPool",
    "validate_fee_bps",
    "amount_after_fee",
    "split_fee",
    "amount_before_fee",
    "price_impact",
]
