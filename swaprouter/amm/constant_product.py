"""Constant-product AMM implementation.

Constant-product pools use the formula x * y = k. The fee is deducted from
the input before it reaches the curve, so for a fee of f basis points:

    amount_out = a * R_out / (R_in + a),  a = amount_in * (10000 - f) / 10000
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

import structlog

from swaprouter.amm.base import (
    PoolDepth,
    SwapQuote,
    TwoTokenPool,
    amount_after_fee,
    amount_before_fee,
    price_impact,
    split_fee,
    validate_fee_bps,
)
from swaprouter.constants import DEFAULT_FEE_BPS
from swaprouter.math.decimal_utils import (
    DECIMAL_CEIL_CONTEXT,
    DECIMAL_HIGH_PREC_CONTEXT,
    ceil_amount,
    check_amount_limit,
    floor_amount,
    within_amount_limit,
)
from swaprouter.models.types import normalize_chain, normalize_token

logger = structlog.get_logger()


@dataclass(frozen=True)
class ConstantProductPool(TwoTokenPool):
    """A constant-product (x * y = k) liquidity pool."""

    pool_id: str
    chain: str
    token0: str
    token1: str
    reserve0: Decimal
    reserve1: Decimal
    # Fee in basis points (30 = 0.3%)
    fee_bps: int = DEFAULT_FEE_BPS
    protocol: str = "CONSTANT_PRODUCT"
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Normalize identifiers and validate reserves and fee."""
        object.__setattr__(self, "chain", normalize_chain(self.chain))
        object.__setattr__(self, "token0", normalize_token(self.token0))
        object.__setattr__(self, "token1", normalize_token(self.token1))
        if self.token0 == self.token1:
            raise ValueError(f"Pool {self.pool_id} has identical tokens {self.token0}")
        if self.reserve0 < 0 or self.reserve1 < 0:
            raise ValueError(
                f"Reserves must be non-negative, got {self.reserve0} / {self.reserve1}"
            )
        check_amount_limit(self.reserve0)
        check_amount_limit(self.reserve1)
        validate_fee_bps(self.fee_bps)

    @property
    def kind(self) -> str:
        return "constant_product"

    def get_reserves(self, token_in: str) -> tuple[Decimal, Decimal]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        if self.is_token0(token_in):
            return self.reserve0, self.reserve1
        return self.reserve1, self.reserve0

    def has_liquidity(self) -> bool:
        return self.reserve0 > 0 and self.reserve1 > 0

    def depth(self, token_in: str) -> PoolDepth:
        reserve_in, reserve_out = self.get_reserves(token_in)
        return PoolDepth(
            token_in=normalize_token(token_in),
            token_out=self.other_token(token_in),
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )

    def spot_price(self, token_in: str) -> Decimal | None:
        """Marginal price in token_out per token_in (None without liquidity)."""
        reserve_in, reserve_out = self.get_reserves(token_in)
        if reserve_in <= 0 or reserve_out <= 0:
            return None
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return reserve_out / reserve_in

    def quote(self, token_in: str, amount_in: Decimal) -> SwapQuote | None:
        """Simulate an exact-input swap.

        Returns:
            SwapQuote, or None if the pool is empty or the output rounds to zero
        """
        if amount_in <= 0 or not self.has_liquidity():
            return None
        reserve_in, reserve_out = self.get_reserves(token_in)
        amount_out = ConstantProduct.get_amount_out(
            amount_in, reserve_in, reserve_out, self.fee_bps
        )
        if amount_out <= 0:
            return None

        after_fee, fee_paid = split_fee(amount_in, self.fee_bps)
        spot = self.spot_price(token_in)
        assert spot is not None
        return SwapQuote(
            pool_id=self.pool_id,
            token_in=normalize_token(token_in),
            token_out=self.other_token(token_in),
            amount_in=amount_in,
            amount_out=amount_out,
            fee_paid=fee_paid,
            price_impact=price_impact(after_fee, amount_out, spot),
            spot_price=spot,
        )

    def quote_exact_output(self, token_in: str, amount_out: Decimal) -> SwapQuote | None:
        """Simulate a swap that must deliver exactly amount_out.

        Returns:
            SwapQuote with the required input, or None if the pool cannot pay
            amount_out (it would have to drain the output reserve)
        """
        if amount_out <= 0 or not self.has_liquidity():
            return None
        reserve_in, reserve_out = self.get_reserves(token_in)
        amount_in = ConstantProduct.get_amount_in(amount_out, reserve_in, reserve_out, self.fee_bps)
        if amount_in is None:
            logger.debug(
                "exact_output_exceeds_reserve",
                pool=self.pool_id,
                amount_out=str(amount_out),
                reserve_out=str(reserve_out),
            )
            return None

        after_fee, fee_paid = split_fee(amount_in, self.fee_bps)
        spot = self.spot_price(token_in)
        assert spot is not None
        return SwapQuote(
            pool_id=self.pool_id,
            token_in=normalize_token(token_in),
            token_out=self.other_token(token_in),
            amount_in=amount_in,
            amount_out=amount_out,
            fee_paid=fee_paid,
            price_impact=price_impact(after_fee, amount_out, spot),
            spot_price=spot,
        )


class ConstantProduct:
    """Constant-product swap math on Decimal amounts."""

    @staticmethod
    def get_amount_out(
        amount_in: Decimal,
        reserve_in: Decimal,
        reserve_out: Decimal,
        fee_bps: int = DEFAULT_FEE_BPS,
    ) -> Decimal:
        """Calculate output amount using the constant product formula.

        Args:
            amount_in: Input token amount (fee included)
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_bps: Pool fee in basis points

        Returns:
            Output token amount, floored to 18 fractional digits
        """
        if amount_in <= 0 or reserve_in <= 0 or reserve_out <= 0:
            return Decimal(0)

        after_fee = amount_after_fee(amount_in, fee_bps)
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            amount_out = after_fee * reserve_out / (reserve_in + after_fee)
        return floor_amount(amount_out)

    @staticmethod
    def get_amount_in(
        amount_out: Decimal,
        reserve_in: Decimal,
        reserve_out: Decimal,
        fee_bps: int = DEFAULT_FEE_BPS,
    ) -> Decimal | None:
        """Calculate required input for a desired output.

        Formula: amount_in = (R_in * out / (R_out - out)) * 10000 / (10000 - fee)

        Args:
            amount_out: Desired output token amount
            reserve_in: Reserve of input token in pool
            reserve_out: Reserve of output token in pool
            fee_bps: Pool fee in basis points

        Returns:
            Required input amount rounded up, or None if amount_out cannot be
            reached (output reserve would be drained)
        """
        if amount_out <= 0:
            return Decimal(0)
        if reserve_in <= 0 or reserve_out <= 0:
            return None
        if amount_out >= reserve_out:
            return None

        with decimal.localcontext(DECIMAL_CEIL_CONTEXT):
            curve_in = reserve_in * amount_out / (reserve_out - amount_out)
        if not within_amount_limit(curve_in):
            return None
        return amount_before_fee(ceil_amount(curve_in), fee_bps)


__all__ = ["ConstantProductPool", "ConstantProduct"]
