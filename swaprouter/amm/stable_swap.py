"""Two-coin StableSwap (Curve-style) pool implementation.

The invariant D satisfies, with Ann = A * n and n = 2:

    Ann * (x + y) + D = Ann * D + D^3 / (4 * x * y)

Both D and the balance after a trade are found by Newton iteration on
Decimal values in the 78-digit context.
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
    amount_before_fee,
    price_impact,
    split_fee,
    validate_fee_bps,
)
from swaprouter.constants import STABLE_SWAP_MAX_ITERATIONS
from swaprouter.errors import StableBalanceDidNotConverge, StableInvariantDidNotConverge
from swaprouter.math.decimal_utils import (
    AMOUNT_QUANTUM,
    DECIMAL_HIGH_PREC_CONTEXT,
    ceil_amount,
    check_amount_limit,
    floor_amount,
    within_amount_limit,
)
from swaprouter.models.types import normalize_chain, normalize_token

logger = structlog.get_logger()

N_COINS = 2

# Quantum steps tried when rounding leaves an exact-output input short
EXACT_OUTPUT_NUDGES = 4


def calculate_invariant(amplification: Decimal, balance_x: Decimal, balance_y: Decimal) -> Decimal:
    """Calculate the StableSwap invariant D using Newton iteration.

    Algorithm:
        1. Initial guess: D = x + y
        2. Iterate D = (Ann*S + n*D_P) * D / ((Ann - 1) * D + (n + 1) * D_P)
           where D_P = D^3 / (4xy), until |D_new - D_old| <= 1e-18
        3. Max iterations: 255

    Raises:
        StableInvariantDidNotConverge: If iteration doesn't converge
        ValueError: If a balance is not positive
    """
    if balance_x <= 0 or balance_y <= 0:
        raise ValueError("Stable-swap balances must be positive")

    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        total = balance_x + balance_y
        ann = amplification * N_COINS
        d_prev = total
        for _ in range(STABLE_SWAP_MAX_ITERATIONS):
            d_p = d_prev
            for balance in (balance_x, balance_y):
                d_p = d_p * d_prev / (N_COINS * balance)
            numerator = (ann * total + d_p * N_COINS) * d_prev
            denominator = (ann - 1) * d_prev + (N_COINS + 1) * d_p
            d_new = numerator / denominator
            if abs(d_new - d_prev) <= AMOUNT_QUANTUM:
                return d_new
            d_prev = d_new

    raise StableInvariantDidNotConverge(
        f"Stable invariant did not converge after {STABLE_SWAP_MAX_ITERATIONS} iterations"
    )


def get_balance(amplification: Decimal, known_balance: Decimal, invariant: Decimal) -> Decimal:
    """Solve for the other balance given one balance and the invariant D.

    Newton iteration on y^2 + (b - D) * y = c with
    b = x + D / Ann and c = D^3 / (4 * x * Ann).

    Raises:
        StableBalanceDidNotConverge: If iteration doesn't converge
    """
    if known_balance <= 0:
        raise ValueError("Stable-swap balance must be positive")

    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        ann = amplification * N_COINS
        b = known_balance + invariant / ann
        c = invariant * invariant * invariant / (4 * known_balance * ann)
        y = invariant
        for _ in range(STABLE_SWAP_MAX_ITERATIONS):
            y_prev = y
            denominator = 2 * y + b - invariant
            if denominator <= 0:
                raise StableBalanceDidNotConverge("Denominator became non-positive")
            y = (y * y + c) / denominator
            if abs(y - y_prev) <= AMOUNT_QUANTUM:
                return y

    raise StableBalanceDidNotConverge(
        f"Stable get_balance did not converge after {STABLE_SWAP_MAX_ITERATIONS} iterations"
    )


@dataclass(frozen=True)
class StableSwapPool(TwoTokenPool):
    """A two-coin StableSwap pool for assets trading near parity.

    Attributes:
        amplification: The A coefficient; higher values flatten the curve
            around the balanced point
    """

    pool_id: str
    chain: str
    token0: str
    token1: str
    reserve0: Decimal
    reserve1: Decimal
    amplification: Decimal
    fee_bps: int = 4
    protocol: str = "STABLE_SWAP"
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Normalize identifiers and validate reserves, fee and amplification."""
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
        if self.amplification <= 0:
            raise ValueError(f"amplification must be positive, got {self.amplification}")
        validate_fee_bps(self.fee_bps)

    @property
    def kind(self) -> str:
        return "stable_swap"

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

    def invariant(self) -> Decimal:
        return calculate_invariant(self.amplification, self.reserve0, self.reserve1)

    def spot_price(self, token_in: str) -> Decimal | None:
        """Marginal token_out per token_in from the invariant's gradient.

        price = (Ann + D^3 / (4 x^2 y)) / (Ann + D^3 / (4 x y^2)), x = reserve_in
        """
        if not self.has_liquidity():
            return None
        x, y = self.get_reserves(token_in)
        d = self.invariant()
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            ann = self.amplification * N_COINS
            d_cubed = d * d * d
            return (ann + d_cubed / (4 * x * x * y)) / (ann + d_cubed / (4 * x * y * y))

    def _curve_output(
        self, reserve_in: Decimal, reserve_out: Decimal, curve_in: Decimal, d: Decimal
    ) -> Decimal:
        """Output of the curve for an input that has already paid the fee (floored)."""
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            new_reserve_in = reserve_in + curve_in
        new_reserve_out = get_balance(self.amplification, new_reserve_in, d)
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return floor_amount(reserve_out - new_reserve_out)

    def quote(self, token_in: str, amount_in: Decimal) -> SwapQuote | None:
        """Simulate an exact-input swap.

        Returns:
            SwapQuote, or None if the pool is empty or the math did not converge
        """
        if amount_in <= 0 or not self.has_liquidity():
            return None
        reserve_in, reserve_out = self.get_reserves(token_in)
        after_fee, fee_paid = split_fee(amount_in, self.fee_bps)
        if after_fee <= 0:
            return None

        try:
            amount_out = self._curve_output(reserve_in, reserve_out, after_fee, self.invariant())
        except (StableInvariantDidNotConverge, StableBalanceDidNotConverge) as err:
            logger.debug("stable_swap_no_convergence", pool=self.pool_id, error=str(err))
            return None

        if amount_out <= 0:
            return None
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
            SwapQuote with the required input (rounded up), or None if the
            output reserve cannot cover amount_out
        """
        if amount_out <= 0 or not self.has_liquidity():
            return None
        reserve_in, reserve_out = self.get_reserves(token_in)
        if amount_out >= reserve_out:
            return None

        try:
            d = self.invariant()
            with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
                remaining_out = reserve_out - amount_out
            new_reserve_in = get_balance(self.amplification, remaining_out, d)
            with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
                exact_in = new_reserve_in - reserve_in
            if exact_in <= 0 or not within_amount_limit(exact_in):
                return None
            curve_in = ceil_amount(exact_in)
            # Newton results are exact only to one quantum; make the forward
            # curve pay at least amount_out
            for _ in range(EXACT_OUTPUT_NUDGES):
                if self._curve_output(reserve_in, reserve_out, curve_in, d) >= amount_out:
                    break
                with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
                    curve_in += AMOUNT_QUANTUM
        except (StableInvariantDidNotConverge, StableBalanceDidNotConverge) as err:
            logger.debug("stable_swap_no_convergence", pool=self.pool_id, error=str(err))
            return None

        amount_in = amount_before_fee(curve_in, self.fee_bps)
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


__all__ = [
    "StableSwapPool",
    "calculate_invariant",
    "get_balance",
]
