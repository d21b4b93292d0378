"""Order-book depth pool.

An order book is modelled as a base/quote pair with price levels:
- bids: buyers of base, paying `price` quote per base, up to `size` base
- asks: sellers of base, asking `price` quote per base, up to `size` base

Selling base walks the bids from the best (highest) price down; selling
quote walks the asks from the best (lowest) price up. Unlike curve pools an
order book can be exhausted: an input larger than the book absorbs yields
no quote rather than a partially filled one.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from swaprouter.amm.base import (
    PoolDepth,
    SwapQuote,
    TwoTokenPool,
    amount_before_fee,
    price_impact,
    split_fee,
    validate_fee_bps,
)
from swaprouter.math.decimal_utils import (
    DECIMAL_CEIL_CONTEXT,
    DECIMAL_HIGH_PREC_CONTEXT,
    ceil_amount,
    check_amount_limit,
    floor_amount,
    within_amount_limit,
)
from swaprouter.models.types import normalize_chain, normalize_token


@dataclass(frozen=True)
class BookLevel:
    """One price level: `size` units of base at `price` quote per base."""

    price: Decimal
    size: Decimal

    def __post_init__(self) -> None:
        """Validate price and size are positive and within the amount limit."""
        if self.price <= 0:
            raise ValueError(f"Level price must be positive, got {self.price}")
        if self.size <= 0:
            raise ValueError(f"Level size must be positive, got {self.size}")
        check_amount_limit(self.price)
        check_amount_limit(self.size)

    @property
    def notional(self) -> Decimal:
        """Quote value of the whole level."""
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return self.price * self.size


@dataclass(frozen=True)
class OrderBookPool(TwoTokenPool):
    """Order-book liquidity for one base/quote market.

    token0 is the base token and token1 the quote token. Levels are sorted on
    construction: bids by descending price, asks by ascending price.
    """

    pool_id: str
    chain: str
    token0: str
    token1: str
    bids: tuple[BookLevel, ...] = field(default_factory=tuple)
    asks: tuple[BookLevel, ...] = field(default_factory=tuple)
    fee_bps: int = 0
    protocol: str = "ORDER_BOOK"
    updated_at: datetime | None = None

    def __post_init__(self) -> None:
        """Normalize identifiers, sort levels and validate the fee."""
        object.__setattr__(self, "chain", normalize_chain(self.chain))
        object.__setattr__(self, "token0", normalize_token(self.token0))
        object.__setattr__(self, "token1", normalize_token(self.token1))
        if self.token0 == self.token1:
            raise ValueError(f"Pool {self.pool_id} has identical tokens {self.token0}")
        object.__setattr__(
            self, "bids", tuple(sorted(self.bids, key=lambda level: level.price, reverse=True))
        )
        object.__setattr__(self, "asks", tuple(sorted(self.asks, key=lambda level: level.price)))
        validate_fee_bps(self.fee_bps)

    @property
    def kind(self) -> str:
        return "order_book"

    @property
    def base(self) -> str:
        return self.token0

    @property
    def quote_token(self) -> str:
        return self.token1

    def has_liquidity(self) -> bool:
        return bool(self.bids or self.asks)

    def depth(self, token_in: str) -> PoolDepth:
        """Total input the book absorbs and total output it can pay."""
        levels = self.bids if self.is_token0(token_in) else self.asks
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            sizes = sum((level.size for level in levels), Decimal(0))
            notionals = sum((level.notional for level in levels), Decimal(0))
        if self.is_token0(token_in):
            reserve_in, reserve_out = sizes, notionals
        else:
            reserve_in, reserve_out = notionals, sizes
        return PoolDepth(
            token_in=normalize_token(token_in),
            token_out=self.other_token(token_in),
            reserve_in=reserve_in,
            reserve_out=reserve_out,
        )

    def spot_price(self, token_in: str) -> Decimal | None:
        """Best executable price in token_out per token_in."""
        if self.is_token0(token_in):
            return self.bids[0].price if self.bids else None
        if not self.asks:
            return None
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return 1 / self.asks[0].price

    def _fill_out(self, selling_base: bool, amount: Decimal) -> Decimal | None:
        """Output for `amount` of input reaching the book (None if exhausted)."""
        remaining = amount
        received = Decimal(0)
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            if selling_base:
                for level in self.bids:
                    take = min(remaining, level.size)
                    received += take * level.price
                    remaining -= take
                    if remaining <= 0:
                        return received
            else:
                for level in self.asks:
                    take = min(remaining, level.notional)
                    received += take / level.price
                    remaining -= take
                    if remaining <= 0:
                        return received
        return None

    def _fill_in(self, selling_base: bool, amount_out: Decimal) -> Decimal | None:
        """Input needed so the book pays exactly amount_out (None if exhausted)."""
        remaining = amount_out
        required = Decimal(0)
        with decimal.localcontext(DECIMAL_CEIL_CONTEXT):
            if selling_base:
                for level in self.bids:
                    take = min(remaining, level.notional)
                    required += take / level.price
                    remaining -= take
                    if remaining <= 0:
                        return required
            else:
                for level in self.asks:
                    take = min(remaining, level.size)
                    required += take * level.price
                    remaining -= take
                    if remaining <= 0:
                        return required
        return None

    def quote(self, token_in: str, amount_in: Decimal) -> SwapQuote | None:
        """Simulate an exact-input swap by walking the book.

        Returns:
            SwapQuote, or None if the book cannot absorb the whole amount
        """
        if amount_in <= 0:
            return None
        selling_base = self.is_token0(token_in)
        spot = self.spot_price(token_in)
        if spot is None:
            return None
        after_fee, fee_paid = split_fee(amount_in, self.fee_bps)
        filled = self._fill_out(selling_base, after_fee)
        if filled is None:
            return None
        amount_out = floor_amount(filled)
        if amount_out <= 0:
            return None
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
            SwapQuote with the required input, or None if the book is too thin
        """
        if amount_out <= 0:
            return None
        selling_base = self.is_token0(token_in)
        spot = self.spot_price(token_in)
        if spot is None:
            return None
        needed = self._fill_in(selling_base, amount_out)
        if needed is None or not within_amount_limit(needed):
            return None
        amount_in = amount_before_fee(ceil_amount(needed), self.fee_bps)
        after_fee, fee_paid = split_fee(amount_in, self.fee_bps)
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


__all__ = ["BookLevel", "OrderBookPool"]
