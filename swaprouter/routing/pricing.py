"""Route pricing.

Simulates a candidate path hop by hop and computes its economics. Sell
requests fix the input: each hop applies its fee, then its curve, and feeds
its output to the next hop. Buy requests fix the output: the path is walked
backwards with each pool's inverse to find the required input, then priced
forward from that input so that both sides report the same economics.

Pricing never raises for market conditions: a path that cannot carry the
amount comes back as RouteInvalid with the reason.
"""

from __future__ import annotations

import decimal
import hashlib
from decimal import Decimal

from swaprouter.amm.base import SwapQuote
from swaprouter.constants import DEFAULT_MAX_PRICE_IMPACT, DEFAULT_SLIPPAGE_TOLERANCE
from swaprouter.math.decimal_utils import DECIMAL_HIGH_PREC_CONTEXT, ceil_amount, floor_amount
from swaprouter.models.request import Side
from swaprouter.routing.types import (
    CandidatePath,
    HopQuote,
    PricedRoute,
    RouteInvalid,
    SlippageLevel,
)


def route_id_for(path: CandidatePath) -> str:
    """Deterministic route identifier derived from the path."""
    digest = hashlib.sha256(path.path_id.encode()).hexdigest()
    return f"route_{digest[:16]}"


def compound_slippage(impacts: list[Decimal]) -> Decimal:
    """Compound per-hop impacts: 1 - prod(1 - impact_i)."""
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        retained = Decimal(1)
        for impact in impacts:
            retained *= 1 - impact
        return ceil_amount(1 - retained)


class RoutePricer:
    """Prices candidate paths against the pools they traverse.

    Attributes:
        max_price_impact: A hop moving the price by more than this fraction
            invalidates the path
        slippage_tolerance: Fraction deducted from the expected output to
            derive min_output
    """

    def __init__(
        self,
        max_price_impact: Decimal = DEFAULT_MAX_PRICE_IMPACT,
        slippage_tolerance: Decimal = DEFAULT_SLIPPAGE_TOLERANCE,
    ) -> None:
        self.max_price_impact = max_price_impact
        self.slippage_tolerance = slippage_tolerance

    def price(self, path: CandidatePath, amount: Decimal, side: Side) -> PricedRoute | RouteInvalid:
        """Price a path for a request amount.

        Args:
            path: The candidate path
            amount: Exact input (sell) or exact desired output (buy)
            side: Which amount is fixed

        Returns:
            PricedRoute, or RouteInvalid explaining which hop failed
        """
        if amount <= 0:
            return RouteInvalid(path, "amount must be positive")

        if side is Side.BUY:
            required = self.required_input(path, amount)
            if isinstance(required, RouteInvalid):
                return required
            amount_in = required
        else:
            amount_in = amount

        return self._price_forward(path, amount_in, side, amount)

    def required_input(self, path: CandidatePath, amount_out: Decimal) -> Decimal | RouteInvalid:
        """Walk the path backwards to find the input that yields amount_out.

        Amounts are rounded up at every hop so the result is never short.
        """
        needed = amount_out
        for index in range(path.hop_count - 1, -1, -1):
            hop = path.hops[index]
            if not hop.pool.has_liquidity():
                return RouteInvalid(path, f"pool {hop.pool.pool_id} has no liquidity", index)
            quote = hop.pool.quote_exact_output(hop.token_in, needed)
            if quote is None:
                return RouteInvalid(
                    path,
                    f"pool {hop.pool.pool_id} cannot deliver {needed} {hop.token_out}",
                    index,
                )
            if quote.price_impact > self.max_price_impact:
                return RouteInvalid(
                    path,
                    f"price impact {quote.price_impact} exceeds {self.max_price_impact} "
                    f"in pool {hop.pool.pool_id}",
                    index,
                )
            needed = quote.amount_in
        return needed

    def _price_forward(
        self,
        path: CandidatePath,
        amount_in: Decimal,
        side: Side,
        requested_amount: Decimal,
    ) -> PricedRoute | RouteInvalid:
        quotes: list[SwapQuote] = []
        current = amount_in
        for index, hop in enumerate(path.hops):
            if not hop.pool.has_liquidity():
                return RouteInvalid(path, f"pool {hop.pool.pool_id} has no liquidity", index)
            quote = hop.pool.quote(hop.token_in, current)
            if quote is None or quote.amount_out <= 0:
                return RouteInvalid(
                    path,
                    f"pool {hop.pool.pool_id} cannot absorb {current} {hop.token_in}",
                    index,
                )
            if quote.price_impact > self.max_price_impact:
                return RouteInvalid(
                    path,
                    f"price impact {quote.price_impact} exceeds {self.max_price_impact} "
                    f"in pool {hop.pool.pool_id}",
                    index,
                )
            quotes.append(quote)
            current = quote.amount_out

        fee_values = self._fee_values(quotes)
        hops = tuple(
            HopQuote(
                pool_id=hop.pool.pool_id,
                protocol=hop.pool.protocol,
                kind=hop.pool.kind,
                chain=hop.pool.chain,
                token_in=quote.token_in,
                token_out=quote.token_out,
                amount_in=quote.amount_in,
                amount_out=quote.amount_out,
                fee_bps=hop.pool.fee_bps,
                fee_paid=quote.fee_paid,
                fee_value=fee_value,
                price_impact=quote.price_impact,
                spot_price=quote.spot_price,
            )
            for hop, quote, fee_value in zip(path.hops, quotes, fee_values)
        )

        expected_output = current
        slippage = compound_slippage([quote.price_impact for quote in quotes])
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            min_output = floor_amount(expected_output * (1 - self.slippage_tolerance))
            fees = sum(fee_values, Decimal(0))

        return PricedRoute(
            route_id=route_id_for(path),
            path=path,
            side=side,
            requested_amount=requested_amount,
            amount_in=amount_in,
            expected_output=expected_output,
            hops=hops,
            fees=fees,
            slippage=slippage,
            min_output=min_output,
            warning_level=SlippageLevel.classify(slippage),
        )

    @staticmethod
    def _fee_values(quotes: list[SwapQuote]) -> list[Decimal]:
        """Value each hop's fee in the destination token.

        A fee paid in hop i's input token is converted at hop i's spot price
        and then through the spot prices of every later hop.
        """
        values = []
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            for index, quote in enumerate(quotes):
                value = quote.fee_paid * quote.spot_price
                for later in quotes[index + 1 :]:
                    value *= later.spot_price
                values.append(floor_amount(value))
        return values


__all__ = ["RoutePricer", "route_id_for", "compound_slippage"]
