"""Route ranking.

Orders priced routes by what the trader receives per unit given, breaking
ties by fewer hops, then lower slippage, then the order in which the search
produced them. The last key makes the ranking a total order, so identical
inputs always rank identically.
"""

from __future__ import annotations

import decimal
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from swaprouter.constants import DEFAULT_MAX_ALTERNATIVES
from swaprouter.math.decimal_utils import DECIMAL_HIGH_PREC_CONTEXT
from swaprouter.models.request import Side
from swaprouter.routing.types import PricedRoute


@dataclass(frozen=True)
class RankedRoutes:
    """Ranking outcome: best route, capped alternatives and the total count."""

    best: PricedRoute
    alternatives: tuple[PricedRoute, ...]
    total_routes_found: int


def route_value(route: PricedRoute) -> Decimal:
    """Value received per value given.

    Sell routes share the same input, so expected output orders them. Buy
    routes share the same output, so the output/input ratio does.
    """
    if route.side is Side.BUY:
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return route.expected_output / route.amount_in
    return route.expected_output


def rank_routes(
    routes: Sequence[PricedRoute],
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES,
) -> RankedRoutes | None:
    """Rank priced routes.

    Args:
        routes: Priced routes in search order
        max_alternatives: Maximum number of alternatives to keep

    Returns:
        RankedRoutes, or None if there is nothing to rank
    """
    if not routes:
        return None

    ordered = sorted(
        enumerate(routes),
        key=lambda item: (-route_value(item[1]), item[1].hop_count, item[1].slippage, item[0]),
    )
    ranked = [route for _index, route in ordered]
    return RankedRoutes(
        best=ranked[0],
        alternatives=tuple(ranked[1 : 1 + max_alternatives]),
        total_routes_found=len(ranked),
    )


__all__ = ["RankedRoutes", "rank_routes", "route_value"]
