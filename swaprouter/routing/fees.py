"""USD valuation of route costs.

A route costs its pool fees plus one network fee per hop. Pool fees are
valued at the USD price of the hop's input token, falling back to the fee's
value in the destination token. Network fees are paid in the chain's native
token and valued at its USD price. Any component without a price leaves the
corresponding USD figure as None rather than guessing.
"""

from __future__ import annotations

import decimal
from collections.abc import Callable, Mapping
from dataclasses import replace
from decimal import Decimal

import structlog

from swaprouter.config import DEFAULT_NETWORK_FEES, NetworkFee
from swaprouter.math.decimal_utils import DECIMAL_HIGH_PREC_CONTEXT, floor_amount
from swaprouter.routing.types import HopFee, HopQuote, PricedRoute, RouteFees

logger = structlog.get_logger()

UsdPriceLookup = Callable[[str], Decimal | None]


def _usd(amount: Decimal, price: Decimal | None) -> Decimal | None:
    if price is None:
        return None
    with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
        return floor_amount(amount * price)


def _sum(values: list[Decimal | None]) -> Decimal | None:
    if any(value is None for value in values):
        return None
    return sum((value for value in values if value is not None), Decimal(0))


class FeeModel:
    """Values route fees in USD using per-chain network fees."""

    def __init__(self, network_fees: Mapping[str, NetworkFee] | None = None) -> None:
        self.network_fees = DEFAULT_NETWORK_FEES if network_fees is None else network_fees

    def route_fees(self, route: PricedRoute, usd_price: UsdPriceLookup) -> RouteFees:
        """Break down the USD cost of a priced route.

        Args:
            route: Route to value
            usd_price: Token -> USD price lookup (None when unknown)

        Returns:
            RouteFees with one HopFee per hop
        """
        network = self.network_fees.get(route.chain)
        hop_network_fee = network.per_hop if network is not None else Decimal(0)
        native_price = usd_price(network.native_token) if network is not None else Decimal(0)
        destination_price = usd_price(route.path.token_out)

        hops = tuple(
            self._hop_fee(hop, hop_network_fee, native_price, destination_price, usd_price)
            for hop in route.hops
        )
        pool_fees_usd = _sum([hop.fee_usd for hop in hops])
        network_fee_usd = _sum([hop.network_fee_usd for hop in hops])
        total = _sum([pool_fees_usd, network_fee_usd])
        if total is None:
            logger.debug(
                "route_fees_unpriced",
                route=route.route_id,
                pool_fees_priced=pool_fees_usd is not None,
                network_fee_priced=network_fee_usd is not None,
            )
        return RouteFees(
            native_token=network.native_token if network is not None else None,
            network_fee=hop_network_fee * route.hop_count,
            pool_fees_usd=pool_fees_usd,
            network_fee_usd=network_fee_usd,
            total_usd=total,
            hops=hops,
        )

    def apply(self, route: PricedRoute, usd_price: UsdPriceLookup) -> PricedRoute:
        """Copy of route with its fee breakdown attached."""
        return replace(route, fee_breakdown=self.route_fees(route, usd_price))

    @staticmethod
    def _hop_fee(
        hop: HopQuote,
        network_fee: Decimal,
        native_price: Decimal | None,
        destination_price: Decimal | None,
        usd_price: UsdPriceLookup,
    ) -> HopFee:
        token_in_price = usd_price(hop.token_in)
        if token_in_price is not None:
            fee_usd = _usd(hop.fee_paid, token_in_price)
        else:
            fee_usd = _usd(hop.fee_value, destination_price)
        return HopFee(
            pool_id=hop.pool_id,
            fee_paid=hop.fee_paid,
            fee_token=hop.token_in,
            fee_usd=fee_usd,
            network_fee=network_fee,
            network_fee_usd=_usd(network_fee, native_price),
        )


__all__ = ["FeeModel", "UsdPriceLookup"]
