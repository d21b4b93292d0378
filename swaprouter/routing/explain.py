"""Human-readable route explanations."""

from __future__ import annotations

from swaprouter.math.decimal_utils import format_amount, format_percent, format_usd
from swaprouter.routing.types import PricedRoute, SlippageLevel


def route_summary(route: PricedRoute) -> str:
    """One-line summary of a route.

    Direct routes name the pool protocol; multi-hop routes list the tokens:
        "ETH → USDC on ETH via UNISWAP_V2"
        "ETH → USDT → USDC on ETH (2 hops)"
    """
    tokens = " → ".join(route.tokens)
    if route.hop_count == 1:
        return f"{tokens} on {route.chain} via {route.hops[0].protocol}"
    return f"{tokens} on {route.chain} ({route.hop_count} hops)"


def explain_route(route: PricedRoute) -> str:
    """Render a multi-line explanation of a priced route.

    The output is a pure function of the route: the same route always gives
    the same text.
    """
    destination = route.path.token_out
    source = route.path.token_in
    protocols = ", ".join(dict.fromkeys(hop.protocol for hop in route.hops))

    lines = [
        f"Route: {route_summary(route)}",
        f"Hops: {route.hop_count}, Chain: {route.chain}, Protocols: {protocols}",
    ]
    for index, hop in enumerate(route.hops, start=1):
        lines.append(
            f"  {index}. {hop.token_in} → {hop.token_out} on {hop.chain} via {hop.pool_id} "
            f"({hop.protocol}), fee {hop.fee_bps} bps, "
            f"price impact {format_percent(hop.price_impact)}"
        )
    lines.append(f"Amount In: {format_amount(route.amount_in)} {source}")
    lines.append(f"Expected Output: {format_amount(route.expected_output)} {destination}")
    lines.append(f"Minimum Output: {format_amount(route.min_output)} {destination}")
    lines.append(f"Pool Fees: {format_amount(route.fees)} {destination}")
    breakdown = route.fee_breakdown
    if breakdown is not None and breakdown.native_token is not None:
        lines.append(
            f"Network Fee: {format_amount(breakdown.network_fee)} {breakdown.native_token}"
        )
    if route.fees_usd is not None:
        lines.append(f"Total Fee: {format_usd(route.fees_usd)}")

    slippage_line = f"Slippage: {format_percent(route.slippage)}"
    if route.warning_level is not SlippageLevel.NONE:
        slippage_line += f" ({route.warning_level.value.upper()})"
    lines.append(slippage_line)
    return "\n".join(lines)


__all__ = ["explain_route", "route_summary"]
