"""Data types for routing results.

Candidate paths come out of the search, priced routes out of the pricer,
and RoutingResult / PlanFailure out of the planner. All are immutable.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TypeAlias

from swaprouter.constants import (
    SLIPPAGE_CRITICAL_THRESHOLD,
    SLIPPAGE_EXCESSIVE_THRESHOLD,
    SLIPPAGE_WARNING_THRESHOLD,
)
from swaprouter.math.decimal_utils import DECIMAL_HIGH_PREC_CONTEXT
from swaprouter.models.request import Side
from swaprouter.pools.types import AnyPool


@dataclass(frozen=True)
class PathHop:
    """One step of a candidate path: trade token_in for token_out in pool."""

    pool: AnyPool
    token_in: str
    token_out: str


@dataclass(frozen=True)
class CandidatePath:
    """An ordered, acyclic sequence of hops on a single chain."""

    hops: tuple[PathHop, ...]

    def __post_init__(self) -> None:
        """Validate that hops are connected, acyclic and on one chain."""
        if not self.hops:
            raise ValueError("A path needs at least one hop")
        chain = self.hops[0].pool.chain
        seen = {self.hops[0].token_in}
        for previous, hop in zip((None, *self.hops), self.hops):
            if previous is not None and previous.token_out != hop.token_in:
                raise ValueError(
                    f"Disconnected path: {previous.token_out} does not feed {hop.token_in}"
                )
            if hop.pool.chain != chain:
                raise ValueError("All hops of a path must be on one chain")
            if hop.token_out in seen:
                raise ValueError(f"Path revisits token {hop.token_out}")
            seen.add(hop.token_out)

    @property
    def chain(self) -> str:
        return self.hops[0].pool.chain

    @property
    def token_in(self) -> str:
        return self.hops[0].token_in

    @property
    def token_out(self) -> str:
        return self.hops[-1].token_out

    @property
    def tokens(self) -> tuple[str, ...]:
        """Token sequence, e.g. ("ETH", "USDT", "USDC")."""
        return (self.hops[0].token_in, *(hop.token_out for hop in self.hops))

    @property
    def hop_count(self) -> int:
        return len(self.hops)

    @property
    def pool_ids(self) -> tuple[str, ...]:
        return tuple(hop.pool.pool_id for hop in self.hops)

    @property
    def path_id(self) -> str:
        """Stable textual identity of the path (chain, tokens and pools)."""
        steps = ">".join(
            f"{hop.token_in}-[{hop.pool.pool_id}]-{hop.token_out}" for hop in self.hops
        )
        return f"{self.chain}:{steps}"


class SlippageLevel(str, Enum):
    """Classification of compounded slippage."""

    NONE = "none"
    WARNING = "warning"
    EXCESSIVE = "excessive"
    CRITICAL = "critical"

    @classmethod
    def classify(cls, slippage: Decimal) -> SlippageLevel:
        """Map a slippage fraction to its level (thresholds 1%, 5%, 10%)."""
        if slippage >= SLIPPAGE_CRITICAL_THRESHOLD:
            return cls.CRITICAL
        if slippage >= SLIPPAGE_EXCESSIVE_THRESHOLD:
            return cls.EXCESSIVE
        if slippage >= SLIPPAGE_WARNING_THRESHOLD:
            return cls.WARNING
        return cls.NONE


@dataclass(frozen=True)
class HopQuote:
    """Priced economics of one hop.

    Attributes:
        fee_paid: Fee in units of token_in
        fee_value: The same fee valued in the route's destination token
    """

    pool_id: str
    protocol: str
    kind: str
    chain: str
    token_in: str
    token_out: str
    amount_in: Decimal
    amount_out: Decimal
    fee_bps: int
    fee_paid: Decimal
    fee_value: Decimal
    price_impact: Decimal
    spot_price: Decimal


@dataclass(frozen=True)
class HopFee:
    """USD cost of one hop: the pool fee plus the network fee of its transaction."""

    pool_id: str
    fee_paid: Decimal
    fee_token: str
    fee_usd: Decimal | None
    network_fee: Decimal
    network_fee_usd: Decimal | None


@dataclass(frozen=True)
class RouteFees:
    """Route costs valued in USD.

    Attributes:
        native_token: Token network fees are paid in (None if the chain has no
            configured network fee)
        network_fee: Network fees of all hops in native token units
        pool_fees_usd: Sum of pool fees in USD (None if any fee is unpriced)
        network_fee_usd: network_fee in USD (None if the native token is unpriced)
        total_usd: pool_fees_usd + network_fee_usd, None if either is unknown
    """

    native_token: str | None
    network_fee: Decimal
    pool_fees_usd: Decimal | None
    network_fee_usd: Decimal | None
    total_usd: Decimal | None
    hops: tuple[HopFee, ...] = ()


@dataclass(frozen=True)
class PricedRoute:
    """A candidate path with computed economics.

    Attributes:
        route_id: Deterministic identifier derived from the path
        amount_in: Input to the first hop (exact for sell, required for buy)
        expected_output: Output of the last hop
        fees: Sum of hop fees valued in the destination token
        slippage: Compounded price impact 1 - prod(1 - impact_i)
        min_output: expected_output reduced by the slippage tolerance
        requested_amount: The amount from the request (input for sell,
            desired output for buy)
        fee_breakdown: USD valuation of pool and network fees, attached by the
            planner once the snapshot prices are known
    """

    route_id: str
    path: CandidatePath
    side: Side
    requested_amount: Decimal
    amount_in: Decimal
    expected_output: Decimal
    hops: tuple[HopQuote, ...]
    fees: Decimal
    slippage: Decimal
    min_output: Decimal
    warning_level: SlippageLevel
    fee_breakdown: RouteFees | None = None

    @property
    def chain(self) -> str:
        return self.path.chain

    @property
    def tokens(self) -> tuple[str, ...]:
        return self.path.tokens

    @property
    def hop_count(self) -> int:
        return self.path.hop_count

    @property
    def effective_price(self) -> Decimal:
        """Destination tokens received per source token."""
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            return self.expected_output / self.amount_in

    @property
    def fees_usd(self) -> Decimal | None:
        """Total route cost in USD, if every component could be priced."""
        return self.fee_breakdown.total_usd if self.fee_breakdown is not None else None


@dataclass(frozen=True)
class RouteInvalid:
    """Why a candidate path could not be priced."""

    path: CandidatePath
    reason: str
    hop_index: int | None = None


class FailureReason(str, Enum):
    INVALID_REQUEST = "invalid_request"
    NO_ROUTE_FOUND = "no_route_found"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class RoutingResult:
    """Successful planning outcome.

    Attributes:
        best_route: Top-ranked route
        alternative_routes: Next-best routes, best first, excluding best_route
        total_routes_found: Number of valid priced candidates (before capping)
        partial: True if the deadline cut pricing short
    """

    best_route: PricedRoute
    alternative_routes: tuple[PricedRoute, ...]
    total_routes_found: int
    timestamp: datetime
    snapshot_version: int
    partial: bool = False
    preview: bool = False

    @property
    def success(self) -> bool:
        return True

    @property
    def routes(self) -> tuple[PricedRoute, ...]:
        """Best route followed by the alternatives."""
        return (self.best_route, *self.alternative_routes)


@dataclass(frozen=True)
class PlanFailure:
    """Typed planning failure returned instead of raising."""

    reason: FailureReason
    message: str
    errors: tuple[str, ...] = field(default_factory=tuple)
    total_routes_found: int = 0
    snapshot_version: int | None = None
    partial: bool = False

    @property
    def success(self) -> bool:
        return False


PlanOutcome: TypeAlias = RoutingResult | PlanFailure


__all__ = [
    "PathHop",
    "CandidatePath",
    "SlippageLevel",
    "HopQuote",
    "HopFee",
    "RouteFees",
    "PricedRoute",
    "RouteInvalid",
    "FailureReason",
    "RoutingResult",
    "PlanFailure",
    "PlanOutcome",
]
