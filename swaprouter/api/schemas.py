"""Pydantic response models for the routing HTTP API.

Field names are snake_case in Python and camelCase on the wire; amounts are
serialized as decimal strings so no precision is lost in JSON.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from swaprouter.liquidity.snapshot import MarketDepth, SpotPrice
from swaprouter.liquidity.store import ReloadReport
from swaprouter.math.decimal_utils import format_amount
from swaprouter.pools.types import AnyPool
from swaprouter.routing.explain import explain_route, route_summary
from swaprouter.routing.types import HopFee, HopQuote, PlanFailure, PricedRoute, RoutingResult


def _optional_amount(value: Decimal | None) -> str | None:
    return format_amount(value) if value is not None else None


class HopView(BaseModel):
    """One priced hop of a route."""

    pool_id: str = Field(alias="poolId")
    protocol: str
    kind: str
    chain: str
    token_in: str = Field(alias="tokenIn")
    token_out: str = Field(alias="tokenOut")
    amount_in: str = Field(alias="amountIn", description="Input amount as decimal string")
    amount_out: str = Field(alias="amountOut", description="Output amount as decimal string")
    fee_bps: int = Field(alias="feeBps")
    fee_paid: str = Field(alias="feePaid", description="Fee in units of tokenIn")
    fee_usd: str | None = Field(default=None, alias="feeUsd", description="Pool fee in USD")
    price_impact: str = Field(alias="priceImpact", description="Fraction, e.g. 0.0123")
    spot_price: str = Field(alias="spotPrice")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_hop(cls, hop: HopQuote, fee: HopFee | None = None) -> HopView:
        return cls(
            pool_id=hop.pool_id,
            protocol=hop.protocol,
            kind=hop.kind,
            chain=hop.chain,
            token_in=hop.token_in,
            token_out=hop.token_out,
            amount_in=format_amount(hop.amount_in),
            amount_out=format_amount(hop.amount_out),
            fee_bps=hop.fee_bps,
            fee_paid=format_amount(hop.fee_paid),
            fee_usd=_optional_amount(fee.fee_usd) if fee is not None else None,
            price_impact=format_amount(hop.price_impact),
            spot_price=format_amount(hop.spot_price),
        )


class RouteView(BaseModel):
    """A priced route with its explanation."""

    route_id: str = Field(alias="routeId")
    summary: str
    chain: str
    side: str
    tokens: list[str]
    hop_count: int = Field(alias="hopCount")
    amount_in: str = Field(alias="amountIn")
    expected_output: str = Field(alias="expectedOutput")
    min_output: str = Field(alias="minOutput")
    fees: str = Field(description="Total fees valued in the destination token")
    fees_usd: str | None = Field(
        default=None, alias="feesUsd", description="Pool and network fees in USD"
    )
    network_fee: str | None = Field(default=None, alias="networkFee")
    network_fee_token: str | None = Field(default=None, alias="networkFeeToken")
    slippage: str = Field(description="Compounded price impact as a fraction")
    warning_level: str = Field(alias="warningLevel")
    hops: list[HopView]
    explanation: str

    model_config = {"populate_by_name": True}

    @classmethod
    def from_route(cls, route: PricedRoute) -> RouteView:
        breakdown = route.fee_breakdown
        hop_fees = breakdown.hops if breakdown is not None else (None,) * route.hop_count
        return cls(
            route_id=route.route_id,
            summary=route_summary(route),
            chain=route.chain,
            side=route.side.value,
            tokens=list(route.tokens),
            hop_count=route.hop_count,
            amount_in=format_amount(route.amount_in),
            expected_output=format_amount(route.expected_output),
            min_output=format_amount(route.min_output),
            fees=format_amount(route.fees),
            fees_usd=_optional_amount(route.fees_usd),
            network_fee=_optional_amount(breakdown.network_fee) if breakdown is not None else None,
            network_fee_token=breakdown.native_token if breakdown is not None else None,
            slippage=format_amount(route.slippage),
            warning_level=route.warning_level.value,
            hops=[HopView.from_hop(hop, fee) for hop, fee in zip(route.hops, hop_fees)],
            explanation=explain_route(route),
        )


class QuoteResponse(BaseModel):
    """Successful GET /quote response."""

    success: bool = True
    best_route: RouteView = Field(alias="bestRoute")
    alternative_routes: list[RouteView] = Field(alias="alternativeRoutes")
    expected_output: str = Field(alias="expectedOutput")
    fees: str
    fees_usd: str | None = Field(default=None, alias="feesUsd")
    slippage: str
    route_explanation: str = Field(alias="routeExplanation")
    total_routes_found: int = Field(alias="totalRoutesFound")
    partial: bool = False
    preview: bool = False
    snapshot_version: int = Field(alias="snapshotVersion")
    timestamp: datetime

    model_config = {"populate_by_name": True}

    @classmethod
    def from_result(cls, result: RoutingResult) -> QuoteResponse:
        best = RouteView.from_route(result.best_route)
        return cls(
            best_route=best,
            alternative_routes=[RouteView.from_route(route) for route in result.alternative_routes],
            expected_output=best.expected_output,
            fees=best.fees,
            fees_usd=best.fees_usd,
            slippage=best.slippage,
            route_explanation=best.explanation,
            total_routes_found=result.total_routes_found,
            partial=result.partial,
            preview=result.preview,
            snapshot_version=result.snapshot_version,
            timestamp=result.timestamp,
        )


class ErrorResponse(BaseModel):
    """Error body shared by every failing endpoint."""

    success: bool = False
    error_code: str = Field(alias="errorCode")
    error: str
    details: list[str] = Field(default_factory=list)
    partial: bool = False
    snapshot_version: int | None = Field(default=None, alias="snapshotVersion")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_failure(cls, failure: PlanFailure, error_code: str) -> ErrorResponse:
        return cls(
            error_code=error_code,
            error=failure.message,
            details=list(failure.errors),
            partial=failure.partial,
            snapshot_version=failure.snapshot_version,
        )


class PoolView(BaseModel):
    """A pool as listed by GET /pools."""

    pool_id: str = Field(alias="poolId")
    kind: str
    protocol: str
    chain: str
    token0: str
    token1: str
    reserve0: str = Field(description="token0 liquidity (bid size for order books)")
    reserve1: str = Field(description="token1 liquidity (bid notional for order books)")
    fee_bps: int = Field(alias="feeBps")
    has_liquidity: bool = Field(alias="hasLiquidity")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_pool(cls, pool: AnyPool) -> PoolView:
        depth = pool.depth(pool.token0)
        return cls(
            pool_id=pool.pool_id,
            kind=pool.kind,
            protocol=pool.protocol,
            chain=pool.chain,
            token0=pool.token0,
            token1=pool.token1,
            reserve0=format_amount(depth.reserve_in),
            reserve1=format_amount(depth.reserve_out),
            fee_bps=pool.fee_bps,
            has_liquidity=pool.has_liquidity(),
            updated_at=pool.updated_at,
        )


class PoolsResponse(BaseModel):
    """GET /pools response."""

    chain: str
    pools: list[PoolView]
    count: int


class PriceResponse(BaseModel):
    """GET /price response."""

    base: str
    quote: str
    spot_price: str = Field(alias="spotPrice")
    source: str

    model_config = {"populate_by_name": True}

    @classmethod
    def from_price(cls, price: SpotPrice) -> PriceResponse:
        return cls(
            base=price.base,
            quote=price.quote,
            spot_price=format_amount(price.price),
            source=price.source,
        )


class DepthPointView(BaseModel):
    amount_in: str = Field(alias="amountIn")
    amount_out: str = Field(alias="amountOut")
    price_impact: str = Field(alias="priceImpact")
    effective_price: str = Field(alias="effectivePrice")

    model_config = {"populate_by_name": True}


class DepthView(BaseModel):
    pool_id: str = Field(alias="poolId")
    kind: str
    protocol: str
    fee_bps: int = Field(alias="feeBps")
    reserve0: str
    reserve1: str
    spot_price: str | None = Field(default=None, alias="spotPrice")
    reserve0_usd: str | None = Field(default=None, alias="reserve0Usd")
    reserve1_usd: str | None = Field(default=None, alias="reserve1Usd")
    total_liquidity_usd: str | None = Field(default=None, alias="totalLiquidityUsd")
    slippage_curve: list[DepthPointView] = Field(alias="slippageCurve")

    model_config = {"populate_by_name": True}


class DepthResponse(BaseModel):
    """GET /depth response."""

    chain: str
    token0: str
    token1: str
    depth: DepthView

    @classmethod
    def from_depth(cls, depth: MarketDepth) -> DepthResponse:
        return cls(
            chain=depth.chain,
            token0=depth.token0,
            token1=depth.token1,
            depth=DepthView(
                pool_id=depth.pool_id,
                kind=depth.kind,
                protocol=depth.protocol,
                fee_bps=depth.fee_bps,
                reserve0=format_amount(depth.reserve0),
                reserve1=format_amount(depth.reserve1),
                spot_price=_optional_amount(depth.spot_price),
                reserve0_usd=_optional_amount(depth.reserve0_usd),
                reserve1_usd=_optional_amount(depth.reserve1_usd),
                total_liquidity_usd=_optional_amount(depth.total_liquidity_usd),
                slippage_curve=[
                    DepthPointView(
                        amount_in=format_amount(point.amount_in),
                        amount_out=format_amount(point.amount_out),
                        price_impact=format_amount(point.price_impact),
                        effective_price=format_amount(point.effective_price),
                    )
                    for point in depth.curve
                ],
            ),
        )


class ReloadResponse(BaseModel):
    """POST /reload response."""

    success: bool = True
    snapshot_version: int = Field(alias="snapshotVersion")
    sources: list[str]
    failed_sources: dict[str, str] = Field(alias="failedSources")
    pool_count: int = Field(alias="poolCount")
    duration_ms: float = Field(alias="durationMs")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_report(cls, report: ReloadReport) -> ReloadResponse:
        return cls(
            snapshot_version=report.version,
            sources=list(report.succeeded),
            failed_sources=dict(report.failed),
            pool_count=report.pool_count,
            duration_ms=round(report.duration_seconds * 1000, 1),
        )


__all__ = [
    "HopView",
    "RouteView",
    "QuoteResponse",
    "ErrorResponse",
    "PoolView",
    "PoolsResponse",
    "PriceResponse",
    "DepthPointView",
    "DepthView",
    "DepthResponse",
    "ReloadResponse",
]
