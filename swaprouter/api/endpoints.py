"""API endpoints for swap routing."""

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from swaprouter.api.schemas import (
    DepthResponse,
    ErrorResponse,
    PoolsResponse,
    PoolView,
    PriceResponse,
    QuoteResponse,
    ReloadResponse,
)
from swaprouter.errors import SourceUnavailableError
from swaprouter.liquidity.snapshot import Snapshot
from swaprouter.models.types import normalize_chain
from swaprouter.planner import RoutePlanner, get_default_planner
from swaprouter.routing.types import FailureReason, PlanFailure

logger = structlog.get_logger()

router = APIRouter(prefix="/api/routing")

# Planning failure -> (HTTP status, errorCode)
FAILURE_STATUS: dict[FailureReason, tuple[int, str]] = {
    FailureReason.INVALID_REQUEST: (400, "INVALID_REQUEST"),
    FailureReason.NO_ROUTE_FOUND: (422, "NO_ROUTE"),
    FailureReason.INTERNAL_ERROR: (500, "INTERNAL_ERROR"),
}


def get_planner() -> RoutePlanner:
    """Dependency provider for the planner instance.

    Override this in tests to inject a planner over fixed liquidity:
        app.dependency_overrides[get_planner] = lambda: planner

    Returns:
        The planner instance to use for routing requests.
    """
    return get_default_planner()


def error_response(
    status_code: int, error_code: str, message: str, details: list[str] | None = None
) -> JSONResponse:
    body = ErrorResponse(error_code=error_code, error=message, details=details or [])
    return JSONResponse(
        status_code=status_code, content=body.model_dump(mode="json", by_alias=True)
    )


def failure_response(failure: PlanFailure) -> JSONResponse:
    status_code, error_code = FAILURE_STATUS[failure.reason]
    body = ErrorResponse.from_failure(failure, error_code)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(mode="json", by_alias=True)
    )


async def _snapshot(planner: RoutePlanner) -> Snapshot:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, planner.ensure_snapshot)


def _missing(**params: str | None) -> list[str]:
    return [f"{name}: Field required" for name, value in params.items() if not value]


@router.get("/quote", response_model=QuoteResponse, responses={400: {"model": ErrorResponse}})
async def quote(
    from_token: str | None = Query(default=None, alias="fromToken"),
    to_token: str | None = Query(default=None, alias="toToken"),
    amount: str | None = Query(default=None),
    side: str | None = Query(default=None),
    from_chain: str | None = Query(default=None, alias="fromChain"),
    to_chain: str | None = Query(default=None, alias="toChain"),
    preview: str | None = Query(default=None),
    planner: RoutePlanner = Depends(get_planner),
) -> QuoteResponse | JSONResponse:
    """Plan routes for a swap and return the best route with alternatives.

    Every parameter is optional at the HTTP level; validation happens in the
    planner so that all violated constraints are reported together with a
    400 rather than FastAPI's 422.

    Error Handling:
        - Invalid request: 400 INVALID_REQUEST with the violated constraints
        - No surviving route: 422 NO_ROUTE
        - Internal error: 500 INTERNAL_ERROR (details logged, not returned)
    """
    provided = {
        "fromToken": from_token,
        "toToken": to_token,
        "amount": amount,
        "side": side,
        "fromChain": from_chain,
        "toChain": to_chain,
        "preview": preview,
    }
    payload: dict[str, Any] = {key: value for key, value in provided.items() if value is not None}
    logger.info("received_quote_request", **payload)

    loop = asyncio.get_running_loop()
    outcome = await loop.run_in_executor(None, planner.plan_routes, payload)

    if isinstance(outcome, PlanFailure):
        return failure_response(outcome)

    logger.info(
        "returning_quote",
        route_id=outcome.best_route.route_id,
        total_routes=outcome.total_routes_found,
        partial=outcome.partial,
    )
    return QuoteResponse.from_result(outcome)


@router.get("/pools", response_model=PoolsResponse, responses={400: {"model": ErrorResponse}})
async def pools(
    chain: str | None = Query(default=None),
    planner: RoutePlanner = Depends(get_planner),
) -> PoolsResponse | JSONResponse:
    """List the pools of a chain in the current snapshot."""
    missing = _missing(chain=chain.strip() if chain else None)
    if missing:
        return error_response(400, "INVALID_REQUEST", "chain is required", missing)
    assert chain is not None

    snapshot = await _snapshot(planner)
    chain_pools = snapshot.get_chain_pools(chain)
    return PoolsResponse(
        chain=normalize_chain(chain),
        pools=[PoolView.from_pool(pool) for pool in chain_pools],
        count=len(chain_pools),
    )


@router.get(
    "/price",
    response_model=PriceResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def price(
    base: str | None = Query(default=None),
    quote: str | None = Query(default=None),
    planner: RoutePlanner = Depends(get_planner),
) -> PriceResponse | JSONResponse:
    """Spot price of base in quote units."""
    missing = _missing(base=base, quote=quote)
    if missing:
        return error_response(400, "INVALID_REQUEST", "base and quote are required", missing)
    assert base is not None and quote is not None

    snapshot = await _snapshot(planner)
    spot = snapshot.get_spot_price(base, quote)
    if spot is None:
        return error_response(404, "PRICE_NOT_FOUND", f"No price for {base}/{quote}")
    return PriceResponse.from_price(spot)


@router.get(
    "/depth",
    response_model=DepthResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def depth(
    chain: str | None = Query(default=None),
    token0: str | None = Query(default=None),
    token1: str | None = Query(default=None),
    planner: RoutePlanner = Depends(get_planner),
) -> DepthResponse | JSONResponse:
    """Market depth of the deepest pool for a pair on a chain."""
    missing = _missing(chain=chain, token0=token0, token1=token1)
    if missing:
        return error_response(
            400, "INVALID_REQUEST", "chain, token0 and token1 are required", missing
        )
    assert chain is not None and token0 is not None and token1 is not None

    snapshot = await _snapshot(planner)
    market_depth = snapshot.get_market_depth(chain, token0, token1)
    if market_depth is None:
        return error_response(
            404, "DEPTH_NOT_FOUND", f"No pool for {token0}/{token1} on {chain}"
        )
    return DepthResponse.from_depth(market_depth)


@router.post(
    "/reload", response_model=ReloadResponse, responses={503: {"model": ErrorResponse}}
)
async def reload(planner: RoutePlanner = Depends(get_planner)) -> ReloadResponse | JSONResponse:
    """Reload every liquidity source and publish a new snapshot.

    Error Handling:
        - Some sources fail: 200, failures listed in failedSources
        - Every source fails: 503, previous snapshot stays active
    """
    loop = asyncio.get_running_loop()
    try:
        report = await loop.run_in_executor(None, planner.store.reload)
    except SourceUnavailableError as err:
        details = [f"{source}: {message}" for source, message in sorted(err.errors.items())]
        return error_response(
            503, "SOURCES_UNAVAILABLE", "No liquidity source could be loaded", details
        )
    return ReloadResponse.from_report(report)


__all__ = ["router", "get_planner"]
