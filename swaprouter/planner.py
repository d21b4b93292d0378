"""Route planner facade.

RoutePlanner turns a swap request into a ranked set of priced routes:

    VALIDATING -> GATHERING -> SEARCHING -> PRICING -> RANKING -> DONE

Any step can end in FAILED. Failures come back as PlanFailure values, never
as exceptions, so callers (HTTP layer, CLI) only branch on the outcome type.

Each request captures one snapshot while gathering and reads only that
snapshot afterwards; a concurrent reload cannot change a request midway.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Mapping
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import structlog

from swaprouter.config import DEFAULT_PLANNER_CONFIG, PlannerConfig, SourceConfig
from swaprouter.errors import CandidatePricingError, InvalidRequestError, SourceUnavailableError
from swaprouter.liquidity.snapshot import Snapshot
from swaprouter.liquidity.sources import sources_from_config
from swaprouter.liquidity.store import LiquiditySnapshotStore
from swaprouter.models.request import SwapRequest, parse_swap_request
from swaprouter.routing.explain import explain_route
from swaprouter.routing.fees import FeeModel
from swaprouter.routing.pathfinding import PathFinder
from swaprouter.routing.pricing import RoutePricer
from swaprouter.routing.ranking import rank_routes
from swaprouter.routing.types import (
    CandidatePath,
    FailureReason,
    PlanFailure,
    PlanOutcome,
    PricedRoute,
    RouteInvalid,
    RoutingResult,
)

logger = structlog.get_logger()


class PlannerState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    GATHERING = "gathering"
    SEARCHING = "searching"
    PRICING = "pricing"
    RANKING = "ranking"
    DONE = "done"
    FAILED = "failed"


def _enter(state: PlannerState) -> PlannerState:
    logger.debug("planner_state", state=state.value)
    return state


def _describe_request(request: Any) -> Any:
    if isinstance(request, SwapRequest):
        return request.describe()
    if isinstance(request, Mapping):
        return {str(key): str(value) for key, value in request.items()}
    return repr(request)


class RoutePlanner:
    """Plans swap routes against a liquidity snapshot store.

    The planner owns a thread pool used to price candidates in parallel;
    call close() (or use it as a context manager) to release it.
    """

    def __init__(
        self,
        store: LiquiditySnapshotStore,
        config: PlannerConfig | None = None,
        pricer: RoutePricer | None = None,
    ) -> None:
        """Initialize the planner.

        Args:
            store: Snapshot store supplying liquidity
            config: Planner limits and timing (defaults to DEFAULT_PLANNER_CONFIG)
            pricer: Route pricer (defaults to one built from config)
        """
        self.store = store
        self.config = config or DEFAULT_PLANNER_CONFIG
        self.pricer = pricer or RoutePricer(
            max_price_impact=self.config.max_price_impact,
            slippage_tolerance=self.config.slippage_tolerance,
        )
        self.fee_model = FeeModel(self.config.network_fees)
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="route-pricer"
        )

    def close(self) -> None:
        """Shut down the pricing pool, dropping queued work."""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> RoutePlanner:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def explain(self, route: PricedRoute) -> str:
        """Human-readable explanation of a route."""
        return explain_route(route)

    def plan_routes(
        self,
        request: SwapRequest | Mapping[str, Any],
        deadline_seconds: float | None = None,
    ) -> PlanOutcome:
        """Plan routes for a swap request.

        Args:
            request: A SwapRequest, or a mapping of raw request fields
                (fromToken, toToken, amount, side, fromChain, toChain, preview)
            deadline_seconds: Override of the configured time budget, counted
                from the moment the snapshot is in hand

        Returns:
            RoutingResult on success, PlanFailure otherwise
        """
        started = time.monotonic()
        timeout = deadline_seconds if deadline_seconds is not None else self.config.deadline_seconds

        state = PlannerState.IDLE
        snapshot: Snapshot | None = None
        try:
            state = _enter(PlannerState.VALIDATING)
            swap = parse_swap_request(request)

            state = _enter(PlannerState.GATHERING)
            snapshot = self.ensure_snapshot()
            # Reload time does not count against the pricing budget
            deadline = time.monotonic() + timeout if timeout is not None else None

            state = _enter(PlannerState.SEARCHING)
            candidates = self._search(snapshot, swap)

            state = _enter(PlannerState.PRICING)
            priced, partial = self._price_all(candidates, swap, deadline)
            priced = [self.fee_model.apply(route, snapshot.reference_usd_price) for route in priced]

            state = _enter(PlannerState.RANKING)
            ranked = rank_routes(priced, self.config.max_alternatives)
            if ranked is None:
                _enter(PlannerState.FAILED)
                logger.info(
                    "no_route_found",
                    request=swap.describe(),
                    candidates=len(candidates),
                    snapshot_version=snapshot.version,
                    partial=partial,
                )
                return PlanFailure(
                    reason=FailureReason.NO_ROUTE_FOUND,
                    message=f"No route found from {swap.from_token} to {swap.to_token}",
                    snapshot_version=snapshot.version,
                    partial=partial,
                )

            state = _enter(PlannerState.DONE)
            logger.info(
                "route_planned",
                request=swap.describe(),
                best_route=ranked.best.route_id,
                expected_output=str(ranked.best.expected_output),
                total_routes=ranked.total_routes_found,
                snapshot_version=snapshot.version,
                partial=partial,
                duration_ms=round((time.monotonic() - started) * 1000, 1),
            )
            return RoutingResult(
                best_route=ranked.best,
                alternative_routes=ranked.alternatives,
                total_routes_found=ranked.total_routes_found,
                timestamp=datetime.now(UTC),
                snapshot_version=snapshot.version,
                partial=partial,
                preview=swap.preview,
            )

        except InvalidRequestError as err:
            _enter(PlannerState.FAILED)
            logger.info("invalid_swap_request", errors=list(err.errors))
            return PlanFailure(
                reason=FailureReason.INVALID_REQUEST,
                message="Invalid swap request",
                errors=err.errors,
            )
        except Exception as err:
            _enter(PlannerState.FAILED)
            logger.exception(
                "route_planning_failed",
                state=state.value,
                snapshot_version=snapshot.version if snapshot is not None else None,
                request=_describe_request(request),
                candidate=err.candidate if isinstance(err, CandidatePricingError) else None,
            )
            return PlanFailure(
                reason=FailureReason.INTERNAL_ERROR,
                message="Internal routing error",
                snapshot_version=snapshot.version if snapshot is not None else None,
            )

    def ensure_snapshot(self) -> Snapshot:
        """Current snapshot, reloading first if it is stale.

        Concurrent requests that find the snapshot stale share one reload.
        A failed reload is not fatal: planning continues on the existing
        snapshot.
        """
        if self.store.is_stale(self.config.staleness):
            try:
                self.store.reload_if_stale(self.config.staleness)
            except SourceUnavailableError as err:
                logger.warning(
                    "snapshot_reload_degraded",
                    error=str(err),
                    snapshot_version=self.store.snapshot.version,
                )
        return self.store.snapshot

    def _search(self, snapshot: Snapshot, swap: SwapRequest) -> list[CandidatePath]:
        finder = PathFinder(
            snapshot.graph,
            max_hops=self.config.max_hops,
            max_candidates=self.config.max_candidates,
        )
        scope = swap.chain_scope
        chains = [scope] if scope is not None else None
        return list(finder.iter_paths(swap.from_token, swap.to_token, chains))

    def _price_all(
        self,
        candidates: list[CandidatePath],
        swap: SwapRequest,
        deadline: float | None,
    ) -> tuple[list[PricedRoute], bool]:
        """Price candidates in parallel.

        Results are collected in candidate order, so ranking ties resolve the
        same way regardless of which worker finished first.

        Returns:
            (priced routes, partial) where partial means the deadline expired
            before every candidate was priced

        Raises:
            CandidatePricingError: If pricing a candidate raised
        """
        if not candidates:
            return [], False

        futures: list[Future[PricedRoute | RouteInvalid]] = [
            self._executor.submit(self.pricer.price, path, swap.amount, swap.side)
            for path in candidates
        ]
        timeout = None if deadline is None else max(deadline - time.monotonic(), 0.0)
        done, not_done = wait(futures, timeout=timeout)
        for future in not_done:
            future.cancel()
        partial = bool(not_done)
        if partial:
            logger.warning(
                "pricing_deadline_exceeded",
                priced=len(done),
                pending=len(not_done),
            )

        priced: list[PricedRoute] = []
        for path, future in zip(candidates, futures):
            if future not in done:
                continue
            try:
                outcome = future.result()
            except Exception as err:
                raise CandidatePricingError(path.path_id) from err
            if isinstance(outcome, RouteInvalid):
                logger.debug(
                    "candidate_invalid",
                    path=path.path_id,
                    reason=outcome.reason,
                    hop=outcome.hop_index,
                )
                continue
            priced.append(outcome)
        return priced, partial


_default_planner: RoutePlanner | None = None
_default_lock = threading.Lock()


def build_default_planner() -> RoutePlanner:
    """Create a planner from ROUTER_* environment configuration.

    The store starts with the bootstrap snapshot; the first request finds it
    stale and loads the configured sources.
    """
    planner_config = PlannerConfig.from_env()
    source_config = SourceConfig.from_env()
    sources = sources_from_config(source_config)
    logger.info(
        "default_planner_created",
        sources=[source.name for source in sources],
        max_hops=planner_config.max_hops,
        max_workers=planner_config.workers,
    )
    store = LiquiditySnapshotStore(sources, max_workers=planner_config.max_workers)
    return RoutePlanner(store, planner_config)


def get_default_planner() -> RoutePlanner:
    """Get the process-wide planner, creating it on first use."""
    global _default_planner
    with _default_lock:
        if _default_planner is None:
            _default_planner = build_default_planner()
        return _default_planner


def shutdown_default_planner() -> None:
    """Release the process-wide planner if one was created."""
    global _default_planner
    with _default_lock:
        if _default_planner is not None:
            _default_planner.close()
            _default_planner = None


__all__ = [
    "RoutePlanner",
    "PlannerState",
    "build_default_planner",
    "get_default_planner",
    "shutdown_default_planner",
]
