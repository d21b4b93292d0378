"""Route search, pricing, ranking and explanation.

Main components:
- PoolGraph: per-chain adjacency of tokens and pools
- PathFinder: bounded BFS over the graph
- RoutePricer: hop-by-hop simulation of candidate paths
- FeeModel: USD valuation of pool and network fees
- rank_routes: deterministic ordering of priced routes
- explain_route: text rendering of a priced route
"""

from swaprouter.routing.explain import explain_route, route_summary
from swaprouter.routing.fees import FeeModel
from swaprouter.routing.graph import Edge, PoolGraph
from swaprouter.routing.pathfinding import PathFinder
from swaprouter.routing.pricing import RoutePricer
from swaprouter.routing.ranking import RankedRoutes, rank_routes
from swaprouter.routing.types import (
    CandidatePath,
    FailureReason,
    HopFee,
    HopQuote,
    PathHop,
    PlanFailure,
    PlanOutcome,
    PricedRoute,
    RouteFees,
    RouteInvalid,
    RoutingResult,
    SlippageLevel,
)

__all__ = [
    # Graph and search
    "Edge",
    "PoolGraph",
    "PathFinder",
    # Pricing and ranking
    "RoutePricer",
    "FeeModel",
    "RankedRoutes",
    "rank_routes",
    "explain_route",
    "route_summary",
    # Types
    "CandidatePath",
    "PathHop",
    "HopQuote",
    "HopFee",
    "RouteFees",
    "PricedRoute",
    "RouteInvalid",
    "SlippageLevel",
    "FailureReason",
    "RoutingResult",
    "PlanFailure",
    "PlanOutcome",
]
