"""Plan a swap route from the command line.

Loads liquidity from JSON files (the bundled sample by default), plans the
swap and prints the explained best route and alternatives.

Usage:
    python -m scripts.plan_route ETH USDC 10
    python -m scripts.plan_route ETH USDC 5000 --side buy --chain ETH --json
    python -m scripts.plan_route XRP USDC 1000 --liquidity my_pools.json -v
"""

import argparse
import json
import sys
from pathlib import Path

import structlog

from swaprouter.api.schemas import ErrorResponse, QuoteResponse
from swaprouter.config import DEFAULT_LIQUIDITY_FILE, PlannerConfig, configure_logging
from swaprouter.liquidity import JsonFileSource, LiquiditySnapshotStore
from swaprouter.planner import RoutePlanner
from swaprouter.routing.types import PlanFailure

logger = structlog.get_logger()


def build_planner(liquidity_files: list[Path], max_hops: int) -> RoutePlanner:
    sources = [JsonFileSource(path) for path in liquidity_files]
    store = LiquiditySnapshotStore(sources)
    return RoutePlanner(store, PlannerConfig(max_hops=max_hops))


def main() -> int:
    """Entry point for the route planning script."""
    parser = argparse.ArgumentParser(description="Plan a token swap route")
    parser.add_argument("from_token", help="Token to sell")
    parser.add_argument("to_token", help="Token to buy")
    parser.add_argument("amount", help="Amount (input for sell, desired output for buy)")
    parser.add_argument("--side", choices=["sell", "buy"], default="sell")
    parser.add_argument("--chain", default=None, help="Restrict the search to one chain")
    parser.add_argument(
        "--liquidity",
        type=Path,
        action="append",
        default=None,
        help="Liquidity JSON file (repeatable; default: bundled sample)",
    )
    parser.add_argument("--max-hops", type=int, default=3, help="Maximum hops per route")
    parser.add_argument("--json", action="store_true", help="Print the API response JSON")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else "WARNING")

    request = {
        "fromToken": args.from_token,
        "toToken": args.to_token,
        "amount": args.amount,
        "side": args.side,
    }
    if args.chain:
        request["fromChain"] = args.chain

    with build_planner(args.liquidity or [DEFAULT_LIQUIDITY_FILE], args.max_hops) as planner:
        outcome = planner.plan_routes(request)

        if isinstance(outcome, PlanFailure):
            if args.json:
                body = ErrorResponse.from_failure(outcome, outcome.reason.value.upper())
                print(json.dumps(body.model_dump(mode="json", by_alias=True), indent=2))
            else:
                print(f"No route: {outcome.message}", file=sys.stderr)
                for error in outcome.errors:
                    print(f"  - {error}", file=sys.stderr)
            return 1

        if args.json:
            response = QuoteResponse.from_result(outcome)
            print(json.dumps(response.model_dump(mode="json", by_alias=True), indent=2))
            return 0

        print(planner.explain(outcome.best_route))
        for rank, route in enumerate(outcome.alternative_routes, start=2):
            print(f"\n#{rank}")
            print(planner.explain(route))
        found = outcome.total_routes_found
        print(f"\n{found} route(s) found (snapshot v{outcome.snapshot_version})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
