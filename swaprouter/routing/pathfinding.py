"""Path search over the pool graph.

Candidate paths are enumerated lazily by bounded breadth-first search, so
direct paths come out before 2-hop paths, and 2-hop before 3-hop. The search
is deterministic: chains are visited in sorted order and edges in pool-id
order, so the same graph always yields the same sequence.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator

import structlog

from swaprouter.constants import DEFAULT_MAX_CANDIDATES, DEFAULT_MAX_HOPS
from swaprouter.models.types import normalize_chain, normalize_token
from swaprouter.routing.graph import PoolGraph
from swaprouter.routing.types import CandidatePath, PathHop

logger = structlog.get_logger()


class PathFinder:
    """Enumerates candidate paths between two tokens.

    Usage:
        finder = PathFinder(snapshot.graph, max_hops=3)
        for path in finder.iter_paths("ETH", "USDC"):
            ...
    """

    def __init__(
        self,
        graph: PoolGraph,
        max_hops: int = DEFAULT_MAX_HOPS,
        max_candidates: int | None = DEFAULT_MAX_CANDIDATES,
    ) -> None:
        """Initialize PathFinder for a graph.

        Args:
            graph: The pool graph to search
            max_hops: Maximum number of swaps in a path (default 3)
            max_candidates: Stop after this many paths (None = unbounded)
        """
        if max_hops < 1:
            raise ValueError(f"max_hops must be at least 1, got {max_hops}")
        self._graph = graph
        self.max_hops = max_hops
        self.max_candidates = max_candidates

    def iter_paths(
        self,
        token_in: str,
        token_out: str,
        chains: Iterable[str] | None = None,
    ) -> Iterator[CandidatePath]:
        """Yield candidate paths from token_in to token_out.

        Hubs with many neighbours can produce thousands of paths; the
        max_candidates limit bounds exploration while BFS keeps the shortest
        candidates.

        Args:
            token_in: Starting token
            token_out: Target token
            chains: Chains to search; None searches every chain in the graph

        Yields:
            CandidatePath objects, shorter paths first within a chain
        """
        token_in_norm = normalize_token(token_in)
        token_out_norm = normalize_token(token_out)
        if token_in_norm == token_out_norm:
            return

        if chains is None:
            search_chains = list(self._graph.chains)
        else:
            search_chains = sorted({normalize_chain(chain) for chain in chains})

        produced = 0
        for chain in search_chains:
            if not self._graph.has_token(chain, token_in_norm):
                continue
            if not self._graph.has_token(chain, token_out_norm):
                continue

            for path in self._search_chain(chain, token_in_norm, token_out_norm):
                yield path
                produced += 1
                if self.max_candidates is not None and produced >= self.max_candidates:
                    logger.debug(
                        "path_search_capped",
                        token_in=token_in_norm,
                        token_out=token_out_norm,
                        max_candidates=self.max_candidates,
                    )
                    return

    def _search_chain(self, chain: str, token_in: str, token_out: str) -> Iterator[CandidatePath]:
        # Queue entries: (current token, hops so far, tokens visited)
        queue: deque[tuple[str, tuple[PathHop, ...], frozenset[str]]] = deque(
            [(token_in, (), frozenset([token_in]))]
        )
        while queue:
            current, hops, visited = queue.popleft()
            for edge in self._graph.neighbors(chain, current):
                if edge.token_out in visited:
                    continue
                if not edge.pool.has_liquidity():
                    continue
                new_hops = (*hops, PathHop(edge.pool, current, edge.token_out))
                if edge.token_out == token_out:
                    yield CandidatePath(new_hops)
                    continue
                if len(new_hops) < self.max_hops:
                    queue.append((edge.token_out, new_hops, visited | {edge.token_out}))

    def find_paths(
        self,
        token_in: str,
        token_out: str,
        chains: Iterable[str] | None = None,
    ) -> list[CandidatePath]:
        """Collect iter_paths into a list."""
        return list(self.iter_paths(token_in, token_out, chains))


__all__ = ["PathFinder"]
