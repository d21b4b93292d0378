"""Pool graph index.

Maps (chain, token) to the pools that trade it. The graph is built in a
single pass when a snapshot is assembled and is never mutated afterwards, so
lookups need no locking and neighbour order is stable between requests.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from swaprouter.models.types import normalize_chain, normalize_token
from swaprouter.pools.types import AnyPool


@dataclass(frozen=True)
class Edge:
    """A directed edge: trade into `token_out` through `pool`."""

    token_out: str
    pool: AnyPool


class PoolGraph:
    """Graph of tokens connected by liquidity pools, per chain.

    Edges are bidirectional: a pool trading A/B yields an edge A -> B and an
    edge B -> A. Each adjacency tuple is sorted by (pool id, token_out).
    """

    def __init__(self, adjacency: dict[tuple[str, str], tuple[Edge, ...]] | None = None) -> None:
        self._adjacency: dict[tuple[str, str], tuple[Edge, ...]] = adjacency or {}
        self._chains = tuple(sorted({chain for chain, _token in self._adjacency}))

    @classmethod
    def from_pools(cls, pools: Iterable[AnyPool]) -> PoolGraph:
        """Build a PoolGraph from pools.

        Args:
            pools: Pools of any supported type, on any chain

        Returns:
            PoolGraph with two directed edges per pool
        """
        building: dict[tuple[str, str], list[Edge]] = {}
        for pool in pools:
            token_a, token_b = pool.tokens
            building.setdefault((pool.chain, token_a), []).append(Edge(token_b, pool))
            building.setdefault((pool.chain, token_b), []).append(Edge(token_a, pool))

        adjacency = {
            key: tuple(sorted(edges, key=lambda edge: (edge.pool.pool_id, edge.token_out)))
            for key, edges in building.items()
        }
        return cls(adjacency)

    def neighbors(self, chain: str, token: str) -> tuple[Edge, ...]:
        """Edges leaving a token on a chain (empty if the token is unknown)."""
        return self._adjacency.get((normalize_chain(chain), normalize_token(token)), ())

    def has_token(self, chain: str, token: str) -> bool:
        """Check if a token has at least one pool on the chain."""
        return (normalize_chain(chain), normalize_token(token)) in self._adjacency

    @property
    def chains(self) -> tuple[str, ...]:
        """Chains present in the graph, sorted."""
        return self._chains

    @property
    def token_count(self) -> int:
        """Number of (chain, token) nodes in the graph."""
        return len(self._adjacency)

    @property
    def edge_count(self) -> int:
        """Number of directed edges in the graph."""
        return sum(len(edges) for edges in self._adjacency.values())


__all__ = ["Edge", "PoolGraph"]
