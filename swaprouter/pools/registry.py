"""Pool registry for managing liquidity across chains and pool types.

A registry collects pools while a snapshot is being assembled. Pools are
keyed by id: adding a pool whose id is already present replaces the earlier
one, which is how later liquidity sources override earlier ones. Once the
snapshot is published the registry is sealed and never changes again.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

import structlog

from swaprouter.models.types import normalize_chain, normalize_token
from swaprouter.pools.types import AnyPool

logger = structlog.get_logger()


class PoolRegistry:
    """Registry of liquidity pools, indexed by chain and token pair."""

    def __init__(self, pools: Iterable[AnyPool] | None = None) -> None:
        """Initialize the registry with optional pools.

        Args:
            pools: Initial pools. If None, starts empty.
        """
        self._pools: dict[str, AnyPool] = {}
        self._sealed = False
        # Lookup indexes, rebuilt lazily after pool changes
        self._by_chain: dict[str, tuple[AnyPool, ...]] | None = None
        self._by_pair: dict[tuple[str, frozenset[str]], tuple[AnyPool, ...]] | None = None

        if pools:
            for pool in pools:
                self.add_pool(pool)

    def add_pool(self, pool: AnyPool, source: str | None = None) -> None:
        """Add a pool, replacing any pool with the same id.

        Args:
            pool: The pool to add
            source: Name of the liquidity source (for logging only)

        Raises:
            RuntimeError: If the registry has been sealed
        """
        if self._sealed:
            raise RuntimeError("Cannot add pools to a sealed registry")
        if pool.pool_id in self._pools:
            logger.info(
                "pool_replaced",
                pool=pool.pool_id,
                chain=pool.chain,
                source=source,
            )
        self._pools[pool.pool_id] = pool
        self._by_chain = None
        self._by_pair = None

    def seal(self) -> None:
        """Freeze the registry; further add_pool calls raise."""
        self._build_indexes()
        self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _build_indexes(self) -> None:
        by_chain: dict[str, list[AnyPool]] = {}
        by_pair: dict[tuple[str, frozenset[str]], list[AnyPool]] = {}
        for pool_id in sorted(self._pools):
            pool = self._pools[pool_id]
            by_chain.setdefault(pool.chain, []).append(pool)
            by_pair.setdefault((pool.chain, frozenset(pool.tokens)), []).append(pool)
        self._by_chain = {chain: tuple(pools) for chain, pools in by_chain.items()}
        self._by_pair = {key: tuple(pools) for key, pools in by_pair.items()}

    def get_pool(self, pool_id: str) -> AnyPool | None:
        return self._pools.get(pool_id)

    def get_chain_pools(self, chain: str) -> tuple[AnyPool, ...]:
        """All pools on a chain, sorted by pool id (empty for unknown chains)."""
        if self._by_chain is None:
            self._build_indexes()
        assert self._by_chain is not None
        return self._by_chain.get(normalize_chain(chain), ())

    def get_pools_for_pair(
        self, token_a: str, token_b: str, chain: str | None = None
    ) -> list[AnyPool]:
        """Get all pools trading a pair (order independent).

        Args:
            token_a: One token of the pair
            token_b: The other token
            chain: Restrict to one chain; None searches every chain

        Returns:
            Pools sorted by (chain, pool id)
        """
        if self._by_pair is None:
            self._build_indexes()
        assert self._by_pair is not None
        pair = frozenset([normalize_token(token_a), normalize_token(token_b)])
        chains = [normalize_chain(chain)] if chain is not None else self.chains
        result: list[AnyPool] = []
        for chain_id in chains:
            result.extend(self._by_pair.get((chain_id, pair), ()))
        return result

    @property
    def chains(self) -> list[str]:
        """Chains with at least one pool, sorted."""
        if self._by_chain is None:
            self._build_indexes()
        assert self._by_chain is not None
        return sorted(self._by_chain)

    @property
    def pool_count(self) -> int:
        """Total number of pools in the registry."""
        return len(self._pools)

    def __len__(self) -> int:
        return len(self._pools)

    def __iter__(self) -> Iterator[AnyPool]:
        """Iterate pools in (chain, pool id) order."""
        for chain in self.chains:
            yield from self.get_chain_pools(chain)


__all__ = ["PoolRegistry"]
