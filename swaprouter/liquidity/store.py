"""Liquidity snapshot store.

The store owns the current snapshot and knows how to rebuild it from the
configured sources. Reads are lock-free: the current snapshot is a single
attribute, replaced wholesale by reload(). A request that captured a
snapshot keeps reading it even if a reload publishes a newer one.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from decimal import Decimal

import structlog

from swaprouter.errors import SourceUnavailableError
from swaprouter.liquidity.snapshot import MarketDepth, Snapshot, SpotPrice
from swaprouter.liquidity.sources import LiquiditySource, SourceData
from swaprouter.pools.registry import PoolRegistry
from swaprouter.pools.types import AnyPool
from swaprouter.routing.graph import PoolGraph

logger = structlog.get_logger()

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class ReloadReport:
    """Outcome of a successful reload.

    Attributes:
        version: Version of the newly published snapshot
        succeeded: Sources merged into the snapshot, in merge order
        failed: Source name -> error message for sources that failed
        pool_count: Number of pools in the new snapshot
        duration_seconds: Wall time spent loading and building
    """

    version: int
    succeeded: tuple[str, ...]
    failed: Mapping[str, str] = field(default_factory=dict)
    pool_count: int = 0
    duration_seconds: float = 0.0

    @property
    def degraded(self) -> bool:
        """True if at least one source failed."""
        return bool(self.failed)


class LiquiditySnapshotStore:
    """Holds the current liquidity snapshot and rebuilds it on reload.

    Usage:
        store = LiquiditySnapshotStore([JsonFileSource("liquidity.json")])
        store.reload()
        pools = store.get_chain_pools("ETH")
    """

    def __init__(
        self,
        sources: Sequence[LiquiditySource],
        max_workers: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        """Initialize the store with an empty bootstrap snapshot.

        Args:
            sources: Liquidity sources, in merge order (later sources replace
                pools with the same id from earlier ones)
            max_workers: Thread pool size for concurrent loading
                (default: one thread per source)
            clock: Time source for snapshot timestamps
        """
        self._sources = tuple(sources)
        self._max_workers = max_workers
        self._clock = clock or utc_now
        self._snapshot = Snapshot.empty(self._clock())
        # Serialises reloads; readers never take it
        self._reload_lock = threading.Lock()

    @property
    def sources(self) -> tuple[LiquiditySource, ...]:
        return self._sources

    @property
    def snapshot(self) -> Snapshot:
        """The current immutable snapshot."""
        return self._snapshot

    def is_stale(self, max_age: timedelta) -> bool:
        """Whether the snapshot is the bootstrap one or older than max_age."""
        snapshot = self._snapshot
        if snapshot.version == 0:
            return True
        return self._clock() - snapshot.created_at > max_age

    def reload(self) -> ReloadReport:
        """Load every source and publish a new snapshot.

        Sources are loaded concurrently and merged in configured order.
        Failed sources are logged and left out of the snapshot.

        Returns:
            ReloadReport describing the published snapshot

        Raises:
            SourceUnavailableError: If no source could be loaded; the previous
                snapshot stays active
        """
        with self._reload_lock:
            return self._reload_locked()

    def reload_if_stale(self, max_age: timedelta) -> ReloadReport | None:
        """Reload unless the snapshot is fresh.

        Staleness is checked again once the reload lock is held, so callers
        that queued behind a reload reuse its snapshot instead of reloading.

        Returns:
            ReloadReport, or None if the snapshot was already fresh

        Raises:
            SourceUnavailableError: If no source could be loaded
        """
        with self._reload_lock:
            if not self.is_stale(max_age):
                return None
            return self._reload_locked()

    def _reload_locked(self) -> ReloadReport:
        started = time.monotonic()
        results = self._load_all()

        loaded: list[tuple[str, SourceData]] = []
        failed: dict[str, str] = {}
        for source, outcome in zip(self._sources, results):
            if isinstance(outcome, SourceData):
                loaded.append((source.name, outcome))
            else:
                failed[source.name] = outcome

        if not loaded:
            logger.error(
                "reload_failed",
                version=self._snapshot.version,
                failed_sources=sorted(failed),
            )
            raise SourceUnavailableError("*", failed)

        snapshot = self._build_snapshot(loaded, failed)
        # Single attribute assignment publishes the snapshot
        self._snapshot = snapshot
        duration = time.monotonic() - started

        log = logger.warning if failed else logger.info
        log(
            "snapshot_published",
            version=snapshot.version,
            pools=snapshot.pool_count,
            chains=snapshot.chains,
            sources=list(snapshot.sources),
            failed_sources=list(snapshot.failed_sources),
            duration_ms=round(duration * 1000, 1),
        )
        return ReloadReport(
            version=snapshot.version,
            succeeded=snapshot.sources,
            failed=failed,
            pool_count=snapshot.pool_count,
            duration_seconds=duration,
        )

    def _load_all(self) -> list[SourceData | str]:
        """Load all sources concurrently; failures come back as error strings."""
        if not self._sources:
            return []
        workers = self._max_workers or len(self._sources)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="liquidity-source") as pool:
            return list(pool.map(self._load_one, self._sources))

    @staticmethod
    def _load_one(source: LiquiditySource) -> SourceData | str:
        try:
            return source.load()
        except SourceUnavailableError as err:
            logger.warning("source_unavailable", source=source.name, error=str(err))
            return str(err)
        except Exception as err:
            logger.exception("source_load_error", source=source.name)
            return f"unexpected error: {err}"

    def _build_snapshot(
        self, loaded: list[tuple[str, SourceData]], failed: Mapping[str, str]
    ) -> Snapshot:
        registry = PoolRegistry()
        usd_prices: dict[str, Decimal] = {}
        pair_prices: dict[tuple[str, str], Decimal] = {}
        for name, data in loaded:
            for pool in data.pools:
                registry.add_pool(pool, source=name)
            usd_prices.update(data.usd_prices)
            pair_prices.update(data.pair_prices)
        registry.seal()

        return Snapshot(
            version=self._snapshot.version + 1,
            created_at=self._clock(),
            registry=registry,
            graph=PoolGraph.from_pools(registry),
            usd_prices=usd_prices,
            pair_prices=pair_prices,
            sources=tuple(name for name, _data in loaded),
            failed_sources=tuple(failed),
        )

    def get_chain_pools(self, chain: str) -> tuple[AnyPool, ...]:
        """Pools on a chain in the current snapshot (empty for unknown chains)."""
        return self._snapshot.get_chain_pools(chain)

    def get_spot_price(self, base: str, quote: str) -> SpotPrice | None:
        """Spot price of base in quote units from the current snapshot."""
        return self._snapshot.get_spot_price(base, quote)

    def get_market_depth(self, chain: str, token0: str, token1: str) -> MarketDepth | None:
        """Market depth for a pair on a chain from the current snapshot."""
        return self._snapshot.get_market_depth(chain, token0, token1)


__all__ = ["LiquiditySnapshotStore", "ReloadReport", "utc_now"]
