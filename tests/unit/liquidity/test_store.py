"""Tests for LiquiditySnapshotStore reloads and snapshot publication."""

from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta
from decimal import Decimal

import pytest
from structlog.testing import capture_logs

from swaprouter.errors import SourceUnavailableError
from swaprouter.liquidity import LiquiditySnapshotStore, StaticSource
from tests.helpers import (
    ETH,
    USDC,
    FailingSource,
    ManualClock,
    SlowSource,
    ToggleSource,
    make_cp_pool,
    make_store,
)


class ExplodingSource:
    """A source raising something other than SourceUnavailableError."""

    name = "exploding"

    def load(self):
        raise RuntimeError("boom")


class TestReload:
    def test_starts_with_empty_bootstrap_snapshot(self):
        store = make_store([make_cp_pool()], reload=False)

        assert store.snapshot.version == 0
        assert store.snapshot.pool_count == 0
        assert store.get_chain_pools("ETH") == ()

    def test_reload_publishes_new_version(self, eth_pools):
        store = make_store(eth_pools, reload=False)

        first = store.reload()
        second = store.reload()

        assert first.version == 1
        assert second.version == 2
        assert store.snapshot.version == 2
        assert second.succeeded == ("static",)
        assert second.pool_count == 4
        assert not second.degraded

    def test_partial_failure_keeps_healthy_sources(self):
        failing = FailingSource("offline")
        store = make_store([make_cp_pool()], extra_sources=[failing], reload=False)

        with capture_logs() as logs:
            report = store.reload()

        assert report.degraded
        assert list(report.failed) == ["offline"]
        assert "connection refused" in report.failed["offline"]
        assert store.snapshot.sources == ("static",)
        assert store.snapshot.failed_sources == ("offline",)
        assert store.snapshot.pool_count == 1
        events = [log["event"] for log in logs]
        assert "source_unavailable" in events
        published = next(log for log in logs if log["event"] == "snapshot_published")
        assert published["log_level"] == "warning"

    def test_unexpected_source_error_counts_as_failure(self):
        store = make_store([make_cp_pool()], extra_sources=[ExplodingSource()], reload=False)

        report = store.reload()

        assert report.failed["exploding"] == "unexpected error: boom"

    def test_all_sources_failing_keeps_previous_snapshot(self):
        source = ToggleSource("toggle", [make_cp_pool()])
        store = LiquiditySnapshotStore([source, FailingSource("other")])
        store.reload()
        before = store.snapshot

        source.failing = True
        with pytest.raises(SourceUnavailableError) as exc_info:
            store.reload()

        assert exc_info.value.source == "*"
        assert set(exc_info.value.errors) == {"toggle", "other"}
        assert store.snapshot is before
        assert store.snapshot.version == 1

    def test_no_sources_cannot_reload(self):
        store = LiquiditySnapshotStore([])

        with pytest.raises(SourceUnavailableError):
            store.reload()

    def test_later_sources_override_earlier_pools(self):
        first = StaticSource("first", [make_cp_pool(pool_id="shared")])
        second = StaticSource("second", [make_cp_pool(reserve0="1", pool_id="shared")])
        store = LiquiditySnapshotStore([first, second])

        store.reload()

        assert store.snapshot.registry.get_pool("shared").reserve0 == Decimal("1")
        assert store.snapshot.sources == ("first", "second")

    def test_later_sources_override_prices(self):
        first = StaticSource("first", usd_prices={ETH: Decimal("1900")})
        second = StaticSource("second", usd_prices={ETH: Decimal("2100")})
        store = LiquiditySnapshotStore([first, second])

        store.reload()

        assert store.snapshot.usd_prices[ETH] == Decimal("2100")

    def test_captured_snapshot_is_not_affected_by_reload(self):
        source = ToggleSource("toggle", [make_cp_pool()])
        store = LiquiditySnapshotStore([source, StaticSource("empty")])
        store.reload()
        captured = store.snapshot

        source.failing = True
        store.reload()

        assert captured.pool_count == 1
        assert captured.graph.has_token("ETH", ETH)
        assert store.snapshot.pool_count == 0

    def test_snapshot_graph_matches_pools(self, eth_pools):
        store = make_store(eth_pools)

        graph = store.snapshot.graph

        assert graph.has_token("ETH", ETH)
        assert graph.has_token("ETH", USDC)
        assert graph.edge_count == 8
        assert graph.token_count == 5


class TestStaleness:
    def test_bootstrap_snapshot_is_stale(self):
        store = LiquiditySnapshotStore([StaticSource("s")], clock=ManualClock())

        assert store.is_stale(timedelta(hours=1))

    def test_staleness_follows_clock(self):
        clock = ManualClock()
        store = LiquiditySnapshotStore([StaticSource("s")], clock=clock)
        store.reload()

        assert not store.is_stale(timedelta(seconds=60))
        clock.advance(61)
        assert store.is_stale(timedelta(seconds=60))

    def test_snapshot_timestamp_comes_from_clock(self):
        clock = ManualClock()
        store = LiquiditySnapshotStore([StaticSource("s")], clock=clock)
        clock.advance(5)

        store.reload()

        assert store.snapshot.created_at == clock.now

    def test_reload_if_stale_skips_fresh_snapshot(self):
        clock = ManualClock()
        source = SlowSource([make_cp_pool()], delay=0)
        store = LiquiditySnapshotStore([source], clock=clock)
        store.reload()

        assert store.reload_if_stale(timedelta(seconds=60)) is None
        assert store.snapshot.version == 1
        assert source.load_calls == 1

    def test_reload_if_stale_reloads_old_snapshot(self):
        clock = ManualClock()
        store = LiquiditySnapshotStore([SlowSource([make_cp_pool()], delay=0)], clock=clock)
        store.reload()
        clock.advance(61)

        report = store.reload_if_stale(timedelta(seconds=60))

        assert report is not None
        assert report.version == 2

    def test_concurrent_stale_callers_share_one_reload(self):
        source = SlowSource([make_cp_pool()], delay=0.2)
        store = LiquiditySnapshotStore([source])

        with ThreadPoolExecutor(max_workers=4) as pool:
            reports = list(pool.map(lambda _: store.reload_if_stale(timedelta(hours=1)), range(4)))

        assert source.load_calls == 1
        assert store.snapshot.version == 1
        assert sum(report is not None for report in reports) == 1


class TestDelegation:
    def test_reads_go_to_current_snapshot(self, eth_usdc_pool):
        store = make_store([eth_usdc_pool], usd_prices={ETH: Decimal("2000")})

        assert store.get_chain_pools("eth") == (eth_usdc_pool,)
        assert store.get_spot_price(ETH, USDC).price == Decimal("2000")
        assert store.get_market_depth("ETH", ETH, USDC).pool_id == eth_usdc_pool.pool_id
