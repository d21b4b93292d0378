"""Tests for bounded breadth-first path search."""

import pytest

from swaprouter.routing import PathFinder, PoolGraph
from tests.helpers import BAR, ETH, FOO, USD, USDC, USDT, WBTC, XRP, make_book_pool, make_cp_pool


@pytest.fixture
def finder(eth_pools) -> PathFinder:
    return PathFinder(PoolGraph.from_pools(eth_pools))


def _token_paths(paths):
    return [path.tokens for path in paths]


class TestPathFinder:
    def test_direct_path_comes_first(self, finder):
        paths = finder.find_paths(ETH, USDC)

        assert _token_paths(paths) == [(ETH, USDC), (ETH, USDT, USDC)]

    def test_tokens_are_normalized(self, finder):
        assert len(finder.find_paths("eth", " usdc ")) == 2

    def test_max_hops_limits_depth(self, eth_pools):
        finder = PathFinder(PoolGraph.from_pools(eth_pools), max_hops=1)

        assert _token_paths(finder.find_paths(ETH, USDC)) == [(ETH, USDC)]

    def test_max_candidates_caps_output(self, eth_pools):
        finder = PathFinder(PoolGraph.from_pools(eth_pools), max_candidates=1)

        assert len(finder.find_paths(ETH, USDC)) == 1

    def test_isolated_tokens_have_no_path(self, finder):
        assert finder.find_paths(ETH, FOO) == []
        assert finder.find_paths(FOO, BAR)[0].tokens == (FOO, BAR)

    def test_unknown_token(self, finder):
        assert finder.find_paths(ETH, WBTC) == []

    def test_same_token(self, finder):
        assert finder.find_paths(ETH, "eth") == []

    def test_paths_never_revisit_tokens(self):
        pools = [
            make_cp_pool(ETH, USDC),
            make_cp_pool(ETH, USDT),
            make_cp_pool(USDT, USDC),
            make_cp_pool(WBTC, ETH),
            make_cp_pool(WBTC, USDC),
        ]
        finder = PathFinder(PoolGraph.from_pools(pools), max_hops=4)

        paths = finder.find_paths(ETH, USDC)

        for path in paths:
            assert len(set(path.tokens)) == len(path.tokens)
        hop_counts = [path.hop_count for path in paths]
        assert hop_counts == sorted(hop_counts)

    def test_pools_without_liquidity_are_skipped(self):
        pools = [make_cp_pool(reserve0="0"), make_cp_pool(ETH, USDT), make_cp_pool(USDT, USDC)]
        finder = PathFinder(PoolGraph.from_pools(pools))

        assert _token_paths(finder.find_paths(ETH, USDC)) == [(ETH, USDT, USDC)]

    def test_chain_scope(self, eth_usdc_pool):
        xrpl_pools = [
            make_book_pool(),
            make_cp_pool(XRP, USDC, chain="XRPL"),
            make_book_pool(base=USDC, quote=USD),
        ]
        finder = PathFinder(PoolGraph.from_pools([eth_usdc_pool, *xrpl_pools]))

        assert finder.find_paths(ETH, USDC, chains=["xrpl"]) == []
        assert [path.chain for path in finder.find_paths(XRP, USDC)] == ["XRPL", "XRPL"]

    def test_search_is_deterministic(self, eth_pools):
        first = PathFinder(PoolGraph.from_pools(eth_pools)).find_paths(ETH, USDC)
        second = PathFinder(PoolGraph.from_pools(list(reversed(eth_pools)))).find_paths(ETH, USDC)

        assert [path.path_id for path in first] == [path.path_id for path in second]

    def test_rejects_invalid_max_hops(self):
        with pytest.raises(ValueError, match="max_hops"):
            PathFinder(PoolGraph(), max_hops=0)

    def test_iter_paths_is_lazy(self, finder):
        iterator = finder.iter_paths(ETH, USDC)

        assert next(iterator).tokens == (ETH, USDC)
