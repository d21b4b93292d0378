"""Pytest configuration and fixtures."""

from collections.abc import Iterator
from pathlib import Path

import pytest

from swaprouter.amm import ConstantProductPool, StableSwapPool
from swaprouter.planner import RoutePlanner
from tests.helpers import (
    BAR,
    ETH,
    FOO,
    USDC,
    USDT,
    make_cp_pool,
    make_planner,
    make_stable_pool,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"
LIQUIDITY_DIR = FIXTURES_DIR / "liquidity"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the fixtures directory path."""
    return FIXTURES_DIR


@pytest.fixture
def liquidity_dir() -> Path:
    """Return the liquidity document fixtures directory path."""
    return LIQUIDITY_DIR


# =============================================================================
# Pools
# =============================================================================


@pytest.fixture
def eth_usdc_pool() -> ConstantProductPool:
    """ETH/USDC constant-product pool: 1000 ETH / 2,000,000 USDC, 30 bps."""
    return make_cp_pool(ETH, USDC, "1000", "2000000", fee_bps=30)


@pytest.fixture
def eth_usdt_pool() -> ConstantProductPool:
    """ETH/USDT constant-product pool at the same price as ETH/USDC."""
    return make_cp_pool(ETH, USDT, "1000", "2000000", fee_bps=30, protocol="SUSHISWAP")


@pytest.fixture
def usdt_usdc_pool() -> StableSwapPool:
    """Deep USDT/USDC stable-swap pool."""
    return make_stable_pool(USDT, USDC, "5000000", "5000000", amplification="200")


@pytest.fixture
def isolated_pool() -> ConstantProductPool:
    """A FOO/BAR pool with no connection to the ETH/USD tokens."""
    return make_cp_pool(FOO, BAR, "1000", "1000")


@pytest.fixture
def eth_pools(eth_usdc_pool, eth_usdt_pool, usdt_usdc_pool, isolated_pool) -> list:
    """Direct, two-hop and isolated liquidity on one chain."""
    return [eth_usdc_pool, eth_usdt_pool, usdt_usdc_pool, isolated_pool]


# =============================================================================
# Planner
# =============================================================================


@pytest.fixture
def planner(eth_pools) -> Iterator[RoutePlanner]:
    """Planner over eth_pools; closed after the test."""
    with make_planner(eth_pools) as instance:
        yield instance
