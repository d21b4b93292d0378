"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Token symbols, chains and reference reserves
- factories: Pool, store, planner and request factory functions
"""

from tests.helpers.constants import (
    BAR,
    ETH,
    ETH_CHAIN,
    ETH_RESERVE,
    ETH_SPOT_USDC,
    FOO,
    USD,
    USDC,
    USDC_RESERVE,
    USDT,
    WBTC,
    XRP,
    XRPL_CHAIN,
)
from tests.helpers.factories import (
    FailingSource,
    ManualClock,
    SlowSource,
    ToggleSource,
    make_book_pool,
    make_cp_pool,
    make_path,
    make_planner,
    make_request,
    make_stable_pool,
    make_store,
)

__all__ = [
    # Constants
    "ETH",
    "USDC",
    "USDT",
    "WBTC",
    "XRP",
    "USD",
    "FOO",
    "BAR",
    "ETH_CHAIN",
    "XRPL_CHAIN",
    "ETH_RESERVE",
    "USDC_RESERVE",
    "ETH_SPOT_USDC",
    # Factories
    "make_cp_pool",
    "make_stable_pool",
    "make_book_pool",
    "make_path",
    "make_store",
    "make_planner",
    "make_request",
    "FailingSource",
    "ToggleSource",
    "SlowSource",
    "ManualClock",
]
