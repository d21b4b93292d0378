"""Pool management package.

Provides PoolRegistry for managing pools across all liquidity sources.
"""

from .parsing import parse_chain_pools, parse_pool
from .registry import PoolRegistry
from .types import (
    AnyPool,
    BookLevel,
    ConstantProductPool,
    OrderBookPool,
    StableSwapPool,
)

__all__ = [
    "PoolRegistry",
    "parse_pool",
    "parse_chain_pools",
    "AnyPool",
    "BookLevel",
    "ConstantProductPool",
    "StableSwapPool",
    "OrderBookPool",
]
