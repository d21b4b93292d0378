"""Pool type definitions.

Provides the AnyPool union type for use throughout the codebase.
"""

from typing import TypeAlias

from swaprouter.amm.constant_product import ConstantProductPool
from swaprouter.amm.order_book import BookLevel, OrderBookPool
from swaprouter.amm.stable_swap import StableSwapPool

# Union type for all pool types
AnyPool: TypeAlias = ConstantProductPool | StableSwapPool | OrderBookPool

# Liquidity file "type" field -> pool class
POOL_KINDS: dict[str, type[AnyPool]] = {
    "constant_product": ConstantProductPool,
    "stable_swap": StableSwapPool,
    "order_book": OrderBookPool,
}

__all__ = [
    "AnyPool",
    "POOL_KINDS",
    "BookLevel",
    "ConstantProductPool",
    "StableSwapPool",
    "OrderBookPool",
]
