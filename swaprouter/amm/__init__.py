"""AMM and order-book pool implementations."""

from swaprouter.amm.base import LiquidityPool, PoolDepth, SwapQuote
from swaprouter.amm.constant_product import ConstantProduct, ConstantProductPool
from swaprouter.amm.order_book import BookLevel, OrderBookPool
from swaprouter.amm.stable_swap import StableSwapPool

__all__ = [
    "LiquidityPool",
    "PoolDepth",
    "SwapQuote",
    "ConstantProduct",
    "ConstantProductPool",
    "StableSwapPool",
    "BookLevel",
    "OrderBookPool",
]
