"""Liquidity sources, snapshots and the snapshot store."""

from swaprouter.liquidity.snapshot import DepthPoint, MarketDepth, Snapshot, SpotPrice
from swaprouter.liquidity.sources import (
    HttpPriceFeedSource,
    JsonFileSource,
    LiquiditySource,
    SourceData,
    StaticSource,
    sources_from_config,
)
from swaprouter.liquidity.store import LiquiditySnapshotStore, ReloadReport

__all__ = [
    "Snapshot",
    "SpotPrice",
    "MarketDepth",
    "DepthPoint",
    "LiquiditySource",
    "SourceData",
    "StaticSource",
    "JsonFileSource",
    "HttpPriceFeedSource",
    "sources_from_config",
    "LiquiditySnapshotStore",
    "ReloadReport",
]
