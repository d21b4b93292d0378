"""Immutable liquidity snapshots.

A snapshot is everything a request reads: the pools per chain, oracle and
pair prices, and the graph built over those pools. Snapshots are never
modified after publication; a reload builds a new one and swaps it in.
"""

from __future__ import annotations

import decimal
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from types import MappingProxyType

from swaprouter.constants import DEPTH_CURVE_FRACTIONS, USD_STABLE_TOKENS
from swaprouter.math.decimal_utils import DECIMAL_HIGH_PREC_CONTEXT, floor_amount
from swaprouter.models.types import normalize_chain, normalize_token
from swaprouter.pools.registry import PoolRegistry
from swaprouter.pools.types import AnyPool
from swaprouter.routing.graph import PoolGraph


@dataclass(frozen=True)
class SpotPrice:
    """Price of one base token in quote tokens, with where it came from.

    source is "pair", "pair_inverse", "oracle" or "pool:<pool id>".
    """

    base: str
    quote: str
    price: Decimal
    source: str


@dataclass(frozen=True)
class DepthPoint:
    """One sample of a pool's slippage curve."""

    amount_in: Decimal
    amount_out: Decimal
    price_impact: Decimal
    effective_price: Decimal


@dataclass(frozen=True)
class MarketDepth:
    """Depth of the deepest pool for a pair, oriented token0 -> token1."""

    chain: str
    token0: str
    token1: str
    pool_id: str
    kind: str
    protocol: str
    fee_bps: int
    reserve0: Decimal
    reserve1: Decimal
    spot_price: Decimal | None
    reserve0_usd: Decimal | None
    reserve1_usd: Decimal | None
    total_liquidity_usd: Decimal | None
    curve: tuple[DepthPoint, ...]


@dataclass(frozen=True, eq=False)
class Snapshot:
    """A versioned, immutable view of all liquidity.

    Attributes:
        version: Monotonically increasing; 0 is the empty bootstrap snapshot
        created_at: When the snapshot was published
        registry: Sealed pool registry
        graph: Pool graph built for exactly these pools
        usd_prices: Token -> USD oracle prices
        pair_prices: (base, quote) -> explicit pair price
        sources: Names of the sources merged into this snapshot
        failed_sources: Names of sources that failed on this reload
    """

    version: int
    created_at: datetime
    registry: PoolRegistry
    graph: PoolGraph
    usd_prices: Mapping[str, Decimal] = field(default_factory=dict)
    pair_prices: Mapping[tuple[str, str], Decimal] = field(default_factory=dict)
    sources: tuple[str, ...] = ()
    failed_sources: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        """Freeze price mappings."""
        object.__setattr__(self, "usd_prices", MappingProxyType(dict(self.usd_prices)))
        object.__setattr__(self, "pair_prices", MappingProxyType(dict(self.pair_prices)))

    @classmethod
    def empty(cls, created_at: datetime) -> Snapshot:
        """The bootstrap snapshot used before the first reload."""
        registry = PoolRegistry()
        registry.seal()
        return cls(version=0, created_at=created_at, registry=registry, graph=PoolGraph())

    @property
    def chains(self) -> list[str]:
        return self.registry.chains

    @property
    def pool_count(self) -> int:
        return self.registry.pool_count

    def get_chain_pools(self, chain: str) -> tuple[AnyPool, ...]:
        """All pools on a chain, sorted by id (empty for unknown chains)."""
        return self.registry.get_chain_pools(chain)

    def usd_price(self, token: str) -> Decimal | None:
        """USD oracle price; USD-pegged quote tokens default to 1."""
        token_norm = normalize_token(token)
        price = self.usd_prices.get(token_norm)
        if price is None and token_norm in USD_STABLE_TOKENS:
            return Decimal(1)
        return price

    def reference_usd_price(self, token: str) -> Decimal | None:
        """USD price for valuing costs.

        Uses the oracle price when there is one, otherwise the spot price of
        token against the first USD-pegged token (in symbol order) that prices it.
        """
        price = self.usd_price(token)
        if price is not None:
            return price
        for stable in sorted(USD_STABLE_TOKENS):
            spot = self.get_spot_price(token, stable)
            if spot is not None:
                return spot.price
        return None

    def get_spot_price(self, base: str, quote: str) -> SpotPrice | None:
        """Price of base in quote units.

        Lookup order: explicit pair price, inverse of the reversed pair price,
        ratio of USD oracle prices, then the deepest direct pool on any chain.

        Returns:
            SpotPrice, or None if no source prices the pair (never zero)
        """
        base_norm = normalize_token(base)
        quote_norm = normalize_token(quote)
        if base_norm == quote_norm:
            return SpotPrice(base_norm, quote_norm, Decimal(1), "identity")

        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            direct = self.pair_prices.get((base_norm, quote_norm))
            if direct is not None and direct > 0:
                return SpotPrice(base_norm, quote_norm, direct, "pair")

            reverse = self.pair_prices.get((quote_norm, base_norm))
            if reverse is not None and reverse > 0:
                return SpotPrice(base_norm, quote_norm, 1 / reverse, "pair_inverse")

            base_usd = self.usd_price(base_norm)
            quote_usd = self.usd_price(quote_norm)
            if base_usd and quote_usd and base_usd > 0 and quote_usd > 0:
                return SpotPrice(base_norm, quote_norm, base_usd / quote_usd, "oracle")

        pool = self._deepest_pool(base_norm, quote_norm, chain=None)
        if pool is not None:
            price = pool.spot_price(base_norm)
            if price is not None and price > 0:
                return SpotPrice(base_norm, quote_norm, price, f"pool:{pool.pool_id}")
        return None

    def _deepest_pool(self, token_in: str, token_out: str, chain: str | None) -> AnyPool | None:
        """Pool with the largest input-side depth for a pair (ties by id).

        Pools with liquidity win; an empty pool is returned only when the pair
        has nothing else.
        """
        pools = self.registry.get_pools_for_pair(token_in, token_out, chain)
        if not pools:
            return None
        candidates = [pool for pool in pools if pool.has_liquidity()] or list(pools)
        return min(candidates, key=lambda pool: (-pool.depth(token_in).reserve_in, pool.pool_id))

    def get_market_depth(self, chain: str, token0: str, token1: str) -> MarketDepth | None:
        """Depth and slippage curve of the deepest pool for a pair on a chain.

        The curve samples swaps of 0.1%, 1%, 5%, 10% and 20% of the input-side
        reserve; samples the pool cannot fill are omitted.

        Returns:
            MarketDepth oriented token0 -> token1, or None if no pool exists.
            An empty pool reports zero reserves, no spot price and an empty curve.
        """
        chain_norm = normalize_chain(chain)
        token0_norm = normalize_token(token0)
        token1_norm = normalize_token(token1)
        pool = self._deepest_pool(token0_norm, token1_norm, chain=chain_norm)
        if pool is None:
            return None

        depth = pool.depth(token0_norm)
        curve = []
        for fraction in DEPTH_CURVE_FRACTIONS:
            with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
                amount_in = floor_amount(depth.reserve_in * fraction)
            if amount_in <= 0:
                continue
            quote = pool.quote(token0_norm, amount_in)
            if quote is None:
                continue
            with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
                effective = quote.amount_out / quote.amount_in
            curve.append(
                DepthPoint(
                    amount_in=amount_in,
                    amount_out=quote.amount_out,
                    price_impact=quote.price_impact,
                    effective_price=effective,
                )
            )

        price0 = self.usd_price(token0_norm)
        price1 = self.usd_price(token1_norm)
        with decimal.localcontext(DECIMAL_HIGH_PREC_CONTEXT):
            reserve0_usd = depth.reserve_in * price0 if price0 is not None else None
            reserve1_usd = depth.reserve_out * price1 if price1 is not None else None
            total_usd = (
                reserve0_usd + reserve1_usd
                if reserve0_usd is not None and reserve1_usd is not None
                else None
            )

        return MarketDepth(
            chain=chain_norm,
            token0=token0_norm,
            token1=token1_norm,
            pool_id=pool.pool_id,
            kind=pool.kind,
            protocol=pool.protocol,
            fee_bps=pool.fee_bps,
            reserve0=depth.reserve_in,
            reserve1=depth.reserve_out,
            spot_price=pool.spot_price(token0_norm),
            reserve0_usd=reserve0_usd,
            reserve1_usd=reserve1_usd,
            total_liquidity_usd=total_usd,
            curve=tuple(curve),
        )


__all__ = ["Snapshot", "SpotPrice", "MarketDepth", "DepthPoint"]
