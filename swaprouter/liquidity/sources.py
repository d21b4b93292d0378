"""Liquidity sources.

A source produces pools and prices when asked. Sources are loaded
concurrently on every reload; a source that cannot deliver raises
SourceUnavailableError and the reload carries on with the others.

Implementations:
- JsonFileSource: a liquidity document on disk
- StaticSource: in-memory data (tests, embedding)
- HttpPriceFeedSource: USD oracle prices served over HTTP
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

import httpx
import structlog

from swaprouter.config import SourceConfig
from swaprouter.errors import SourceUnavailableError
from swaprouter.math.decimal_utils import to_decimal
from swaprouter.models.types import normalize_chain, normalize_token
from swaprouter.pools.parsing import parse_chain_pools
from swaprouter.pools.types import AnyPool

logger = structlog.get_logger()


@dataclass(frozen=True)
class SourceData:
    """What one source contributes to a snapshot."""

    pools: tuple[AnyPool, ...] = ()
    usd_prices: Mapping[str, Decimal] = field(default_factory=dict)
    pair_prices: Mapping[tuple[str, str], Decimal] = field(default_factory=dict)


@runtime_checkable
class LiquiditySource(Protocol):
    """Protocol for liquidity sources."""

    name: str

    def load(self) -> SourceData:
        """Fetch the source's current data.

        Raises:
            SourceUnavailableError: If the source cannot be read
        """
        ...


def _parse_price(raw: Any) -> Decimal:
    # JSON numbers arrive as float; go through str to keep the written digits
    price = to_decimal(str(raw) if isinstance(raw, float) else raw)
    if price <= 0:
        raise ValueError(f"Price must be positive, got {price}")
    return price


def parse_price_map(raw: Mapping[str, Any]) -> dict[str, Decimal]:
    """Parse {"TOKEN": price} into normalized Decimal prices, skipping bad entries."""
    prices: dict[str, Decimal] = {}
    for token, value in raw.items():
        try:
            prices[normalize_token(token)] = _parse_price(value)
        except ValueError as err:
            logger.warning("price_parse_failed", token=token, error=str(err))
    return prices


def parse_synthetic_pairs(raw: Mapping[str, Any]) -> dict[tuple[str, str], Decimal]:
    """Parse {"BASE_QUOTE": {"spotPrice": p}} into (base, quote) -> price."""
    pairs: dict[tuple[str, str], Decimal] = {}
    for pair_key, entry in raw.items():
        parts = pair_key.split("_")
        if len(parts) != 2:
            logger.warning("synthetic_pair_invalid_key", pair=pair_key)
            continue
        value = entry.get("spotPrice") if isinstance(entry, Mapping) else entry
        try:
            price = _parse_price(value)
        except ValueError as err:
            logger.warning("synthetic_pair_parse_failed", pair=pair_key, error=str(err))
            continue
        pairs[(normalize_token(parts[0]), normalize_token(parts[1]))] = price
    return pairs


def parse_liquidity_document(
    document: Mapping[str, Any],
    chains: Iterable[str] | None = None,
) -> SourceData:
    """Turn a liquidity document into SourceData.

    Args:
        document: Parsed JSON with "pools", "priceOracles" and "syntheticPairs"
        chains: Only load pools for these chains (None = all)

    Raises:
        ValueError: If the document's top-level structure is wrong
    """
    if not isinstance(document, Mapping):
        raise ValueError("Liquidity document must be a JSON object")
    pools_section = document.get("pools", {})
    if not isinstance(pools_section, Mapping):
        raise ValueError("'pools' must be an object keyed by chain")
    wanted = {normalize_chain(chain) for chain in chains} if chains is not None else None

    pools: list[AnyPool] = []
    for chain, entries in pools_section.items():
        if wanted is not None and normalize_chain(chain) not in wanted:
            continue
        if not isinstance(entries, Mapping):
            logger.warning("chain_pools_invalid", chain=chain)
            continue
        pools.extend(parse_chain_pools(chain, entries))

    return SourceData(
        pools=tuple(pools),
        usd_prices=parse_price_map(document.get("priceOracles") or {}),
        pair_prices=parse_synthetic_pairs(document.get("syntheticPairs") or {}),
    )


class StaticSource:
    """A source serving fixed in-memory data."""

    def __init__(
        self,
        name: str,
        pools: Iterable[AnyPool] = (),
        usd_prices: Mapping[str, Decimal] | None = None,
        pair_prices: Mapping[tuple[str, str], Decimal] | None = None,
    ) -> None:
        self.name = name
        self._data = SourceData(
            pools=tuple(pools),
            usd_prices=dict(usd_prices or {}),
            pair_prices=dict(pair_prices or {}),
        )

    def load(self) -> SourceData:
        return self._data


class JsonFileSource:
    """A liquidity document read from disk on every load.

    Attributes:
        path: Location of the JSON document
        chains: Restrict to these chains (None = all chains in the file)
    """

    def __init__(
        self,
        path: str | Path,
        name: str | None = None,
        chains: Iterable[str] | None = None,
    ) -> None:
        self.path = Path(path)
        self.name = name or f"file:{self.path.name}"
        self.chains = tuple(chains) if chains is not None else None

    def load(self) -> SourceData:
        try:
            with self.path.open(encoding="utf-8") as handle:
                document = json.load(handle)
        except OSError as err:
            raise SourceUnavailableError(self.name, f"cannot read {self.path}: {err}") from err
        except json.JSONDecodeError as err:
            raise SourceUnavailableError(self.name, f"invalid JSON in {self.path}: {err}") from err

        try:
            data = parse_liquidity_document(document, self.chains)
        except ValueError as err:
            raise SourceUnavailableError(self.name, str(err)) from err

        logger.debug(
            "liquidity_file_loaded",
            source=self.name,
            pools=len(data.pools),
            oracle_prices=len(data.usd_prices),
        )
        return data


class HttpPriceFeedSource:
    """USD oracle prices from an HTTP endpoint.

    The endpoint returns {"prices": {"TOKEN": "usd price", ...}}.
    """

    def __init__(
        self,
        url: str,
        name: str = "price-feed",
        timeout: float = 5.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.url = url
        self.name = name
        self.timeout = timeout
        self._client = client

    def load(self) -> SourceData:
        try:
            if self._client is not None:
                response = self._client.get(self.url, timeout=self.timeout)
            else:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.get(self.url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as err:
            raise SourceUnavailableError(self.name, f"request to {self.url} failed: {err}") from err
        except ValueError as err:
            raise SourceUnavailableError(self.name, f"invalid JSON from {self.url}") from err

        prices = payload.get("prices") if isinstance(payload, Mapping) else None
        if not isinstance(prices, Mapping):
            raise SourceUnavailableError(self.name, "response has no 'prices' object")
        return SourceData(usd_prices=parse_price_map(prices))


def sources_from_config(config: SourceConfig) -> list[LiquiditySource]:
    """Build the configured sources in merge order (files first, then price feed)."""
    sources: list[LiquiditySource] = [JsonFileSource(path) for path in config.liquidity_files]
    if config.price_feed_url:
        sources.append(HttpPriceFeedSource(config.price_feed_url, timeout=config.request_timeout))
    return sources


__all__ = [
    "SourceData",
    "LiquiditySource",
    "StaticSource",
    "JsonFileSource",
    "HttpPriceFeedSource",
    "parse_liquidity_document",
    "parse_price_map",
    "parse_synthetic_pairs",
    "sources_from_config",
]
