"""Parse pools from liquidity documents.

A liquidity document groups pool entries by chain and pair key:

    {"pools": {"ETH": {"ETH_USDC": {"token0": "ETH", "token1": "USDC",
                                    "reserve0": "1000", "reserve1": "2000000",
                                    "feeBps": 30, "enabled": true}}}}

Entries default to constant-product pools; "type" selects stable_swap or
order_book. Malformed entries are logged and skipped so that one bad pool
never takes down a whole source.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

import structlog

from swaprouter.constants import BPS_DENOMINATOR, DEFAULT_FEE_BPS
from swaprouter.errors import PoolConfigError
from swaprouter.math.decimal_utils import check_amount_limit, to_decimal
from swaprouter.models.types import normalize_chain, normalize_token
from swaprouter.pools.types import (
    POOL_KINDS,
    AnyPool,
    BookLevel,
    ConstantProductPool,
    OrderBookPool,
    StableSwapPool,
)

logger = structlog.get_logger()


def parse_fee_bps(entry: Mapping[str, Any]) -> int:
    """Read the fee from feeBps, or from fee given as a fraction (0.003 = 30 bps).

    Raises:
        PoolConfigError: If the fee is not a whole number of basis points
    """
    try:
        if "feeBps" in entry:
            raw = entry["feeBps"]
            if isinstance(raw, bool) or not isinstance(raw, int | str):
                raise PoolConfigError(f"feeBps must be an integer, got {raw!r}")
            bps = to_decimal(raw)
        elif "fee" in entry:
            fee = entry["fee"]
            # JSON numbers arrive as float; go through str to keep the written digits
            fraction = to_decimal(str(fee) if isinstance(fee, float) else fee)
            bps = fraction * BPS_DENOMINATOR
        else:
            return DEFAULT_FEE_BPS
    except ValueError as err:
        raise PoolConfigError(f"Invalid fee: {err}") from err

    if bps != bps.to_integral_value():
        raise PoolConfigError(f"Fee must be a whole number of basis points, got {bps}")
    return int(bps)


def parse_amount_field(entry: Mapping[str, Any], key: str) -> Decimal:
    """Read a non-negative decimal field from a pool entry."""
    if key not in entry:
        raise PoolConfigError(f"Missing field '{key}'")
    raw = entry[key]
    try:
        value = check_amount_limit(to_decimal(str(raw) if isinstance(raw, float) else raw))
    except ValueError as err:
        raise PoolConfigError(f"Invalid '{key}': {err}") from err
    if value < 0:
        raise PoolConfigError(f"'{key}' must be non-negative, got {value}")
    return value


def parse_timestamp(raw: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp (naive values are taken as UTC)."""
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise PoolConfigError(f"updatedAt must be an ISO-8601 string, got {raw!r}")
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError as err:
        raise PoolConfigError(f"Invalid updatedAt '{raw}'") from err
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_levels(raw: Any, side: str) -> tuple[BookLevel, ...]:
    """Parse [[price, size], ...] order-book levels."""
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise PoolConfigError(f"'{side}' must be a list of [price, size] pairs")
    levels = []
    for item in raw:
        if not isinstance(item, list | tuple) or len(item) != 2:
            raise PoolConfigError(f"Invalid {side} level {item!r}")
        price, size = item
        try:
            levels.append(
                BookLevel(
                    price=to_decimal(str(price) if isinstance(price, float) else price),
                    size=to_decimal(str(size) if isinstance(size, float) else size),
                )
            )
        except ValueError as err:
            raise PoolConfigError(f"Invalid {side} level {item!r}: {err}") from err
    return tuple(levels)


def _pair_tokens(pair_key: str, entry: Mapping[str, Any]) -> tuple[str, str]:
    token0 = entry.get("token0")
    token1 = entry.get("token1")
    if token0 is None or token1 is None:
        parts = pair_key.split("_")
        if len(parts) != 2:
            raise PoolConfigError(f"Cannot derive tokens from pair key '{pair_key}'")
        token0, token1 = parts
    if not isinstance(token0, str) or not isinstance(token1, str):
        raise PoolConfigError("token0/token1 must be strings")
    token0, token1 = normalize_token(token0), normalize_token(token1)
    if not token0 or not token1:
        raise PoolConfigError("token0/token1 must not be empty")
    return token0, token1


def parse_pool(chain: str, pair_key: str, entry: Mapping[str, Any]) -> AnyPool:
    """Build a pool from one liquidity entry.

    Args:
        chain: Chain the entry is listed under
        pair_key: Key of the entry (e.g. "ETH_USDC"), used for the default id
        entry: The entry's fields

    Returns:
        The parsed pool

    Raises:
        PoolConfigError: If the entry is malformed
    """
    if not isinstance(entry, Mapping):
        raise PoolConfigError(f"Pool entry must be an object, got {type(entry).__name__}")

    kind = entry.get("type", "constant_product")
    if not isinstance(kind, str) or kind not in POOL_KINDS:
        raise PoolConfigError(f"Unknown pool type '{kind}'")

    chain_id = normalize_chain(chain)
    token0, token1 = _pair_tokens(pair_key, entry)
    pool_id = str(entry.get("id") or f"{chain_id}:{pair_key}".lower())
    fee_bps = parse_fee_bps(entry)
    updated_at = parse_timestamp(entry.get("updatedAt"))
    protocol = str(entry.get("protocol") or kind.upper())

    try:
        if kind == "stable_swap":
            return StableSwapPool(
                pool_id=pool_id,
                chain=chain_id,
                token0=token0,
                token1=token1,
                reserve0=parse_amount_field(entry, "reserve0"),
                reserve1=parse_amount_field(entry, "reserve1"),
                amplification=parse_amount_field(entry, "amplification"),
                fee_bps=fee_bps,
                protocol=protocol,
                updated_at=updated_at,
            )
        if kind == "order_book":
            return OrderBookPool(
                pool_id=pool_id,
                chain=chain_id,
                token0=token0,
                token1=token1,
                bids=parse_levels(entry.get("bids"), "bids"),
                asks=parse_levels(entry.get("asks"), "asks"),
                fee_bps=fee_bps,
                protocol=protocol,
                updated_at=updated_at,
            )
        return ConstantProductPool(
            pool_id=pool_id,
            chain=chain_id,
            token0=token0,
            token1=token1,
            reserve0=parse_amount_field(entry, "reserve0"),
            reserve1=parse_amount_field(entry, "reserve1"),
            fee_bps=fee_bps,
            protocol=protocol,
            updated_at=updated_at,
        )
    except ValueError as err:
        raise PoolConfigError(str(err)) from err


def parse_chain_pools(chain: str, entries: Mapping[str, Any]) -> list[AnyPool]:
    """Parse every enabled pool listed under one chain.

    Disabled entries ("enabled": false) are skipped silently; malformed
    entries are logged and skipped.
    """
    pools: list[AnyPool] = []
    for pair_key, entry in entries.items():
        if isinstance(entry, Mapping) and not entry.get("enabled", True):
            continue
        try:
            pools.append(parse_pool(chain, pair_key, entry))
        except PoolConfigError as err:
            logger.warning("pool_parse_failed", chain=chain, pair=pair_key, error=str(err))
    return pools


__all__ = [
    "parse_pool",
    "parse_chain_pools",
    "parse_fee_bps",
    "parse_amount_field",
    "parse_levels",
    "parse_timestamp",
]
