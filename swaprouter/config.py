"""Configuration for the route planner and liquidity sources.

Both configs are frozen dataclasses with sensible defaults. The from_env()
constructors read ROUTER_* environment variables so that the API server and
CLI can be configured without code changes.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import timedelta
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType

import structlog

from swaprouter.constants import (
    DEFAULT_DEADLINE_SECONDS,
    DEFAULT_MAX_ALTERNATIVES,
    DEFAULT_MAX_CANDIDATES,
    DEFAULT_MAX_HOPS,
    DEFAULT_MAX_PRICE_IMPACT,
    DEFAULT_SLIPPAGE_TOLERANCE,
    DEFAULT_STALENESS_SECONDS,
    DEFAULT_SWAP_GAS_LIMIT,
    GWEI,
)
from swaprouter.models.types import normalize_chain

# Sample liquidity shipped with the package, used when no file is configured
DEFAULT_LIQUIDITY_FILE = Path(__file__).parent / "data" / "liquidity.json"


@dataclass(frozen=True)
class NetworkFee:
    """Transaction cost of one swap hop on a chain, paid in its native token.

    EVM chains charge gas_limit * gas_price; XRPL charges a flat fee per
    transaction. A chain may combine both.

    Attributes:
        native_token: Token the fee is paid in (e.g. "ETH", "XRP")
        gas_price_gwei: Gas price in gwei
        gas_limit: Gas units per swap hop
        flat_fee: Fixed fee per swap hop in native token units
    """

    native_token: str
    gas_price_gwei: Decimal = Decimal(0)
    gas_limit: int = 0
    flat_fee: Decimal = Decimal(0)

    def __post_init__(self) -> None:
        """Validate that every component is non-negative."""
        if self.gas_price_gwei < 0 or self.gas_limit < 0 or self.flat_fee < 0:
            raise ValueError(f"Network fee for {self.native_token} cannot be negative")

    @property
    def per_hop(self) -> Decimal:
        """Native token cost of one swap hop."""
        return self.flat_fee + self.gas_limit * self.gas_price_gwei * GWEI


def _evm_fee(native_token: str, gas_price_gwei: str) -> NetworkFee:
    return NetworkFee(native_token, Decimal(gas_price_gwei), DEFAULT_SWAP_GAS_LIMIT)


# Per-chain network fees used when a config names none
DEFAULT_NETWORK_FEES: Mapping[str, NetworkFee] = MappingProxyType(
    {
        "ETH": _evm_fee("ETH", "30"),
        "BSC": _evm_fee("BNB", "5"),
        "MATIC": _evm_fee("MATIC", "50"),
        "XDC": _evm_fee("XDC", "0.25"),
        # 10 drops per transaction
        "XRPL": NetworkFee("XRP", flat_fee=Decimal("0.00001")),
    }
)


@dataclass(frozen=True)
class PlannerConfig:
    """Centralized configuration for route planning.

    Attributes:
        max_hops: Maximum number of hops in a candidate path (default: 3)
        max_price_impact: Per-hop price impact ceiling as a fraction (default: 0.15)
        max_alternatives: Number of alternatives returned besides the best route
        max_candidates: Cap on candidate paths produced by the search
        slippage_tolerance: Fraction deducted from expected output for min_output
        max_workers: Pricing thread pool size (None = os.cpu_count())
        deadline_seconds: Time budget per request; None disables the deadline
        staleness_seconds: Snapshot age after which planning triggers a reload
        network_fees: Chain -> per-hop network fee used to value route costs in USD
    """

    max_hops: int = DEFAULT_MAX_HOPS
    max_price_impact: Decimal = DEFAULT_MAX_PRICE_IMPACT
    max_alternatives: int = DEFAULT_MAX_ALTERNATIVES
    max_candidates: int = DEFAULT_MAX_CANDIDATES
    slippage_tolerance: Decimal = DEFAULT_SLIPPAGE_TOLERANCE
    max_workers: int | None = None
    deadline_seconds: float | None = DEFAULT_DEADLINE_SECONDS
    staleness_seconds: float = DEFAULT_STALENESS_SECONDS
    network_fees: Mapping[str, NetworkFee] = field(default_factory=lambda: DEFAULT_NETWORK_FEES)

    def __post_init__(self) -> None:
        """Validate limits and freeze the network fee table."""
        if self.max_hops < 1:
            raise ValueError(f"max_hops must be at least 1, got {self.max_hops}")
        if not 0 < self.max_price_impact <= 1:
            raise ValueError(f"max_price_impact must be in (0, 1], got {self.max_price_impact}")
        if self.max_alternatives < 0:
            raise ValueError(f"max_alternatives cannot be negative, got {self.max_alternatives}")
        if self.max_candidates < 1:
            raise ValueError(f"max_candidates must be at least 1, got {self.max_candidates}")
        if not 0 <= self.slippage_tolerance < 1:
            raise ValueError(
                f"slippage_tolerance must be in [0, 1), got {self.slippage_tolerance}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            raise ValueError(f"deadline_seconds must be positive, got {self.deadline_seconds}")
        fees = {normalize_chain(chain): fee for chain, fee in self.network_fees.items()}
        object.__setattr__(self, "network_fees", MappingProxyType(fees))

    @property
    def workers(self) -> int:
        """Effective pricing pool size."""
        return self.max_workers or os.cpu_count() or 1

    @property
    def staleness(self) -> timedelta:
        """Snapshot staleness threshold as a timedelta."""
        return timedelta(seconds=self.staleness_seconds)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> PlannerConfig:
        """Build a config from ROUTER_* environment variables.

        Recognised variables: ROUTER_MAX_HOPS, ROUTER_MAX_PRICE_IMPACT,
        ROUTER_MAX_ALTERNATIVES, ROUTER_MAX_CANDIDATES, ROUTER_SLIPPAGE_TOLERANCE,
        ROUTER_MAX_WORKERS, ROUTER_DEADLINE_SECONDS (0 disables),
        ROUTER_STALENESS_SECONDS, and ROUTER_GAS_PRICE_GWEI_<CHAIN> to override the
        gas price of a configured chain. Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        deadline = float(env.get("ROUTER_DEADLINE_SECONDS", defaults.deadline_seconds or 0))
        workers = env.get("ROUTER_MAX_WORKERS")
        network_fees = {
            chain: replace(fee, gas_price_gwei=Decimal(env[f"ROUTER_GAS_PRICE_GWEI_{chain}"]))
            if f"ROUTER_GAS_PRICE_GWEI_{chain}" in env
            else fee
            for chain, fee in defaults.network_fees.items()
        }
        return cls(
            max_hops=int(env.get("ROUTER_MAX_HOPS", defaults.max_hops)),
            max_price_impact=Decimal(
                env.get("ROUTER_MAX_PRICE_IMPACT", str(defaults.max_price_impact))
            ),
            max_alternatives=int(env.get("ROUTER_MAX_ALTERNATIVES", defaults.max_alternatives)),
            max_candidates=int(env.get("ROUTER_MAX_CANDIDATES", defaults.max_candidates)),
            slippage_tolerance=Decimal(
                env.get("ROUTER_SLIPPAGE_TOLERANCE", str(defaults.slippage_tolerance))
            ),
            max_workers=int(workers) if workers else None,
            deadline_seconds=deadline if deadline > 0 else None,
            staleness_seconds=float(
                env.get("ROUTER_STALENESS_SECONDS", defaults.staleness_seconds)
            ),
            network_fees=network_fees,
        )


@dataclass(frozen=True)
class SourceConfig:
    """Configuration of the liquidity sources merged into each snapshot.

    Attributes:
        liquidity_files: JSON liquidity files, merged in order
        price_feed_url: Optional HTTP endpoint serving USD oracle prices
        request_timeout: Timeout in seconds for HTTP sources
    """

    liquidity_files: tuple[str, ...] = (str(DEFAULT_LIQUIDITY_FILE),)
    price_feed_url: str | None = None
    request_timeout: float = 5.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> SourceConfig:
        """Build a config from environment variables.

        ROUTER_LIQUIDITY_FILES is a comma-separated list of paths;
        ROUTER_PRICE_FEED_URL and ROUTER_SOURCE_TIMEOUT are optional.
        """
        env = os.environ if environ is None else environ
        defaults = cls()
        files_raw = env.get("ROUTER_LIQUIDITY_FILES", "")
        files = tuple(part.strip() for part in files_raw.split(",") if part.strip())
        return cls(
            liquidity_files=files or defaults.liquidity_files,
            price_feed_url=env.get("ROUTER_PRICE_FEED_URL") or None,
            request_timeout=float(env.get("ROUTER_SOURCE_TIMEOUT", defaults.request_timeout)),
        )


# Default configuration instances
DEFAULT_PLANNER_CONFIG = PlannerConfig()
DEFAULT_SOURCE_CONFIG = SourceConfig()


def configure_logging(level: str | int = "INFO") -> None:
    """Configure structlog for console output at the given level.

    Called once by entry points (API server, CLI scripts); library code only
    obtains loggers via structlog.get_logger().
    """
    if isinstance(level, str):
        level = logging.getLevelNamesMapping().get(level.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
    )


__all__ = [
    "PlannerConfig",
    "SourceConfig",
    "NetworkFee",
    "DEFAULT_NETWORK_FEES",
    "DEFAULT_PLANNER_CONFIG",
    "DEFAULT_SOURCE_CONFIG",
    "DEFAULT_LIQUIDITY_FILE",
    "configure_logging",
]
