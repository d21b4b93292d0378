"""Routing constants and protocol parameters.

Centralizes search limits, slippage thresholds and well-known token symbols.
"""

from decimal import Decimal

# Basis point denominator (10000 bps = 100%)
BPS_DENOMINATOR = 10_000

# Default pool fee when a liquidity entry specifies none (30 bps = 0.3%)
DEFAULT_FEE_BPS = 30

# Path search limits
DEFAULT_MAX_HOPS = 3
DEFAULT_MAX_CANDIDATES = 64
DEFAULT_MAX_ALTERNATIVES = 4

# A single hop moving the price by more than this invalidates the path
DEFAULT_MAX_PRICE_IMPACT = Decimal("0.15")

# Tolerance applied to the expected output to derive the minimum output
DEFAULT_SLIPPAGE_TOLERANCE = Decimal("0.005")

# Slippage classification thresholds (fractions, not percent)
SLIPPAGE_WARNING_THRESHOLD = Decimal("0.01")
SLIPPAGE_EXCESSIVE_THRESHOLD = Decimal("0.05")
SLIPPAGE_CRITICAL_THRESHOLD = Decimal("0.10")

# Planner timing
DEFAULT_DEADLINE_SECONDS = 5.0
DEFAULT_STALENESS_SECONDS = 300.0

# Fractions of the input reserve sampled for market depth curves
DEPTH_CURVE_FRACTIONS: tuple[Decimal, ...] = (
    Decimal("0.001"),
    Decimal("0.01"),
    Decimal("0.05"),
    Decimal("0.1"),
    Decimal("0.2"),
)

# Gas units charged per swap hop on EVM chains
DEFAULT_SWAP_GAS_LIMIT = 150_000

# 1 gwei in native token units
GWEI = Decimal("1e-9")

# Quote tokens assumed to trade at 1 USD when no oracle price is configured
USD_STABLE_TOKENS = frozenset({"USD", "USDT", "USDC"})

# Newton iteration limit for the stable-swap invariant
STABLE_SWAP_MAX_ITERATIONS = 255


__all__ = [
    "BPS_DENOMINATOR",
    "DEFAULT_FEE_BPS",
    "DEFAULT_MAX_HOPS",
    "DEFAULT_MAX_CANDIDATES",
    "DEFAULT_MAX_ALTERNATIVES",
    "DEFAULT_MAX_PRICE_IMPACT",
    "DEFAULT_SLIPPAGE_TOLERANCE",
    "SLIPPAGE_WARNING_THRESHOLD",
    "SLIPPAGE_EXCESSIVE_THRESHOLD",
    "SLIPPAGE_CRITICAL_THRESHOLD",
    "DEFAULT_DEADLINE_SECONDS",
    "DEFAULT_STALENESS_SECONDS",
    "DEPTH_CURVE_FRACTIONS",
    "DEFAULT_SWAP_GAS_LIMIT",
    "GWEI",
    "USD_STABLE_TOKENS",
    "STABLE_SWAP_MAX_ITERATIONS",
]
