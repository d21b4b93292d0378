"""Router error classes.

Errors are raised inside the core and converted to values at the planner
boundary (see swaprouter.planner). Only reload() lets SourceUnavailableError
escape to its caller.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence


class RouterError(Exception):
    """Base error for routing operations."""

    pass


class InvalidRequestError(RouterError):
    """A swap request violated one or more input constraints."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__("; ".join(self.errors) or "Invalid request")


class SourceUnavailableError(RouterError):
    """A liquidity source could not be loaded.

    Attributes:
        source: Name of the failing source ("*" when every source failed)
        errors: Mapping of source name to error message
    """

    def __init__(self, source: str, errors: Mapping[str, str] | str) -> None:
        if isinstance(errors, str):
            errors = {source: errors}
        self.source = source
        self.errors = dict(errors)
        detail = "; ".join(f"{name}: {message}" for name, message in self.errors.items())
        super().__init__(f"Liquidity source unavailable ({source}): {detail or 'no sources'}")


class PoolConfigError(RouterError):
    """A liquidity entry could not be turned into a pool."""

    pass


class StableInvariantDidNotConverge(RouterError):
    """Newton iteration for the stable-swap invariant D did not converge."""

    pass


class StableBalanceDidNotConverge(RouterError):
    """Newton iteration for a stable-swap balance did not converge."""

    pass


class CandidatePricingError(RouterError):
    """Pricing a candidate path raised unexpectedly."""

    def __init__(self, candidate: str) -> None:
        self.candidate = candidate
        super().__init__(f"Pricing failed for candidate {candidate}")


__all__ = [
    "RouterError",
    "InvalidRequestError",
    "SourceUnavailableError",
    "PoolConfigError",
    "StableInvariantDidNotConverge",
    "StableBalanceDidNotConverge",
    "CandidatePricingError",
]
