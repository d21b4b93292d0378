"""Pydantic models for swap requests."""

from swaprouter.models.request import Side, SwapRequest, parse_swap_request
from swaprouter.models.types import ChainId, PositiveAmount, TokenSymbol

__all__ = [
    # Types
    "ChainId",
    "PositiveAmount",
    "TokenSymbol",
    # Request
    "Side",
    "SwapRequest",
    "parse_swap_request",
]
