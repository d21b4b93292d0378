"""Swap request model and validation."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from swaprouter.errors import InvalidRequestError
from swaprouter.models.types import ChainId, PositiveAmount, TokenSymbol


class Side(str, Enum):
    """Which amount of the swap is fixed.

    sell: the amount is the exact input
    buy: the amount is the exact desired output
    """

    SELL = "sell"
    BUY = "buy"


class SwapRequest(BaseModel):
    """A desired token swap.

    Field aliases match the HTTP query parameters (fromToken, toToken, ...);
    populate_by_name allows snake_case construction from Python.
    """

    model_config = {"populate_by_name": True, "frozen": True}

    from_token: TokenSymbol = Field(alias="fromToken")
    to_token: TokenSymbol = Field(alias="toToken")
    amount: PositiveAmount
    side: Side = Side.SELL
    from_chain: ChainId = Field(default=None, alias="fromChain")
    to_chain: ChainId = Field(default=None, alias="toChain")
    preview: bool = False

    @field_validator("side", mode="before")
    @classmethod
    def normalize_side(cls, value: Any) -> Any:
        """Accept "SELL"/"Buy" etc."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @model_validator(mode="after")
    def check_route_shape(self) -> SwapRequest:
        """Reject same-token and cross-chain requests."""
        if self.from_token == self.to_token:
            raise ValueError(f"fromToken and toToken must differ (both {self.from_token})")
        if self.from_chain and self.to_chain and self.from_chain != self.to_chain:
            raise ValueError(
                f"Cross-chain routing is not supported ({self.from_chain} -> {self.to_chain})"
            )
        return self

    @property
    def chain_scope(self) -> str | None:
        """The single chain to search, or None to search every chain."""
        return self.from_chain or self.to_chain

    def describe(self) -> dict[str, str | None]:
        """Compact representation for log context."""
        return {
            "from_token": self.from_token,
            "to_token": self.to_token,
            "amount": str(self.amount),
            "side": self.side.value,
            "chain": self.chain_scope,
        }


def format_validation_errors(err: ValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into "field: message" strings."""
    messages = []
    for error in err.errors():
        location = ".".join(str(part) for part in error["loc"]) or "request"
        message = error["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}")
    return messages


def parse_swap_request(request: SwapRequest | Mapping[str, Any]) -> SwapRequest:
    """Validate a request given as a model or a mapping of raw values.

    Raises:
        InvalidRequestError: Listing every violated constraint
    """
    if isinstance(request, SwapRequest):
        return request
    if not isinstance(request, Mapping):
        raise InvalidRequestError([f"request: expected a mapping, got {type(request).__name__}"])
    try:
        return SwapRequest.model_validate(dict(request))
    except ValidationError as err:
        raise InvalidRequestError(format_validation_errors(err)) from err


__all__ = [
    "Side",
    "SwapRequest",
    "format_validation_errors",
    "parse_swap_request",
]
