"""Tests for SwapRequest validation."""

from decimal import Decimal

import pytest
from pydantic import ValidationError

from swaprouter.errors import InvalidRequestError
from swaprouter.models import Side, SwapRequest, parse_swap_request
from tests.helpers import make_request


class TestSwapRequest:
    def test_parses_aliases_and_normalizes(self):
        request = SwapRequest.model_validate(
            {"fromToken": " eth ", "toToken": "usdc", "amount": "1.5", "fromChain": "eth"}
        )

        assert request.from_token == "ETH"
        assert request.to_token == "USDC"
        assert request.amount == Decimal("1.5")
        assert request.side is Side.SELL
        assert request.from_chain == "ETH"
        assert request.chain_scope == "ETH"
        assert request.preview is False

    def test_populate_by_name(self):
        request = SwapRequest(from_token="ETH", to_token="USDC", amount=Decimal("2"), side="BUY")

        assert request.side is Side.BUY

    def test_chain_scope_from_to_chain(self):
        request = SwapRequest.model_validate(make_request(toChain="xrpl"))

        assert request.chain_scope == "XRPL"

    def test_empty_chain_means_all_chains(self):
        request = SwapRequest.model_validate(make_request(fromChain=""))

        assert request.chain_scope is None

    def test_same_chain_is_allowed(self):
        request = SwapRequest.model_validate(make_request(fromChain="ETH", toChain="eth"))

        assert request.chain_scope == "ETH"

    def test_preview_flag_parsed_from_string(self):
        request = SwapRequest.model_validate(make_request(preview="true"))

        assert request.preview is True

    def test_is_frozen(self):
        request = SwapRequest.model_validate(make_request())

        with pytest.raises(ValidationError):
            request.amount = Decimal("5")

    def test_describe(self):
        request = SwapRequest.model_validate(make_request(amount="2.50"))

        assert request.describe() == {
            "from_token": "ETH",
            "to_token": "USDC",
            "amount": "2.50",
            "side": "sell",
            "chain": None,
        }


class TestParseSwapRequest:
    """Validation errors become InvalidRequestError listing every violation."""

    @pytest.mark.parametrize("amount", ["0", "-1", "abc", "NaN", ""])
    def test_rejects_bad_amounts(self, amount):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_swap_request(make_request(amount=amount))

        assert any(error.startswith("amount:") for error in exc_info.value.errors)

    @pytest.mark.parametrize("amount", ["1e30", "1e61", "1" + "0" * 40])
    def test_rejects_amounts_beyond_fixed_point_range(self, amount):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_swap_request(make_request(amount=amount))

        (error,) = exc_info.value.errors
        assert error.startswith("amount:")
        assert "exceeds supported precision" in error

    def test_accepts_largest_supported_amount(self):
        request = parse_swap_request(make_request(amount="9" * 30))

        assert request.amount == Decimal("9" * 30)

    def test_rejects_float_amount(self):
        with pytest.raises(InvalidRequestError, match="float"):
            parse_swap_request({"fromToken": "ETH", "toToken": "USDC", "amount": 0.1})

    def test_rejects_unknown_side(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_swap_request(make_request(side="short"))

        assert exc_info.value.errors[0].startswith("side:")

    def test_rejects_same_tokens(self):
        with pytest.raises(InvalidRequestError, match="must differ"):
            parse_swap_request(make_request(from_token="eth", to_token="ETH"))

    def test_rejects_cross_chain(self):
        with pytest.raises(InvalidRequestError, match="Cross-chain"):
            parse_swap_request(make_request(fromChain="ETH", toChain="XRPL"))

    def test_reports_all_missing_fields(self):
        with pytest.raises(InvalidRequestError) as exc_info:
            parse_swap_request({})

        fields = sorted(error.split(":")[0] for error in exc_info.value.errors)
        assert fields == ["amount", "fromToken", "toToken"]

    def test_rejects_empty_token(self):
        with pytest.raises(InvalidRequestError, match="fromToken"):
            parse_swap_request(make_request(from_token="  "))

    def test_rejects_non_mapping(self):
        with pytest.raises(InvalidRequestError, match="expected a mapping"):
            parse_swap_request(["ETH", "USDC"])

    def test_passes_models_through(self):
        request = SwapRequest.model_validate(make_request())

        assert parse_swap_request(request) is request
