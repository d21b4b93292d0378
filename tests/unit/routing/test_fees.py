"""Tests for USD valuation of route fees."""

from decimal import Decimal

import pytest

from swaprouter.config import NetworkFee
from swaprouter.models import Side
from swaprouter.routing import FeeModel, RoutePricer
from tests.helpers import ETH, FOO, USD, USDC, USDT, XRP, make_book_pool, make_cp_pool, make_path

PRICES = {ETH: Decimal("2000"), USDT: Decimal(1), USDC: Decimal(1)}


def _price(*steps, amount="1"):
    return RoutePricer().price(make_path(*steps), Decimal(amount), Side.SELL)


@pytest.fixture
def fee_model() -> FeeModel:
    return FeeModel()


class TestRouteFees:
    def test_direct_route(self, fee_model, eth_usdc_pool):
        route = _price((eth_usdc_pool, ETH, USDC))

        fees = fee_model.route_fees(route, PRICES.get)

        # 0.003 ETH pool fee plus 150,000 gas at 30 gwei, both at 2000 USD
        assert fees.native_token == ETH
        assert fees.network_fee == Decimal("0.0045")
        assert fees.pool_fees_usd == Decimal("6")
        assert fees.network_fee_usd == Decimal("9")
        assert fees.total_usd == Decimal("15")
        assert len(fees.hops) == 1
        assert fees.hops[0].fee_token == ETH
        assert fees.hops[0].fee_paid == Decimal("0.003")

    def test_network_fee_is_charged_per_hop(self, fee_model, eth_usdt_pool, usdt_usdc_pool):
        route = _price((eth_usdt_pool, ETH, USDT), (usdt_usdc_pool, USDT, USDC))

        fees = fee_model.route_fees(route, PRICES.get)

        assert fees.network_fee == Decimal("0.009")
        assert fees.network_fee_usd == Decimal("18")
        assert fees.pool_fees_usd == sum(hop.fee_usd for hop in fees.hops)
        assert fees.total_usd == fees.pool_fees_usd + Decimal("18")

    def test_unpriced_input_falls_back_to_destination_value(self, fee_model):
        route = _price((make_cp_pool(FOO, USDC, "1000", "1000"), FOO, USDC))

        fees = fee_model.route_fees(route, PRICES.get)

        assert fees.hops[0].fee_usd == route.hops[0].fee_value
        assert fees.total_usd is not None

    def test_unpriced_native_token_leaves_total_unknown(self, fee_model, eth_usdc_pool):
        route = _price((eth_usdc_pool, ETH, USDC))
        prices = {ETH: None, USDC: Decimal(1)}

        fees = fee_model.route_fees(route, prices.get)

        assert fees.network_fee == Decimal("0.0045")
        assert fees.network_fee_usd is None
        assert fees.pool_fees_usd == route.fees
        assert fees.total_usd is None

    def test_chain_without_network_fee(self, eth_usdc_pool):
        route = _price((eth_usdc_pool, ETH, USDC))

        fees = FeeModel({}).route_fees(route, PRICES.get)

        assert fees.native_token is None
        assert fees.network_fee == 0
        assert fees.total_usd == Decimal("6")

    def test_xrpl_flat_network_fee(self, fee_model):
        route = _price((make_book_pool(), XRP, USD), amount="1000")

        fees = fee_model.route_fees(route, {XRP: Decimal("2.07")}.get)

        assert fees.native_token == XRP
        assert fees.network_fee == Decimal("0.00001")
        assert fees.network_fee_usd == Decimal("0.0000207")
        assert fees.total_usd == Decimal("0.0000207")

    def test_custom_gas_price(self, eth_usdc_pool):
        route = _price((eth_usdc_pool, ETH, USDC))
        model = FeeModel({"ETH": NetworkFee(ETH, gas_price_gwei=Decimal(10), gas_limit=100_000)})

        fees = model.route_fees(route, PRICES.get)

        assert fees.network_fee == Decimal("0.001")
        assert fees.network_fee_usd == Decimal("2")


class TestApply:
    def test_attaches_breakdown(self, fee_model, eth_usdc_pool):
        route = _price((eth_usdc_pool, ETH, USDC))

        valued = fee_model.apply(route, PRICES.get)

        assert route.fees_usd is None
        assert valued.fees_usd == Decimal("15")
        assert valued.fee_breakdown == fee_model.route_fees(route, PRICES.get)
        assert valued.expected_output == route.expected_output
