"""Tests for hop-by-hop route pricing."""

from decimal import Decimal

import pytest

from swaprouter.models import Side
from swaprouter.routing import PricedRoute, RouteInvalid, RoutePricer, SlippageLevel
from swaprouter.routing.pricing import compound_slippage, route_id_for
from tests.helpers import ETH, USD, USDC, USDT, XRP, make_book_pool, make_cp_pool, make_path


@pytest.fixture
def pricer() -> RoutePricer:
    return RoutePricer()


@pytest.fixture
def direct_path(eth_usdc_pool):
    return make_path((eth_usdc_pool, ETH, USDC))


@pytest.fixture
def two_hop_path(eth_usdt_pool, usdt_usdc_pool):
    return make_path((eth_usdt_pool, ETH, USDT), (usdt_usdc_pool, USDT, USDC))


class TestCompoundSlippage:
    def test_compounds_multiplicatively(self):
        assert compound_slippage([Decimal("0.1"), Decimal("0.1")]) == Decimal("0.19")

    def test_no_impact(self):
        assert compound_slippage([Decimal(0), Decimal(0)]) == 0


class TestRouteId:
    def test_route_id_is_deterministic(self, direct_path, eth_usdc_pool):
        again = make_path((eth_usdc_pool, ETH, USDC))

        assert route_id_for(direct_path) == route_id_for(again)
        assert route_id_for(direct_path).startswith("route_")

    def test_route_id_differs_by_path(self, direct_path, two_hop_path):
        assert route_id_for(direct_path) != route_id_for(two_hop_path)


class TestSellPricing:
    def test_direct_route(self, pricer, direct_path):
        route = pricer.price(direct_path, Decimal("1"), Side.SELL)

        assert isinstance(route, PricedRoute)
        assert route.amount_in == Decimal("1")
        assert route.requested_amount == Decimal("1")
        assert Decimal("1992.01") < route.expected_output < Decimal("1992.02")
        # 0.003 ETH fee at 2000 USDC per ETH
        assert route.fees == Decimal("6")
        assert route.slippage == route.hops[0].price_impact
        assert route.warning_level is SlippageLevel.NONE
        assert route.route_id == route_id_for(direct_path)

    def test_min_output_applies_tolerance(self, direct_path):
        route = RoutePricer(slippage_tolerance=Decimal("0.01")).price(
            direct_path, Decimal("1"), Side.SELL
        )

        assert route.min_output <= route.expected_output * Decimal("0.99")
        assert route.expected_output * Decimal("0.99") - route.min_output < Decimal("1e-18")

    def test_zero_tolerance_keeps_expected_output(self, direct_path):
        route = RoutePricer(slippage_tolerance=Decimal(0)).price(
            direct_path, Decimal("1"), Side.SELL
        )

        assert route.min_output == route.expected_output

    def test_two_hop_route_chains_outputs(self, pricer, two_hop_path):
        route = pricer.price(two_hop_path, Decimal("1"), Side.SELL)

        first, second = route.hops
        assert first.amount_out == second.amount_in
        assert route.expected_output == second.amount_out
        # first hop's 0.003 ETH fee is valued through both spot prices
        assert abs(first.fee_value - Decimal("6")) < Decimal("0.01")
        assert first.fee_paid == Decimal("0.003")
        assert route.fees == first.fee_value + second.fee_value
        assert route.hop_count == 2

    def test_two_hop_slippage_compounds(self, pricer, two_hop_path):
        route = pricer.price(two_hop_path, Decimal("10"), Side.SELL)

        impacts = [hop.price_impact for hop in route.hops]
        assert route.slippage == compound_slippage(impacts)
        assert route.slippage >= max(impacts)

    def test_order_book_hop(self, pricer):
        book = make_book_pool()

        route = pricer.price(make_path((book, XRP, USD)), Decimal("1000"), Side.SELL)

        assert route.expected_output == Decimal("500")
        assert route.fees == 0
        assert route.hops[0].kind == "order_book"

    def test_excessive_impact_invalidates(self, pricer, direct_path):
        result = pricer.price(direct_path, Decimal("500"), Side.SELL)

        assert isinstance(result, RouteInvalid)
        assert "price impact" in result.reason
        assert result.hop_index == 0

    def test_failing_later_hop_reports_index(self, pricer, eth_usdt_pool):
        shallow = make_cp_pool(USDT, USDC, "10", "10")
        path = make_path((eth_usdt_pool, ETH, USDT), (shallow, USDT, USDC))

        result = pricer.price(path, Decimal("1"), Side.SELL)

        assert isinstance(result, RouteInvalid)
        assert result.hop_index == 1

    def test_empty_pool_invalidates(self, pricer):
        empty = make_cp_pool(reserve1="0")

        result = pricer.price(make_path((empty, ETH, USDC)), Decimal("1"), Side.SELL)

        assert isinstance(result, RouteInvalid)
        assert "no liquidity" in result.reason

    def test_exhausted_book_invalidates(self, pricer):
        result = pricer.price(make_path((make_book_pool(), XRP, USD)), Decimal("400000"), Side.SELL)

        assert isinstance(result, RouteInvalid)
        assert "cannot absorb" in result.reason

    def test_non_positive_amount(self, pricer, direct_path):
        result = pricer.price(direct_path, Decimal(0), Side.SELL)

        assert isinstance(result, RouteInvalid)

    def test_higher_fee_never_increases_output(self, pricer):
        outputs = [
            pricer.price(
                make_path((make_cp_pool(fee_bps=fee), ETH, USDC)), Decimal("2"), Side.SELL
            ).expected_output
            for fee in (0, 30, 100)
        ]

        assert outputs == sorted(outputs, reverse=True)


class TestBuyPricing:
    def test_direct_buy_covers_requested_output(self, pricer, direct_path):
        route = pricer.price(direct_path, Decimal("1000"), Side.BUY)

        assert isinstance(route, PricedRoute)
        assert route.side is Side.BUY
        assert route.requested_amount == Decimal("1000")
        assert route.expected_output >= Decimal("1000")
        assert route.expected_output - Decimal("1000") < Decimal("0.000001")
        assert Decimal("0.5") < route.amount_in < Decimal("0.51")

    def test_two_hop_buy(self, pricer, two_hop_path):
        route = pricer.price(two_hop_path, Decimal("1000"), Side.BUY)

        assert route.expected_output >= Decimal("1000")
        assert route.expected_output - Decimal("1000") < Decimal("0.000001")

    def test_required_input(self, pricer, direct_path):
        required = pricer.required_input(direct_path, Decimal("1000"))

        forward = pricer.price(direct_path, required, Side.SELL)
        assert forward.expected_output >= Decimal("1000")

    def test_buy_beyond_reserve_invalidates(self, pricer, direct_path):
        result = pricer.price(direct_path, Decimal("2500000"), Side.BUY)

        assert isinstance(result, RouteInvalid)
        assert "cannot deliver" in result.reason
        assert result.hop_index == 0

    def test_buy_with_excessive_impact_invalidates(self, pricer, direct_path):
        result = pricer.price(direct_path, Decimal("1000000"), Side.BUY)

        assert isinstance(result, RouteInvalid)
        assert "price impact" in result.reason
