"""Tests for the constant-product pool."""

from decimal import Decimal

import pytest

from swaprouter.amm import ConstantProduct, ConstantProductPool
from swaprouter.amm.base import LiquidityPool
from tests.helpers import ETH, USDC, USDT, make_cp_pool


class TestConstantProductMath:
    """Tests for x * y = k swap math."""

    def test_get_amount_out_basic(self):
        """1 ETH into 1000 ETH / 2M USDC at 30 bps."""
        amount_out = ConstantProduct.get_amount_out(
            Decimal("1"), Decimal("1000"), Decimal("2000000"), 30
        )

        # 0.997 * 2000000 / 1000.997 = 1992.0139...
        assert Decimal("1992.01") < amount_out < Decimal("1992.02")

    def test_get_amount_out_is_floored(self):
        """Output keeps at most 18 fractional digits and never rounds up."""
        amount_out = ConstantProduct.get_amount_out(Decimal("1"), Decimal("3"), Decimal("1"), 0)

        # exact value is 0.25
        assert amount_out == Decimal("0.25")
        third = ConstantProduct.get_amount_out(Decimal("1"), Decimal("2"), Decimal("1"), 0)
        assert third == Decimal("0.333333333333333333")

    def test_get_amount_out_zero_input(self):
        """Zero input returns zero output."""
        assert ConstantProduct.get_amount_out(Decimal(0), Decimal(100), Decimal(100)) == 0

    def test_get_amount_out_zero_reserves(self):
        """Zero reserves return zero."""
        assert ConstantProduct.get_amount_out(Decimal(1), Decimal(0), Decimal(100)) == 0
        assert ConstantProduct.get_amount_out(Decimal(1), Decimal(100), Decimal(0)) == 0

    def test_get_amount_in_basic(self):
        """Input needed for ~1992 USDC is ~1 ETH."""
        amount_in = ConstantProduct.get_amount_in(
            Decimal("1992"), Decimal("1000"), Decimal("2000000"), 30
        )

        assert amount_in is not None
        assert abs(amount_in - 1) < Decimal("0.001")

    def test_get_amount_in_exceeds_reserve(self):
        """Requesting the whole output reserve or more is impossible."""
        assert (
            ConstantProduct.get_amount_in(Decimal("2000000"), Decimal("1000"), Decimal("2000000"))
            is None
        )
        assert (
            ConstantProduct.get_amount_in(Decimal("3000000"), Decimal("1000"), Decimal("2000000"))
            is None
        )

    def test_get_amount_in_beyond_amount_limit(self):
        """Draining all but 0.1 of a 1e20 reserve needs more than 1e30 input."""
        reserve = Decimal("1e20")
        amount_out = Decimal("99999999999999999999.9")

        assert ConstantProduct.get_amount_in(amount_out, reserve, reserve) is None

    def test_get_amount_in_covers_amount_out(self):
        """Feeding the required input forward yields at least the target."""
        target = Decimal("12345.678")
        amount_in = ConstantProduct.get_amount_in(target, Decimal("1000"), Decimal("2000000"), 30)

        assert amount_in is not None
        forward = ConstantProduct.get_amount_out(amount_in, Decimal("1000"), Decimal("2000000"), 30)
        assert forward >= target
        assert forward - target < Decimal("0.000001")

    def test_higher_fee_gives_less_output(self):
        """Output is monotonically decreasing in the fee."""
        outputs = [
            ConstantProduct.get_amount_out(Decimal("5"), Decimal("1000"), Decimal("2000000"), fee)
            for fee in (0, 5, 30, 100, 300)
        ]

        assert outputs == sorted(outputs, reverse=True)
        assert len(set(outputs)) == len(outputs)


class TestConstantProductPool:
    """Tests for ConstantProductPool quoting."""

    def test_implements_liquidity_pool_protocol(self, eth_usdc_pool):
        assert isinstance(eth_usdc_pool, LiquidityPool)
        assert eth_usdc_pool.kind == "constant_product"

    def test_normalizes_tokens_and_chain(self):
        pool = ConstantProductPool(
            pool_id="p",
            chain=" eth ",
            token0="eth",
            token1="Usdc",
            reserve0=Decimal(1),
            reserve1=Decimal(1),
        )

        assert pool.chain == "ETH"
        assert pool.tokens == ("ETH", "USDC")
        assert pool.supports("usdc")
        assert pool.other_token("eth") == "USDC"

    def test_other_token_rejects_foreign_token(self, eth_usdc_pool):
        with pytest.raises(ValueError, match="not in pool"):
            eth_usdc_pool.other_token(USDT)

    def test_rejects_negative_reserves(self):
        with pytest.raises(ValueError, match="non-negative"):
            make_cp_pool(reserve0="-1")

    def test_rejects_reserves_beyond_amount_limit(self):
        with pytest.raises(ValueError, match="exceeds supported precision"):
            make_cp_pool(reserve0="1e30")

    def test_rejects_fee_out_of_range(self):
        with pytest.raises(ValueError, match="fee_bps"):
            make_cp_pool(fee_bps=10000)
        with pytest.raises(ValueError, match="fee_bps"):
            make_cp_pool(fee_bps=-1)

    def test_rejects_identical_tokens(self):
        with pytest.raises(ValueError, match="identical"):
            make_cp_pool(ETH, "eth")

    def test_spot_price_both_directions(self, eth_usdc_pool):
        assert eth_usdc_pool.spot_price(ETH) == Decimal("2000")
        assert eth_usdc_pool.spot_price(USDC) == Decimal("0.0005")

    def test_spot_price_without_liquidity(self):
        pool = make_cp_pool(reserve0="0")

        assert not pool.has_liquidity()
        assert pool.spot_price(ETH) is None

    def test_depth_orients_reserves(self, eth_usdc_pool):
        depth = eth_usdc_pool.depth(USDC)

        assert depth.token_in == USDC
        assert depth.token_out == ETH
        assert depth.reserve_in == Decimal("2000000")
        assert depth.reserve_out == Decimal("1000")

    def test_quote_sell_eth(self, eth_usdc_pool):
        quote = eth_usdc_pool.quote(ETH, Decimal("1"))

        assert quote is not None
        assert quote.token_in == ETH
        assert quote.token_out == USDC
        assert quote.amount_in == Decimal("1")
        assert quote.fee_paid == Decimal("0.003")
        assert quote.spot_price == Decimal("2000")
        assert Decimal("1992.01") < quote.amount_out < Decimal("1992.02")
        # impact = 0.997 / 1000.997
        assert Decimal("0.00099") < quote.price_impact < Decimal("0.001")

    def test_quote_fee_split_adds_up(self, eth_usdc_pool):
        quote = eth_usdc_pool.quote(USDC, Decimal("1234.5"))

        assert quote is not None
        assert quote.fee_paid == Decimal("3.7035")

    def test_quote_zero_amount_is_none(self, eth_usdc_pool):
        assert eth_usdc_pool.quote(ETH, Decimal(0)) is None

    def test_quote_empty_pool_is_none(self):
        assert make_cp_pool(reserve1="0").quote(ETH, Decimal(1)) is None

    def test_quote_exact_output(self, eth_usdc_pool):
        quote = eth_usdc_pool.quote_exact_output(ETH, Decimal("1000"))

        assert quote is not None
        assert quote.amount_out == Decimal("1000")
        # roughly 0.5 ETH plus fee and impact
        assert Decimal("0.5") < quote.amount_in < Decimal("0.51")

    def test_quote_exact_output_drains_reserve(self, eth_usdc_pool):
        assert eth_usdc_pool.quote_exact_output(ETH, Decimal("2000000")) is None

    def test_larger_trades_have_more_impact(self, eth_usdc_pool):
        impacts = [
            eth_usdc_pool.quote(ETH, Decimal(amount)).price_impact for amount in ("1", "10", "100")
        ]

        assert impacts == sorted(impacts)
        assert impacts[0] < impacts[-1]

    def test_zero_fee_tiny_trade_matches_spot(self):
        """With no fee and negligible depth impact, output equals spot conversion."""
        pool = make_cp_pool(reserve0="1000000000000", reserve1="2000000000000000", fee_bps=0)

        quote = pool.quote(ETH, Decimal("1"))

        assert quote is not None
        assert quote.fee_paid == 0
        assert abs(quote.amount_out - Decimal("2000")) < Decimal("0.000001")
