"""Tests for order-book depth pools."""

from decimal import Decimal

import pytest

from swaprouter.amm import BookLevel
from tests.helpers import USD, XRP, make_book_pool


class TestBookLevel:
    def test_notional(self):
        assert BookLevel(Decimal("0.5"), Decimal("100")).notional == Decimal("50")

    def test_rejects_non_positive_values(self):
        with pytest.raises(ValueError, match="price"):
            BookLevel(Decimal(0), Decimal(1))
        with pytest.raises(ValueError, match="size"):
            BookLevel(Decimal(1), Decimal(-1))

    def test_rejects_values_beyond_amount_limit(self):
        with pytest.raises(ValueError, match="exceeds supported precision"):
            BookLevel(Decimal(1), Decimal("1e30"))


class TestOrderBookPool:
    """Bids 100k @ 0.50, 200k @ 0.49; asks 100k @ 0.51, 200k @ 0.52."""

    def test_levels_are_sorted(self):
        pool = make_book_pool(
            bids=(("0.49", "1"), ("0.50", "1")),
            asks=(("0.52", "1"), ("0.51", "1")),
        )

        assert [level.price for level in pool.bids] == [Decimal("0.50"), Decimal("0.49")]
        assert [level.price for level in pool.asks] == [Decimal("0.51"), Decimal("0.52")]

    def test_kind_and_tokens(self):
        pool = make_book_pool()

        assert pool.kind == "order_book"
        assert pool.base == XRP
        assert pool.quote_token == USD

    def test_spot_prices(self):
        pool = make_book_pool()

        assert pool.spot_price(XRP) == Decimal("0.50")
        assert abs(pool.spot_price(USD) - Decimal(1) / Decimal("0.51")) < Decimal("1e-30")

    def test_sell_base_within_first_level(self):
        pool = make_book_pool()

        quote = pool.quote(XRP, Decimal("1000"))

        assert quote.amount_out == Decimal("500")
        assert quote.price_impact == 0
        assert quote.fee_paid == 0

    def test_sell_base_walks_levels(self):
        pool = make_book_pool()

        quote = pool.quote(XRP, Decimal("150000"))

        # 100000 * 0.50 + 50000 * 0.49
        assert quote.amount_out == Decimal("74500")
        assert Decimal("0.0066") < quote.price_impact < Decimal("0.0067")

    def test_sell_quote_walks_asks(self):
        pool = make_book_pool()

        quote = pool.quote(USD, Decimal("510"))

        assert quote.amount_out == Decimal("1000")
        assert quote.price_impact == 0

    def test_exhausted_book_yields_no_quote(self):
        """Input beyond total book depth is not partially filled."""
        pool = make_book_pool()

        assert pool.quote(XRP, Decimal("300001")) is None
        assert pool.quote(XRP, Decimal("300000")) is not None

    def test_one_sided_book(self):
        pool = make_book_pool(asks=())

        assert pool.has_liquidity()
        assert pool.spot_price(USD) is None
        assert pool.quote(USD, Decimal("10")) is None

    def test_empty_book_has_no_liquidity(self):
        assert not make_book_pool(bids=(), asks=()).has_liquidity()

    def test_depth_sums_levels(self):
        pool = make_book_pool()

        selling_base = pool.depth(XRP)
        selling_quote = pool.depth(USD)

        assert selling_base.reserve_in == Decimal("300000")
        assert selling_base.reserve_out == Decimal("148000")
        assert selling_quote.reserve_in == Decimal("155000")
        assert selling_quote.reserve_out == Decimal("300000")

    def test_quote_exact_output_selling_base(self):
        pool = make_book_pool()

        quote = pool.quote_exact_output(XRP, Decimal("74500"))

        assert quote.amount_in == Decimal("150000")
        assert quote.amount_out == Decimal("74500")

    def test_quote_exact_output_selling_quote(self):
        pool = make_book_pool()

        quote = pool.quote_exact_output(USD, Decimal("1000"))

        assert quote.amount_in == Decimal("510")

    def test_quote_exact_output_beyond_book(self):
        assert make_book_pool().quote_exact_output(XRP, Decimal("148001")) is None

    def test_fee_is_taken_before_the_book(self):
        pool = make_book_pool(fee_bps=100)

        quote = pool.quote(XRP, Decimal("1000"))

        assert quote.fee_paid == Decimal("10")
        assert quote.amount_out == Decimal("495")
