"""Tests for the in-process price source."""

from src.bk_market.infrastructure.static_prices import DEFAULT_PRICES, StaticPriceSource


class TestStaticPriceSource:
    def test_known_symbol_case_insensitive(self) -> None:
        source = StaticPriceSource({"infy": 155810}, default_price=100000)
        assert source.get_price("INFY") == 155810
        assert source.get_price("Infy") == 155810

    def test_unknown_symbol_falls_back(self) -> None:
        source = StaticPriceSource({}, default_price=4200)
        assert source.get_price("NOPE") == 4200
        assert source.default_price == 4200

    def test_set_price_overrides(self) -> None:
        source = StaticPriceSource({"ACME": 150}, default_price=100)
        source.set_price("acme", 175)
        assert source.get_price("ACME") == 175

    def test_quotes_sorted_copy(self) -> None:
        source = StaticPriceSource({"TCS": 2, "ACME": 1}, default_price=100)
        quotes = source.quotes()
        assert list(quotes) == ["ACME", "TCS"]
        quotes["ACME"] = 999
        assert source.get_price("ACME") == 1

    def test_default_table(self) -> None:
        source = StaticPriceSource()
        assert source.get_price("RELIANCE") == DEFAULT_PRICES["RELIANCE"]
