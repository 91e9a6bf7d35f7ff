"""StaticPriceSource — in-process quote table with a default fallback."""

from collections.abc import Mapping

from config.settings import settings

# Reference LTPs for the listed cash-market symbols (cents)
DEFAULT_PRICES: dict[str, int] = {
    "RELIANCE": 254000,
    "TCS": 369520,
    "HDFCBANK": 165350,
    "INFY": 155810,
    "ICICIBANK": 98030,
    "HINDUNILVR": 250000,
    "SBIN": 60050,
    "BHARTIARTL": 85000,
    "ITC": 45540,
    "KOTAKBANK": 180000,
    "LT": 280000,
    "AXISBANK": 100000,
    "ASIANPAINT": 320000,
    "MARUTI": 1050000,
    "TITAN": 300000,
}


class StaticPriceSource:
    def __init__(
        self,
        prices: Mapping[str, int] | None = None,
        default_price: int | None = None,
    ) -> None:
        source = DEFAULT_PRICES if prices is None else prices
        self._prices: dict[str, int] = {k.upper(): v for k, v in source.items()}
        self._default_price = (
            settings.DEFAULT_PRICE_CENTS if default_price is None else default_price
        )

    @property
    def default_price(self) -> int:
        return self._default_price

    def get_price(self, symbol: str) -> int:
        return self._prices.get(symbol.upper(), self._default_price)

    def set_price(self, symbol: str, price: int) -> None:
        self._prices[symbol.upper()] = price

    def quotes(self) -> dict[str, int]:
        return dict(sorted(self._prices.items()))


_default_source: StaticPriceSource | None = None


def get_price_source() -> StaticPriceSource:
    """Process-wide price source shared by routers."""
    global _default_source  # noqa: PLW0603
    if _default_source is None:
        _default_source = StaticPriceSource()
    return _default_source
