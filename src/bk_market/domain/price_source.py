"""Price source Protocol — latest tradable price (LTP) per symbol, in cents.

Synchronous and assumed always available: implementations fall back to a
default price for symbols they do not know.
"""

from typing import Protocol


class PriceSourceProtocol(Protocol):
    def get_price(self, symbol: str) -> int: ...
