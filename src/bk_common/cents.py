"""Integer arithmetic utilities for cents-based balances.

All balances, amounts and fees use int (cents). No float anywhere in balance math.
Position cost basis is the one exception: weighted averages are Decimal cents.
"""

from decimal import ROUND_DOWN, Decimal

from src.bk_common.errors import InvalidAmountError

DEFAULT_CURRENCY_SYMBOL = "₹"


def require_positive_amount(amount: int, field: str = "amount") -> None:
    """Reject zero, negative and non-integer amounts."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(f"{field} must be a positive integer number of cents, got {amount!r}")


def cents_to_display(cents: int, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Convert cents to display string: 6500 -> '₹65.00', -1200 -> '-₹12.00'."""
    if cents < 0:
        abs_cents = -cents
        return f"-{symbol}{abs_cents // 100:,}.{abs_cents % 100:02d}"
    return f"{symbol}{cents // 100:,}.{cents % 100:02d}"


def decimal_to_display(value: Decimal, symbol: str = DEFAULT_CURRENCY_SYMBOL) -> str:
    """Display Decimal cents (cost basis, P&L) rounded to whole cents."""
    return cents_to_display(int(value.quantize(Decimal("1"))), symbol)


def percent_of(amount: int, rate_percent: Decimal) -> int:
    """Return amount * rate / 100, rounded down to whole cents (platform never over-pays).

    percent_of(200, Decimal("80")) == 160
    """
    if amount == 0 or rate_percent == 0:
        return 0
    raw = Decimal(amount) * rate_percent / Decimal(100)
    return int(raw.to_integral_value(rounding=ROUND_DOWN))
