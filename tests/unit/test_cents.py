"""Unit tests for cents arithmetic helpers."""

from decimal import Decimal

import pytest

from src.bk_common.cents import (
    cents_to_display,
    decimal_to_display,
    percent_of,
    require_positive_amount,
)
from src.bk_common.errors import InvalidAmountError


class TestCentsToDisplay:
    def test_whole_amount(self) -> None:
        assert cents_to_display(6500) == "₹65.00"

    def test_zero(self) -> None:
        assert cents_to_display(0) == "₹0.00"

    def test_thousands_separator(self) -> None:
        assert cents_to_display(123456789) == "₹1,234,567.89"

    def test_negative(self) -> None:
        assert cents_to_display(-1205) == "-₹12.05"

    def test_custom_symbol(self) -> None:
        assert cents_to_display(150, "$") == "$1.50"


def test_decimal_to_display_rounds_to_whole_cents() -> None:
    assert decimal_to_display(Decimal("11000.4")) == "₹110.00"
    assert decimal_to_display(Decimal("-250")) == "-₹2.50"


class TestPercentOf:
    def test_exact(self) -> None:
        assert percent_of(200, Decimal("80")) == 160

    def test_rounds_down(self) -> None:
        # 333 * 12.5% = 41.625
        assert percent_of(333, Decimal("12.5")) == 41

    def test_zero_rate(self) -> None:
        assert percent_of(1000, Decimal("0")) == 0

    def test_zero_amount(self) -> None:
        assert percent_of(0, Decimal("80")) == 0


class TestRequirePositiveAmount:
    def test_accepts_positive_int(self) -> None:
        require_positive_amount(1)

    @pytest.mark.parametrize("value", [0, -5, 1.5, True])
    def test_rejects(self, value: object) -> None:
        with pytest.raises(InvalidAmountError):
            require_positive_amount(value)  # type: ignore[arg-type]

    def test_message_names_field(self) -> None:
        with pytest.raises(InvalidAmountError, match="price"):
            require_positive_amount(0, "price")
