"""Pydantic schemas for bk_portfolio API.

Decimal cost-basis values are rendered as strings so the JSON encoder never
turns them into floats.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.bk_common.cents import cents_to_display, decimal_to_display
from src.bk_common.datetime_utils import isoformat_or_none
from src.bk_common.enums import OrderSide
from src.bk_portfolio.domain.models import (
    Order,
    OrderResult,
    PortfolioSummary,
    PositionView,
    RealizedPnlRecord,
)

_FOUR_PLACES = Decimal("0.0001")
_TWO_PLACES = Decimal("0.01")


def _dec(value: Decimal, places: Decimal = _FOUR_PLACES) -> str:
    return format(value.quantize(places), "f")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PlaceOrderRequest(BaseModel):
    symbol: str = Field(..., min_length=1, max_length=20)
    side: OrderSide
    quantity: int = Field(..., gt=0)
    price_cents: int | None = Field(None, gt=0, description="Omit to execute at the current price")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PositionResponse(BaseModel):
    symbol: str
    quantity: int
    avg_price_cents: str
    invested_cents: str
    ltp_cents: int
    current_value_cents: int
    pnl_cents: str
    pnl_percent: str
    invested_display: str
    current_value_display: str
    pnl_display: str

    @classmethod
    def from_view(cls, view: PositionView) -> "PositionResponse":
        p = view.position
        return cls(
            symbol=p.symbol,
            quantity=p.quantity,
            avg_price_cents=_dec(p.avg_price),
            invested_cents=_dec(p.invested),
            ltp_cents=view.ltp,
            current_value_cents=view.current_value,
            pnl_cents=_dec(view.pnl),
            pnl_percent=_dec(view.pnl_percent, _TWO_PLACES),
            invested_display=decimal_to_display(p.invested),
            current_value_display=cents_to_display(view.current_value),
            pnl_display=decimal_to_display(view.pnl),
        )


class RealizedPnlResponse(BaseModel):
    id: str
    symbol: str
    buy_price_cents: str
    sell_price_cents: int
    quantity: int
    pnl_cents: str
    pnl_display: str
    executed_at: str | None

    @classmethod
    def from_domain(cls, record: RealizedPnlRecord) -> "RealizedPnlResponse":
        return cls(
            id=record.id,
            symbol=record.symbol,
            buy_price_cents=_dec(record.buy_price),
            sell_price_cents=record.sell_price,
            quantity=record.quantity,
            pnl_cents=_dec(record.pnl),
            pnl_display=decimal_to_display(record.pnl),
            executed_at=isoformat_or_none(record.executed_at),
        )


class OrderResponse(BaseModel):
    id: str
    symbol: str
    side: str
    quantity: int
    price_cents: int
    amount_cents: int
    amount_display: str
    status: str
    realized_pnl_cents: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            symbol=order.symbol,
            side=order.side.value,
            quantity=order.quantity,
            price_cents=order.price,
            amount_cents=order.amount,
            amount_display=cents_to_display(order.amount),
            status=order.status.value,
            realized_pnl_cents=(
                _dec(order.realized_pnl) if order.realized_pnl is not None else None
            ),
            created_at=isoformat_or_none(order.created_at),
        )


class OrderResultResponse(BaseModel):
    order: OrderResponse
    position: PositionResponse | None
    realized: RealizedPnlResponse | None
    balance_after_cents: int | None

    @classmethod
    def from_result(cls, result: OrderResult) -> "OrderResultResponse":
        return cls(
            order=OrderResponse.from_domain(result.order),
            position=PositionResponse.from_view(result.position) if result.position else None,
            realized=(
                RealizedPnlResponse.from_domain(result.realized) if result.realized else None
            ),
            balance_after_cents=result.balance_after,
        )


class PortfolioSummaryResponse(BaseModel):
    total_invested_cents: str
    total_current_value_cents: int
    unrealized_pnl_cents: str
    total_realized_pnl_cents: str
    total_pnl_cents: str
    total_pnl_display: str
    positions_count: int
    positions: list[PositionResponse]
    realized: list[RealizedPnlResponse]

    @classmethod
    def from_summary(cls, summary: PortfolioSummary) -> "PortfolioSummaryResponse":
        return cls(
            total_invested_cents=_dec(summary.total_invested),
            total_current_value_cents=summary.total_current_value,
            unrealized_pnl_cents=_dec(summary.unrealized_pnl),
            total_realized_pnl_cents=_dec(summary.total_realized_pnl),
            total_pnl_cents=_dec(summary.total_pnl),
            total_pnl_display=decimal_to_display(summary.total_pnl),
            positions_count=summary.positions_count,
            positions=[PositionResponse.from_view(v) for v in summary.positions],
            realized=[RealizedPnlResponse.from_domain(r) for r in summary.realized],
        )
