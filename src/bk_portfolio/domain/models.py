"""Domain models for bk_portfolio — pure dataclasses, no SQLAlchemy dependency.

Cost basis (avg_price, invested) and P&L are Decimal cents; trade prices and
cash amounts are int cents.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from src.bk_common.enums import OrderSide, OrderStatus


@dataclass
class Position:
    user_id: str
    symbol: str
    quantity: int
    avg_price: Decimal
    invested: Decimal                    # quantity * avg_price
    id: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class RealizedPnlRecord:
    id: str
    user_id: str
    symbol: str
    buy_price: Decimal                   # position avg_price at the time of the sell
    sell_price: int
    quantity: int
    pnl: Decimal                         # (sell_price - buy_price) * quantity
    order_id: str | None = None
    executed_at: datetime | None = None


@dataclass
class Order:
    id: str
    user_id: str
    symbol: str
    side: OrderSide
    quantity: int
    price: int
    amount: int                          # quantity * price, cash moved
    status: OrderStatus = OrderStatus.EXECUTED
    realized_pnl: Decimal | None = None  # sells only
    created_at: datetime | None = None


@dataclass
class PositionView:
    """A position marked to market. Derived, never stored."""

    position: Position
    ltp: int
    current_value: int
    pnl: Decimal
    pnl_percent: Decimal


@dataclass
class PortfolioSummary:
    total_invested: Decimal
    total_current_value: int
    unrealized_pnl: Decimal
    total_realized_pnl: Decimal
    total_pnl: Decimal
    positions_count: int
    positions: list[PositionView] = field(default_factory=list)
    realized: list[RealizedPnlRecord] = field(default_factory=list)


@dataclass
class OrderResult:
    order: Order
    position: PositionView | None        # None when a sell closes the position
    realized: RealizedPnlRecord | None = None
    balance_after: int | None = None
