"""Pure position arithmetic — no I/O, fully unit-testable.

Every buy re-bases the average cost across the cumulative quantity:
    invested' = invested + qty * price
    avg'      = invested' / quantity'
A sell never changes avg_price; it realizes (price - avg) * qty and shrinks
invested to remaining * avg. A position that reaches exactly zero is closed.
"""

from decimal import Decimal

from src.bk_common.errors import InsufficientQuantityError
from src.bk_portfolio.domain.models import (
    PortfolioSummary,
    Position,
    PositionView,
    RealizedPnlRecord,
)

_ZERO = Decimal(0)
_HUNDRED = Decimal(100)


def rebase_on_buy(
    existing: Position | None,
    user_id: str,
    symbol: str,
    quantity: int,
    price: int,
) -> Position:
    fill_cost = Decimal(quantity) * Decimal(price)
    if existing is None:
        return Position(
            user_id=user_id,
            symbol=symbol,
            quantity=quantity,
            avg_price=Decimal(price),
            invested=fill_cost,
        )
    new_quantity = existing.quantity + quantity
    new_invested = existing.invested + fill_cost
    return Position(
        user_id=existing.user_id,
        symbol=existing.symbol,
        quantity=new_quantity,
        avg_price=new_invested / Decimal(new_quantity),
        invested=new_invested,
        id=existing.id,
        created_at=existing.created_at,
    )


def reduce_on_sell(
    existing: Position | None,
    symbol: str,
    quantity: int,
    price: int,
) -> tuple[Position | None, Decimal]:
    """Return (remaining position or None if flat, realized pnl).

    Raises:
        InsufficientQuantityError: quantity exceeds what is held (or nothing is held).
    """
    held = existing.quantity if existing is not None else 0
    if existing is None or quantity > held:
        raise InsufficientQuantityError(symbol, quantity, held)

    pnl = (Decimal(price) - existing.avg_price) * Decimal(quantity)
    remaining = held - quantity
    if remaining == 0:
        return None, pnl
    return (
        Position(
            user_id=existing.user_id,
            symbol=existing.symbol,
            quantity=remaining,
            avg_price=existing.avg_price,
            invested=Decimal(remaining) * existing.avg_price,
            id=existing.id,
            created_at=existing.created_at,
        ),
        pnl,
    )


def pnl_percent(pnl: Decimal, invested: Decimal) -> Decimal:
    if invested == 0:
        return _ZERO
    return pnl / invested * _HUNDRED


def mark_to_market(position: Position, ltp: int) -> PositionView:
    current_value = position.quantity * ltp
    pnl = Decimal(current_value) - position.invested
    return PositionView(
        position=position,
        ltp=ltp,
        current_value=current_value,
        pnl=pnl,
        pnl_percent=pnl_percent(pnl, position.invested),
    )


def summarize(
    views: list[PositionView],
    realized: list[RealizedPnlRecord],
    total_realized: Decimal | None = None,
) -> PortfolioSummary:
    """Aggregate open positions and realized records.

    total_realized overrides the sum over `realized` when that list is only a
    recent page of the full log.
    """
    total_invested = sum((v.position.invested for v in views), _ZERO)
    total_current_value = sum(v.current_value for v in views)
    unrealized = sum((v.pnl for v in views), _ZERO)
    if total_realized is None:
        total_realized = sum((r.pnl for r in realized), _ZERO)
    return PortfolioSummary(
        total_invested=total_invested,
        total_current_value=total_current_value,
        unrealized_pnl=unrealized,
        total_realized_pnl=total_realized,
        total_pnl=unrealized + total_realized,
        positions_count=len(views),
        positions=views,
        realized=realized,
    )
