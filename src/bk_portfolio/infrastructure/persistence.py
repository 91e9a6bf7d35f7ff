"""PortfolioRepository — raw SQL over positions / realized_pnl / orders.

Writers lock the (user_id, symbol) row with SELECT ... FOR UPDATE before
computing the new cost basis; the averaging itself happens in Python
(domain/calculations.py). Nothing here commits.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.enums import OrderSide, OrderStatus
from src.bk_common.errors import InternalError
from src.bk_portfolio.domain.models import Order, Position, RealizedPnlRecord

_POSITION_COLUMNS = "id, user_id, symbol, quantity, avg_price, invested, created_at, updated_at"

_GET_POSITION_FOR_UPDATE_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE user_id = :user_id AND symbol = :symbol
    FOR UPDATE
""")

_GET_POSITION_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE user_id = :user_id AND symbol = :symbol
""")

_LIST_POSITIONS_SQL = text(f"""
    SELECT {_POSITION_COLUMNS}
    FROM positions
    WHERE user_id = :user_id
    ORDER BY symbol
""")

_INSERT_POSITION_SQL = text("""
    INSERT INTO positions (user_id, symbol, quantity, avg_price, invested)
    VALUES (:user_id, :symbol, :quantity, :avg_price, :invested)
    ON CONFLICT (user_id, symbol) DO NOTHING
    RETURNING id
""")

_UPDATE_POSITION_SQL = text("""
    UPDATE positions
    SET quantity = :quantity,
        avg_price = :avg_price,
        invested = :invested,
        updated_at = NOW()
    WHERE user_id = :user_id AND symbol = :symbol
""")

_DELETE_POSITION_SQL = text("""
    DELETE FROM positions WHERE user_id = :user_id AND symbol = :symbol
""")

_INSERT_PNL_SQL = text("""
    INSERT INTO realized_pnl
        (id, user_id, symbol, buy_price, sell_price, quantity, pnl, order_id)
    VALUES
        (:id, :user_id, :symbol, :buy_price, :sell_price, :quantity, :pnl, :order_id)
    RETURNING id, user_id, symbol, buy_price, sell_price, quantity, pnl, order_id, executed_at
""")

_LIST_PNL_SQL = text("""
    SELECT id, user_id, symbol, buy_price, sell_price, quantity, pnl, order_id, executed_at
    FROM realized_pnl
    WHERE user_id = :user_id
    ORDER BY executed_at DESC, id DESC
    LIMIT :limit
""")

_SUM_PNL_SQL = text("""
    SELECT COALESCE(SUM(pnl), 0) AS total FROM realized_pnl WHERE user_id = :user_id
""")

_ORDER_COLUMNS = "id, user_id, symbol, side, quantity, price, amount, status, realized_pnl, created_at"

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders
        (id, user_id, symbol, side, quantity, price, amount, status, realized_pnl)
    VALUES
        (:id, :user_id, :symbol, :side, :quantity, :price, :amount, :status, :realized_pnl)
    RETURNING {_ORDER_COLUMNS}
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_ORDER_COLUMNS}
    FROM orders
    WHERE user_id = :user_id
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")


def _row_to_position(row: Any) -> Position:
    return Position(
        id=row.id,
        user_id=row.user_id,
        symbol=row.symbol,
        quantity=row.quantity,
        avg_price=Decimal(row.avg_price),
        invested=Decimal(row.invested),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_pnl(row: Any) -> RealizedPnlRecord:
    return RealizedPnlRecord(
        id=row.id,
        user_id=row.user_id,
        symbol=row.symbol,
        buy_price=Decimal(row.buy_price),
        sell_price=row.sell_price,
        quantity=row.quantity,
        pnl=Decimal(row.pnl),
        order_id=row.order_id,
        executed_at=row.executed_at,
    )


def _row_to_order(row: Any) -> Order:
    return Order(
        id=row.id,
        user_id=row.user_id,
        symbol=row.symbol,
        side=OrderSide(row.side),
        quantity=row.quantity,
        price=row.price,
        amount=row.amount,
        status=OrderStatus(row.status),
        realized_pnl=Decimal(row.realized_pnl) if row.realized_pnl is not None else None,
        created_at=row.created_at,
    )


def _position_params(position: Position) -> dict[str, Any]:
    return {
        "user_id": position.user_id,
        "symbol": position.symbol,
        "quantity": position.quantity,
        "avg_price": position.avg_price,
        "invested": position.invested,
    }


class PortfolioRepository:
    async def get_position_for_update(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Position | None:
        row = (
            await db.execute(
                _GET_POSITION_FOR_UPDATE_SQL, {"user_id": user_id, "symbol": symbol}
            )
        ).fetchone()
        return _row_to_position(row) if row else None

    async def get_position(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Position | None:
        row = (
            await db.execute(_GET_POSITION_SQL, {"user_id": user_id, "symbol": symbol})
        ).fetchone()
        return _row_to_position(row) if row else None

    async def list_positions(self, db: AsyncSession, user_id: str) -> list[Position]:
        rows = (await db.execute(_LIST_POSITIONS_SQL, {"user_id": user_id})).fetchall()
        return [_row_to_position(r) for r in rows]

    async def insert_position(self, db: AsyncSession, position: Position) -> bool:
        row = (await db.execute(_INSERT_POSITION_SQL, _position_params(position))).fetchone()
        if row is None:
            return False
        position.id = row.id
        return True

    async def update_position(self, db: AsyncSession, position: Position) -> None:
        await db.execute(_UPDATE_POSITION_SQL, _position_params(position))

    async def delete_position(self, db: AsyncSession, user_id: str, symbol: str) -> None:
        await db.execute(_DELETE_POSITION_SQL, {"user_id": user_id, "symbol": symbol})

    async def insert_realized_pnl(
        self, db: AsyncSession, record: RealizedPnlRecord
    ) -> RealizedPnlRecord:
        row = (
            await db.execute(
                _INSERT_PNL_SQL,
                {
                    "id": record.id,
                    "user_id": record.user_id,
                    "symbol": record.symbol,
                    "buy_price": record.buy_price,
                    "sell_price": record.sell_price,
                    "quantity": record.quantity,
                    "pnl": record.pnl,
                    "order_id": record.order_id,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Realized P&L insert returned no rows")
        return _row_to_pnl(row)

    async def list_realized_pnl(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[RealizedPnlRecord]:
        rows = (
            await db.execute(_LIST_PNL_SQL, {"user_id": user_id, "limit": limit})
        ).fetchall()
        return [_row_to_pnl(r) for r in rows]

    async def sum_realized_pnl(self, db: AsyncSession, user_id: str) -> Decimal:
        row = (await db.execute(_SUM_PNL_SQL, {"user_id": user_id})).fetchone()
        return Decimal(row.total) if row is not None else Decimal(0)

    async def insert_order(self, db: AsyncSession, order: Order) -> Order:
        row = (
            await db.execute(
                _INSERT_ORDER_SQL,
                {
                    "id": order.id,
                    "user_id": order.user_id,
                    "symbol": order.symbol,
                    "side": order.side.value,
                    "quantity": order.quantity,
                    "price": order.price,
                    "amount": order.amount,
                    "status": order.status.value,
                    "realized_pnl": order.realized_pnl,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Order insert returned no rows")
        return _row_to_order(row)

    async def list_orders(self, db: AsyncSession, user_id: str, limit: int) -> list[Order]:
        rows = (
            await db.execute(_LIST_ORDERS_SQL, {"user_id": user_id, "limit": limit})
        ).fetchall()
        return [_row_to_order(r) for r in rows]
