"""Repository Protocol for positions, realized P&L and orders."""

from decimal import Decimal
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_portfolio.domain.models import Order, Position, RealizedPnlRecord


class PortfolioRepositoryProtocol(Protocol):
    async def get_position_for_update(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Position | None:
        """SELECT ... FOR UPDATE: serializes writers on the same (user, symbol)."""
        ...

    async def get_position(
        self, db: AsyncSession, user_id: str, symbol: str
    ) -> Position | None: ...

    async def list_positions(self, db: AsyncSession, user_id: str) -> list[Position]: ...

    async def insert_position(self, db: AsyncSession, position: Position) -> bool:
        """Insert a first position row. Returns False if one already exists."""
        ...

    async def update_position(self, db: AsyncSession, position: Position) -> None: ...

    async def delete_position(self, db: AsyncSession, user_id: str, symbol: str) -> None: ...

    async def insert_realized_pnl(
        self, db: AsyncSession, record: RealizedPnlRecord
    ) -> RealizedPnlRecord: ...

    async def list_realized_pnl(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[RealizedPnlRecord]: ...

    async def sum_realized_pnl(self, db: AsyncSession, user_id: str) -> Decimal: ...

    async def insert_order(self, db: AsyncSession, order: Order) -> Order: ...

    async def list_orders(self, db: AsyncSession, user_id: str, limit: int) -> list[Order]: ...
