"""PositionService — order entry, weighted-average positions and realized P&L.

Each order is one database transaction:
  1. lock the (user, symbol) position row (FOR UPDATE)
  2. compute the new cost basis (pure function)
  3. debit the cost (buy) or credit the proceeds (sell) in the Account Store
  4. write the position, the order row and, for sells, the realized P&L record
  5. commit

Position lock before account lock, for both sides, so two orders of the same
user never wait on each other in opposite order.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_account.application.service import AccountService
from src.bk_common.enums import LedgerEntryType, OrderSide, ReferenceType
from src.bk_common.errors import InvalidOrderError, PositionNotFoundError
from src.bk_common.id_generator import ORDER_PREFIX, PNL_PREFIX, generate_id
from src.bk_market.domain.price_source import PriceSourceProtocol
from src.bk_market.infrastructure.static_prices import get_price_source
from src.bk_portfolio.domain.calculations import (
    mark_to_market,
    rebase_on_buy,
    reduce_on_sell,
    summarize,
)
from src.bk_portfolio.domain.models import (
    Order,
    OrderResult,
    PortfolioSummary,
    PositionView,
    RealizedPnlRecord,
)
from src.bk_portfolio.domain.repository import PortfolioRepositoryProtocol
from src.bk_portfolio.infrastructure.persistence import PortfolioRepository

logger = logging.getLogger(__name__)

REALIZED_PNL_PAGE = 50
ORDERS_PAGE = 20


class PositionService:
    def __init__(
        self,
        account_service: AccountService | None = None,
        price_source: PriceSourceProtocol | None = None,
        repo: PortfolioRepositoryProtocol | None = None,
    ) -> None:
        self._accounts = account_service or AccountService()
        self._prices: PriceSourceProtocol = price_source or get_price_source()
        self._repo: PortfolioRepositoryProtocol = repo or PortfolioRepository()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def apply_buy(
        self, db: AsyncSession, user_id: str, symbol: str, quantity: int, price: int
    ) -> OrderResult:
        return await self.place_order(db, user_id, symbol, OrderSide.BUY, quantity, price)

    async def apply_sell(
        self, db: AsyncSession, user_id: str, symbol: str, quantity: int, price: int
    ) -> OrderResult:
        return await self.place_order(db, user_id, symbol, OrderSide.SELL, quantity, price)

    async def place_order(
        self,
        db: AsyncSession,
        user_id: str,
        symbol: str,
        side: OrderSide,
        quantity: int,
        price: int | None = None,
    ) -> OrderResult:
        """Execute an order immediately. price=None executes at the current price."""
        symbol = symbol.strip().upper()
        if not symbol:
            raise InvalidOrderError("symbol is required")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidOrderError(f"quantity must be a positive integer, got {quantity!r}")
        ltp = self._prices.get_price(symbol)
        if price is None:
            price = ltp
        if isinstance(price, bool) or not isinstance(price, int) or price <= 0:
            raise InvalidOrderError(f"price must be a positive integer number of cents, got {price!r}")

        order_id = generate_id(ORDER_PREFIX)
        try:
            if side is OrderSide.BUY:
                result = await self._execute_buy(db, order_id, user_id, symbol, quantity, price, ltp)
            else:
                result = await self._execute_sell(db, order_id, user_id, symbol, quantity, price, ltp)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Order executed: id=%s user=%s %s %d %s @ %d",
            order_id, user_id, side.value, quantity, symbol, price,
        )
        return result

    async def _execute_buy(
        self,
        db: AsyncSession,
        order_id: str,
        user_id: str,
        symbol: str,
        quantity: int,
        price: int,
        ltp: int,
    ) -> OrderResult:
        amount = quantity * price
        existing = await self._repo.get_position_for_update(db, user_id, symbol)
        account = await self._accounts.debit(
            db, user_id, amount,
            entry_type=LedgerEntryType.BUY_COST,
            reference_type=ReferenceType.ORDER,
            reference_id=order_id,
            description=f"Buy {quantity} {symbol} @ {price}",
        )
        position = rebase_on_buy(existing, user_id, symbol, quantity, price)
        if existing is None:
            if not await self._repo.insert_position(db, position):
                # A concurrent first buy created the row; lock it and re-base on top
                existing = await self._repo.get_position_for_update(db, user_id, symbol)
                position = rebase_on_buy(existing, user_id, symbol, quantity, price)
                await self._repo.update_position(db, position)
        else:
            await self._repo.update_position(db, position)

        order = await self._repo.insert_order(
            db,
            Order(
                id=order_id,
                user_id=user_id,
                symbol=symbol,
                side=OrderSide.BUY,
                quantity=quantity,
                price=price,
                amount=amount,
            ),
        )
        return OrderResult(
            order=order,
            position=mark_to_market(position, ltp),
            balance_after=account.balance,
        )

    async def _execute_sell(
        self,
        db: AsyncSession,
        order_id: str,
        user_id: str,
        symbol: str,
        quantity: int,
        price: int,
        ltp: int,
    ) -> OrderResult:
        existing = await self._repo.get_position_for_update(db, user_id, symbol)
        remaining, pnl = reduce_on_sell(existing, symbol, quantity, price)
        assert existing is not None  # reduce_on_sell raises otherwise
        amount = quantity * price

        if remaining is None:
            await self._repo.delete_position(db, user_id, symbol)
        else:
            await self._repo.update_position(db, remaining)

        account = await self._accounts.credit(
            db, user_id, amount,
            entry_type=LedgerEntryType.SELL_PROCEEDS,
            reference_type=ReferenceType.ORDER,
            reference_id=order_id,
            description=f"Sell {quantity} {symbol} @ {price}",
        )
        order = await self._repo.insert_order(
            db,
            Order(
                id=order_id,
                user_id=user_id,
                symbol=symbol,
                side=OrderSide.SELL,
                quantity=quantity,
                price=price,
                amount=amount,
                realized_pnl=pnl,
            ),
        )
        record = await self._repo.insert_realized_pnl(
            db,
            RealizedPnlRecord(
                id=generate_id(PNL_PREFIX),
                user_id=user_id,
                symbol=symbol,
                buy_price=existing.avg_price,
                sell_price=price,
                quantity=quantity,
                pnl=pnl,
                order_id=order_id,
            ),
        )
        return OrderResult(
            order=order,
            position=mark_to_market(remaining, ltp) if remaining is not None else None,
            realized=record,
            balance_after=account.balance,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_positions(self, db: AsyncSession, user_id: str) -> list[PositionView]:
        positions = await self._repo.list_positions(db, user_id)
        return [mark_to_market(p, self._prices.get_price(p.symbol)) for p in positions]

    async def get_position(self, db: AsyncSession, user_id: str, symbol: str) -> PositionView:
        symbol = symbol.upper()
        position = await self._repo.get_position(db, user_id, symbol)
        if position is None:
            raise PositionNotFoundError(symbol)
        return mark_to_market(position, self._prices.get_price(symbol))

    async def list_realized_pnl(
        self, db: AsyncSession, user_id: str, limit: int = REALIZED_PNL_PAGE
    ) -> list[RealizedPnlRecord]:
        return await self._repo.list_realized_pnl(db, user_id, limit)

    async def list_orders(
        self, db: AsyncSession, user_id: str, limit: int = ORDERS_PAGE
    ) -> list[Order]:
        return await self._repo.list_orders(db, user_id, limit)

    async def get_portfolio_summary(self, db: AsyncSession, user_id: str) -> PortfolioSummary:
        views = await self.list_positions(db, user_id)
        realized = await self.list_realized_pnl(db, user_id)
        total_realized = await self._repo.sum_realized_pnl(db, user_id)
        return summarize(views, realized, total_realized)
