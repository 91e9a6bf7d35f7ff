"""Unit tests for PositionService order entry and portfolio queries."""

from decimal import Decimal

import pytest

from src.bk_common.enums import LedgerEntryType, OrderSide
from src.bk_common.errors import (
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidOrderError,
    PositionNotFoundError,
)
from tests.fakes import World


class TestOrderScenario:
    async def test_weighted_average_then_partial_sell(self, world: World) -> None:
        world.store.open("user-1", 10_000)
        db = world.session()

        first = await world.portfolio.apply_buy(db, "user-1", "ACME", 10, 100)
        assert first.position is not None
        assert first.position.position.avg_price == Decimal(100)
        assert first.position.position.invested == Decimal(1000)

        second = await world.portfolio.apply_buy(db, "user-1", "ACME", 10, 120)
        assert second.position is not None
        assert second.position.position.avg_price == Decimal(110)
        assert second.position.position.invested == Decimal(2200)

        sell = await world.portfolio.apply_sell(db, "user-1", "ACME", 5, 150)
        assert sell.realized is not None
        assert sell.realized.pnl == Decimal(200)
        assert sell.realized.buy_price == Decimal(110)
        assert sell.position is not None
        assert sell.position.position.quantity == 15
        assert sell.position.position.invested == Decimal(1650)

        # 10000 - 1000 - 1200 + 750
        assert world.store.balance("user-1") == 8550
        assert sell.balance_after == 8550
        assert db.commits == 3

    async def test_marks_to_market_with_price_source(self, world: World) -> None:
        world.store.open("user-1", 10_000)
        result = await world.portfolio.apply_buy(world.session(), "user-1", "acme", 10, 100)
        assert result.order.symbol == "ACME"
        assert result.position is not None
        assert result.position.ltp == 150
        assert result.position.current_value == 1500
        assert result.position.pnl == Decimal(500)

    async def test_order_without_price_executes_at_ltp(self, world: World) -> None:
        world.store.open("user-1", 10_000)
        result = await world.portfolio.place_order(
            world.session(), "user-1", "ACME", OrderSide.BUY, 2
        )
        assert result.order.price == 150
        assert result.order.amount == 300


class TestSellBound:
    async def test_oversell_changes_nothing(self, world: World) -> None:
        world.store.open("user-1", 10_000)
        db = world.session()
        await world.portfolio.apply_buy(db, "user-1", "ACME", 3, 100)

        with pytest.raises(InsufficientQuantityError):
            await world.portfolio.apply_sell(db, "user-1", "ACME", 4, 100)
        assert world.store.positions[("user-1", "ACME")].quantity == 3
        assert world.store.balance("user-1") == 9700
        assert world.store.realized == []

    async def test_full_sell_deletes_position(self, world: World) -> None:
        world.store.open("user-1", 10_000)
        db = world.session()
        await world.portfolio.apply_buy(db, "user-1", "ACME", 3, 100)
        result = await world.portfolio.apply_sell(db, "user-1", "ACME", 3, 90)
        assert result.position is None
        assert ("user-1", "ACME") not in world.store.positions
        assert result.realized is not None
        assert result.realized.pnl == Decimal(-30)

        # A later buy starts a fresh average
        rebuy = await world.portfolio.apply_buy(db, "user-1", "ACME", 1, 500)
        assert rebuy.position is not None
        assert rebuy.position.position.avg_price == Decimal(500)


class TestCashSettlement:
    async def test_buy_without_funds_is_atomic(self, world: World) -> None:
        world.store.open("user-1", 999)
        db = world.session()
        with pytest.raises(InsufficientFundsError):
            await world.portfolio.apply_buy(db, "user-1", "ACME", 10, 100)
        assert world.store.positions == {}
        assert world.store.orders == []
        assert db.rollbacks == 1

    async def test_ledger_entry_types(self, world: World) -> None:
        world.store.open("user-1", 10_000)
        db = world.session()
        buy = await world.portfolio.apply_buy(db, "user-1", "ACME", 2, 100)
        await world.portfolio.apply_sell(db, "user-1", "ACME", 1, 100)
        types = [e.entry_type for e in world.store.ledger]
        assert types == [LedgerEntryType.BUY_COST.value, LedgerEntryType.SELL_PROCEEDS.value]
        assert world.store.ledger[0].reference_id == buy.order.id


class TestValidation:
    @pytest.mark.parametrize(
        ("symbol", "quantity", "price"),
        [("", 1, 100), ("ACME", 0, 100), ("ACME", -1, 100), ("ACME", 1, 0)],
    )
    async def test_invalid_orders(
        self, world: World, symbol: str, quantity: int, price: int
    ) -> None:
        world.store.open("user-1", 10_000)
        with pytest.raises(InvalidOrderError):
            await world.portfolio.apply_buy(world.session(), "user-1", symbol, quantity, price)


class TestQueries:
    async def test_summary(self, world: World) -> None:
        world.store.open("user-1", 100_000)
        db = world.session()
        await world.portfolio.apply_buy(db, "user-1", "ACME", 10, 100)
        await world.portfolio.apply_buy(db, "user-1", "ZZZ", 4, 200)
        await world.portfolio.apply_sell(db, "user-1", "ACME", 5, 130)

        summary = await world.portfolio.get_portfolio_summary(db, "user-1")
        # ACME: 5 @ 100, ltp 150; ZZZ: 4 @ 200, ltp falls back to 100
        assert summary.positions_count == 2
        assert summary.total_invested == Decimal(1300)
        assert summary.total_current_value == 750 + 400
        assert summary.unrealized_pnl == Decimal(250 - 400)
        assert summary.total_realized_pnl == Decimal(150)
        assert summary.total_pnl == Decimal(0)

    async def test_get_position_not_found(self, world: World) -> None:
        with pytest.raises(PositionNotFoundError):
            await world.portfolio.get_position(world.session(), "user-1", "ACME")

    async def test_orders_newest_first(self, world: World) -> None:
        world.store.open("user-1", 100_000)
        db = world.session()
        await world.portfolio.apply_buy(db, "user-1", "ACME", 1, 100)
        await world.portfolio.apply_sell(db, "user-1", "ACME", 1, 110)
        orders = await world.portfolio.list_orders(db, "user-1")
        assert [o.side for o in orders] == [OrderSide.SELL, OrderSide.BUY]
        assert orders[0].realized_pnl == Decimal(10)
