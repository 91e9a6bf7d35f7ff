"""SQL repositories against a mocked AsyncSession: row mapping and 0-row outcomes."""

import json
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.bk_account.infrastructure.persistence import AccountRepository
from src.bk_common.enums import (
    HoldKind,
    HoldStatus,
    LedgerEntryType,
    WalletTxnKind,
    WalletTxnStatus,
)
from src.bk_common.errors import AccountNotFoundError, InsufficientFundsError
from src.bk_escrow.infrastructure.persistence import EscrowHoldRepository, IpoRepository
from src.bk_portfolio.domain.models import Position
from src.bk_portfolio.infrastructure.persistence import PortfolioRepository
from src.bk_wallet.domain.models import PaymentGateway, WalletTransaction
from src.bk_wallet.infrastructure.persistence import (
    PaymentGatewayRepository,
    WalletTransactionRepository,
)

NOW = datetime(2026, 1, 5, 9, 15, tzinfo=UTC)


def _result(row: object = None) -> MagicMock:
    result = MagicMock()
    result.fetchone.return_value = row
    result.fetchall.return_value = [] if row is None else [row]
    return result


def _db(*results: MagicMock) -> AsyncMock:
    db = AsyncMock()
    db.execute.side_effect = list(results)
    return db


def _account_row(balance: int) -> SimpleNamespace:
    return SimpleNamespace(
        id="acc-1", user_id="u1", balance=balance, version=3, created_at=NOW, updated_at=NOW
    )


def _ledger_row(amount: int, balance_after: int) -> SimpleNamespace:
    return SimpleNamespace(
        id=11,
        user_id="u1",
        entry_type=LedgerEntryType.BUY_COST.value,
        amount=amount,
        balance_after=balance_after,
        reference_type="ORDER",
        reference_id="ord-1",
        description=None,
        created_at=NOW,
    )


class TestAccountRepository:
    async def test_debit_appends_signed_ledger_entry(self) -> None:
        db = _db(_result(_account_row(700)), _result(_ledger_row(-300, 700)))
        account, entry = await AccountRepository().debit(
            db, "u1", 300, LedgerEntryType.BUY_COST.value, "ORDER", "ord-1", None
        )
        assert account.balance == 700
        assert entry.amount == -300
        ledger_params = db.execute.await_args_list[1].args[1]
        assert ledger_params["amount"] == -300
        assert ledger_params["balance_after"] == 700

    async def test_debit_zero_rows_existing_account_is_insufficient(self) -> None:
        db = _db(_result(None), _result(_account_row(100)))
        with pytest.raises(InsufficientFundsError):
            await AccountRepository().debit(db, "u1", 300, "BUY_COST", "ORDER", None, None)
        assert db.execute.await_count == 2

    async def test_debit_zero_rows_no_account(self) -> None:
        db = _db(_result(None), _result(None))
        with pytest.raises(AccountNotFoundError):
            await AccountRepository().debit(db, "u1", 300, "BUY_COST", "ORDER", None, None)

    async def test_credit_unknown_account(self) -> None:
        db = _db(_result(None))
        with pytest.raises(AccountNotFoundError):
            await AccountRepository().credit(db, "u1", 300, "DEPOSIT", "WALLET_TXN", None, None)

    async def test_create_existing_returns_current_row(self) -> None:
        db = _db(_result(None), _result(_account_row(5000)))
        account, created = await AccountRepository().create_account(db, "u1")
        assert account.balance == 5000
        assert created is False

    async def test_create_new_reports_created(self) -> None:
        db = _db(_result(_account_row(0)))
        account, created = await AccountRepository().create_account(db, "u1")
        assert account.balance == 0
        assert created is True
        assert db.execute.await_count == 1


def _hold_row(**overrides: object) -> SimpleNamespace:
    row = {
        "id": "hold-1",
        "user_id": "u1",
        "kind": "TIMED_TRADE",
        "held_amount": 10000,
        "status": "PENDING",
        "profit_rate": Decimal("80.00"),
        "payout_amount": 0,
        "profit_amount": 0,
        "metadata": json.dumps({"symbol": "INFY"}),
        "expires_at": NOW,
        "resolved_by": None,
        "resolved_at": None,
        "created_at": NOW,
    }
    row.update(overrides)
    return SimpleNamespace(**row)


class TestEscrowHoldRepository:
    async def test_get_hold_maps_row(self) -> None:
        hold = await EscrowHoldRepository().get_hold(_db(_result(_hold_row())), "hold-1")
        assert hold is not None
        assert hold.kind is HoldKind.TIMED_TRADE
        assert hold.profit_rate == Decimal("80.00")
        assert hold.metadata == {"symbol": "INFY"}

    async def test_get_hold_missing(self) -> None:
        assert await EscrowHoldRepository().get_hold(_db(_result(None)), "nope") is None

    async def test_resolve_pending_lost_race_returns_none(self) -> None:
        db = _db(_result(None))
        resolved = await EscrowHoldRepository().resolve_pending(
            db, "hold-1", HoldStatus.RESOLVED_BONUS, 18000, 8000, "SYSTEM"
        )
        assert resolved is None
        params = db.execute.await_args.args[1]
        assert params["status"] == "RESOLVED_BONUS"
        assert params["resolved_by"] == "SYSTEM"

    async def test_resolve_pending_maps_terminal_row(self) -> None:
        row = _hold_row(
            status="RESOLVED_RETURN", payout_amount=10000, resolved_by="ADMIN", resolved_at=NOW
        )
        resolved = await EscrowHoldRepository().resolve_pending(
            _db(_result(row)), "hold-1", HoldStatus.RESOLVED_RETURN, 10000, 0, "ADMIN"
        )
        assert resolved is not None
        assert resolved.status is HoldStatus.RESOLVED_RETURN
        assert not resolved.is_pending


class TestPortfolioRepository:
    async def test_insert_conflict_returns_false(self) -> None:
        position = Position("u1", "ACME", 10, Decimal(100), Decimal(1000))
        assert await PortfolioRepository().insert_position(_db(_result(None)), position) is False
        assert position.id is None

    async def test_insert_assigns_id(self) -> None:
        position = Position("u1", "ACME", 10, Decimal(100), Decimal(1000))
        inserted = await PortfolioRepository().insert_position(
            _db(_result(SimpleNamespace(id=42))), position
        )
        assert inserted is True
        assert position.id == 42


def _txn_row(status: str) -> SimpleNamespace:
    return SimpleNamespace(
        seq=1, id="TXN1", user_id="u1", kind="DEPOSIT", amount=500, fee=0, status=status,
        channel="upi", method_id=None, gateway_id=None, destination_account=None,
        details="{}", reference_id=None, description=None, rejection_reason=None,
        created_at=NOW, resolved_at=None if status == "PENDING" else NOW,
    )


class TestWalletTransactionRepository:
    async def test_insert_types_status_for_resolved_at_case(self) -> None:
        db = _db(_result(_txn_row("PENDING")))
        txn = WalletTransaction(
            id="TXN1", user_id="u1", kind=WalletTxnKind.DEPOSIT, amount=500,
            status=WalletTxnStatus.PENDING, channel="upi",
        )
        inserted = await WalletTransactionRepository().insert_transaction(db, txn)
        assert inserted.status is WalletTxnStatus.PENDING
        sql, params = db.execute.await_args.args
        # asyncpg cannot infer one type for a bind used as a column value and in a comparison
        assert "CAST(:status AS VARCHAR) = 'PENDING'" in str(sql)
        assert params["status"] == "PENDING"
        assert params["details"] == "{}"


def _gateway_row(**overrides: object) -> SimpleNamespace:
    row = {
        "id": "PG1",
        "name": "USDT TRC20",
        "trc20_address": "TXyz",
        "trc20_qr_code": None,
        "min_deposit": 1000,
        "confirmation_time": "10-30 minutes",
        "instructions": None,
        "is_active": True,
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return SimpleNamespace(**row)


class TestPaymentGatewayRepository:
    async def test_get_gateway_maps_row(self) -> None:
        gateway = await PaymentGatewayRepository().get_gateway(_db(_result(_gateway_row())), "PG1")
        assert gateway is not None
        assert gateway.min_deposit == 1000
        assert gateway.is_active is True

    async def test_update_missing_returns_none(self) -> None:
        gateway = PaymentGateway(id="PG404", name="X", trc20_address="T")
        db = _db(_result(None))
        assert await PaymentGatewayRepository().update_gateway(db, gateway) is None
        assert db.execute.await_args.args[1]["min_deposit"] == 0

    async def test_list_passes_active_filter(self) -> None:
        db = _db(_result(_gateway_row(is_active=False)))
        rows = await PaymentGatewayRepository().list_gateways(db, active_only=False)
        assert [g.is_active for g in rows] == [False]
        assert db.execute.await_args.args[1] == {"active_only": False}


class TestIpoRepository:
    async def test_delete_blocked_or_missing_returns_false(self) -> None:
        assert await IpoRepository().delete_ipo(_db(_result(None)), "IPO1") is False

    async def test_delete_returns_true_on_row(self) -> None:
        db = _db(_result(SimpleNamespace(id="IPO1")))
        assert await IpoRepository().delete_ipo(db, "IPO1") is True
        assert "NOT EXISTS" in str(db.execute.await_args.args[0])
