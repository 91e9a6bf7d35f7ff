"""Unit tests for AccountService against the in-memory store."""

import pytest

from src.bk_common.enums import (
    AdjustDirection,
    LedgerEntryType,
    NotificationCategory,
    ReferenceType,
    WalletChannel,
    WalletTxnKind,
    WalletTxnStatus,
)
from src.bk_common.errors import (
    AccountNotFoundError,
    InsufficientFundsError,
    InvalidAmountError,
)
from tests.fakes import FailingNotifier, World


class TestOpenAccount:
    async def test_new_account_with_opening_balance(self, world: World) -> None:
        db = world.session()
        account = await world.accounts.open_account(db, "user-1", 5000)
        assert account.balance == 5000
        assert world.store.ledger[-1].entry_type == LedgerEntryType.DEPOSIT.value
        assert db.commits == 1

    async def test_reopen_is_idempotent(self, world: World) -> None:
        db = world.session()
        await world.accounts.open_account(db, "user-1", 5000)
        again = await world.accounts.open_account(db, "user-1", 5000)
        assert again.balance == 5000
        assert len(world.store.ledger) == 1

    async def test_reopen_untouched_account_does_not_credit(self, world: World) -> None:
        db = world.session()
        await world.accounts.open_account(db, "user-1", 0)
        again = await world.accounts.open_account(db, "user-1", 100000)
        assert again.balance == 0
        assert await world.accounts.get_balance(db, "user-1") == 0
        assert world.store.ledger == []

    async def test_negative_opening_balance_rejected(self, world: World) -> None:
        with pytest.raises(InvalidAmountError):
            await world.accounts.open_account(world.session(), "user-1", -1)


class TestDebitCredit:
    async def test_debit_and_credit_append_ledger(self, world: World) -> None:
        world.store.open("user-1", 1000)
        db = world.session()
        acc = await world.accounts.debit(
            db, "user-1", 300,
            entry_type=LedgerEntryType.BUY_COST, reference_type=ReferenceType.ORDER,
        )
        assert acc.balance == 700
        acc = await world.accounts.credit(
            db, "user-1", 50,
            entry_type=LedgerEntryType.SELL_PROCEEDS, reference_type=ReferenceType.ORDER,
        )
        assert acc.balance == 750
        assert [e.amount for e in world.store.ledger] == [-300, 50]
        assert [e.balance_after for e in world.store.ledger] == [700, 750]
        # Building blocks never commit
        assert db.commits == 0

    async def test_debit_more_than_balance(self, world: World) -> None:
        world.store.open("user-1", 100)
        with pytest.raises(InsufficientFundsError):
            await world.accounts.debit(
                world.session(), "user-1", 101,
                entry_type=LedgerEntryType.BUY_COST, reference_type=ReferenceType.ORDER,
            )
        assert world.store.balance("user-1") == 100

    @pytest.mark.parametrize("amount", [0, -10])
    async def test_non_positive_amount_rejected(self, world: World, amount: int) -> None:
        world.store.open("user-1", 100)
        with pytest.raises(InvalidAmountError):
            await world.accounts.credit(
                world.session(), "user-1", amount,
                entry_type=LedgerEntryType.DEPOSIT, reference_type=ReferenceType.WALLET_TXN,
            )

    async def test_unknown_account(self, world: World) -> None:
        with pytest.raises(AccountNotFoundError):
            await world.accounts.get_balance(world.session(), "ghost")


class TestAdjust:
    async def test_add_writes_approved_audit_row(self, world: World) -> None:
        world.store.open("user-1", 1000)
        db = world.session()
        result = await world.accounts.adjust(
            db, "user-1", 250, AdjustDirection.ADD, "Goodwill credit", "admin-7"
        )
        assert result.new_balance_cents == 1250
        txn = world.store.wallet_txns[result.transaction_id]
        assert txn.status is WalletTxnStatus.APPROVED
        assert txn.kind is WalletTxnKind.DEPOSIT
        assert txn.channel == WalletChannel.ADMIN_ADJUSTMENT.value
        assert txn.description == "Goodwill credit"
        assert txn.reference_id == "admin-7"
        assert world.notifier.sent[0][1] is NotificationCategory.SYSTEM_ALERTS
        assert db.commits == 1

    async def test_deduct_default_description(self, world: World) -> None:
        world.store.open("user-1", 1000)
        result = await world.accounts.adjust(
            world.session(), "user-1", 400, AdjustDirection.DEDUCT
        )
        assert result.new_balance_cents == 600
        txn = world.store.wallet_txns[result.transaction_id]
        assert txn.kind is WalletTxnKind.WITHDRAWAL
        assert txn.description == "Admin deducted balance"

    async def test_deduct_beyond_balance_writes_nothing(self, world: World) -> None:
        world.store.open("user-1", 100)
        db = world.session()
        with pytest.raises(InsufficientFundsError):
            await world.accounts.adjust(db, "user-1", 500, AdjustDirection.DEDUCT)
        assert world.store.balance("user-1") == 100
        assert world.store.wallet_txns == {}
        assert db.rollbacks == 1
        assert world.notifier.sent == []

    async def test_notification_failure_keeps_adjustment(self, world: World) -> None:
        world.store.open("user-1", 100)
        notifier = FailingNotifier()
        world.accounts._notifier = notifier
        await world.accounts.adjust(world.session(), "user-1", 50, AdjustDirection.ADD)
        assert notifier.calls == 1
        assert world.store.balance("user-1") == 150


class TestListLedger:
    async def test_paginates_newest_first(self, world: World) -> None:
        world.store.open("user-1", 0)
        db = world.session()
        for amount in (10, 20, 30):
            await world.accounts.credit(
                db, "user-1", amount,
                entry_type=LedgerEntryType.DEPOSIT, reference_type=ReferenceType.WALLET_TXN,
            )
        first = await world.accounts.list_ledger(db, "user-1", None, 2, None)
        assert [i.amount_cents for i in first.items] == [30, 20]
        assert first.has_more is True
        second = await world.accounts.list_ledger(db, "user-1", first.next_cursor, 2, None)
        assert [i.amount_cents for i in second.items] == [10]
        assert second.has_more is False
        assert second.next_cursor is None
