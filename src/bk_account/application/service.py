"""AccountService — the Account Store: the only place balances are read or written.

debit/credit are building blocks for other services and run inside the
caller's transaction (no commit here). open_account and adjust are complete
operations and own their transaction.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_account.application.schemas import (
    AdjustmentResponse,
    LedgerEntryItem,
    LedgerResponse,
)
from src.bk_account.domain.models import Account
from src.bk_account.domain.repository import AccountRepositoryProtocol
from src.bk_account.infrastructure.persistence import AccountRepository
from src.bk_common.cents import cents_to_display, require_positive_amount
from src.bk_common.enums import (
    AdjustDirection,
    LedgerEntryType,
    NotificationCategory,
    ReferenceType,
    WalletChannel,
    WalletTxnKind,
    WalletTxnStatus,
)
from src.bk_common.errors import AccountNotFoundError
from src.bk_common.id_generator import TXN_PREFIX, generate_id
from src.bk_common.pagination import cursor_decode, cursor_encode
from src.bk_notify.domain.emitter import NotificationEmitterProtocol, notify_quietly
from src.bk_notify.infrastructure.db_emitter import DbNotificationEmitter
from src.bk_wallet.domain.models import WalletTransaction
from src.bk_wallet.domain.repository import WalletTransactionRepositoryProtocol
from src.bk_wallet.infrastructure.persistence import WalletTransactionRepository

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        repo: AccountRepositoryProtocol | None = None,
        wallet_repo: WalletTransactionRepositoryProtocol | None = None,
        notifier: NotificationEmitterProtocol | None = None,
    ) -> None:
        self._repo: AccountRepositoryProtocol = repo or AccountRepository()
        self._wallet_repo: WalletTransactionRepositoryProtocol = (
            wallet_repo or WalletTransactionRepository()
        )
        self._notifier: NotificationEmitterProtocol = notifier or DbNotificationEmitter()

    async def open_account(
        self, db: AsyncSession, user_id: str, initial_balance: int = 0
    ) -> Account:
        """Create the balance row for a newly registered user. Idempotent.

        initial_balance is only credited when this call inserted the row.
        """
        if initial_balance < 0:
            require_positive_amount(initial_balance, "initial_balance")
        try:
            account, created = await self._repo.create_account(db, user_id)
            if created and initial_balance > 0:
                account, _ = await self._repo.credit(
                    db, user_id, initial_balance,
                    LedgerEntryType.DEPOSIT.value, ReferenceType.ADJUSTMENT.value,
                    None, "Opening balance",
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return account

    async def get_account(self, db: AsyncSession, user_id: str) -> Account:
        account = await self._repo.get_account_by_user_id(db, user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

    async def get_balance(self, db: AsyncSession, user_id: str) -> int:
        return (await self.get_account(db, user_id)).balance

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        *,
        entry_type: LedgerEntryType,
        reference_type: ReferenceType,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        """Atomic conditional debit. Raises InsufficientFundsError if balance < amount."""
        require_positive_amount(amount)
        account, _ = await self._repo.debit(
            db, user_id, amount, entry_type.value, reference_type.value, reference_id, description
        )
        return account

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        *,
        entry_type: LedgerEntryType,
        reference_type: ReferenceType,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> Account:
        require_positive_amount(amount)
        account, _ = await self._repo.credit(
            db, user_id, amount, entry_type.value, reference_type.value, reference_id, description
        )
        return account

    async def adjust(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        direction: AdjustDirection,
        reason: str | None = None,
        operator_id: str | None = None,
    ) -> AdjustmentResponse:
        """Operator add/deduct outside the normal flows.

        Appends an already-approved audit WalletTransaction in the same
        transaction, then notifies the user.
        """
        require_positive_amount(amount)
        verb = "added" if direction is AdjustDirection.ADD else "deducted"
        description = reason or f"Admin {verb} balance"
        txn_id = generate_id(TXN_PREFIX)
        try:
            if direction is AdjustDirection.ADD:
                account = await self.credit(
                    db, user_id, amount,
                    entry_type=LedgerEntryType.ADJUST_ADD,
                    reference_type=ReferenceType.ADJUSTMENT,
                    reference_id=txn_id,
                    description=description,
                )
            else:
                account = await self.debit(
                    db, user_id, amount,
                    entry_type=LedgerEntryType.ADJUST_DEDUCT,
                    reference_type=ReferenceType.ADJUSTMENT,
                    reference_id=txn_id,
                    description=description,
                )
            txn = await self._wallet_repo.insert_transaction(
                db,
                WalletTransaction(
                    id=txn_id,
                    user_id=user_id,
                    kind=(
                        WalletTxnKind.DEPOSIT
                        if direction is AdjustDirection.ADD
                        else WalletTxnKind.WITHDRAWAL
                    ),
                    amount=amount,
                    status=WalletTxnStatus.APPROVED,
                    channel=WalletChannel.ADMIN_ADJUSTMENT.value,
                    reference_id=operator_id,
                    description=description,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Balance adjusted: user=%s direction=%s amount=%d balance=%d",
            user_id, direction.value, amount, account.balance,
        )
        action_text = "added to" if direction is AdjustDirection.ADD else "deducted from"
        await notify_quietly(
            self._notifier,
            user_id,
            NotificationCategory.SYSTEM_ALERTS,
            f"Balance {action_text.capitalize()}",
            f"Admin {verb} {cents_to_display(amount)} {action_text} your account."
            + (f" Reason: {reason}" if reason else ""),
            "/user/wallet",
        )
        return AdjustmentResponse(
            user_id=user_id,
            direction=direction,
            amount_cents=amount,
            new_balance_cents=account.balance,
            new_balance_display=cents_to_display(account.balance),
            transaction_id=txn.id,
        )

    async def list_ledger(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> LedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_ledger_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            LedgerEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount_cents=e.amount,
                amount_display=cents_to_display(e.amount),
                balance_after_cents=e.balance_after,
                balance_after_display=cents_to_display(e.balance_after),
                reference_type=e.reference_type,
                reference_id=e.reference_id,
                description=e.description,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return LedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
