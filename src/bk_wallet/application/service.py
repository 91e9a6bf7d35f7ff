"""WalletService — deposit/withdrawal requests and their moderation lifecycle.

Neither request touches the balance. approve() moves money: the PENDING ->
APPROVED transition and the Account Store credit/debit run in one database
transaction, so a failed balance re-check leaves the request pending.
"""

import logging
from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_account.application.service import AccountService
from src.bk_common.cents import cents_to_display, require_positive_amount
from src.bk_common.enums import (
    LedgerEntryType,
    NotificationCategory,
    ReferenceType,
    WalletTxnKind,
    WalletTxnStatus,
)
from src.bk_common.errors import (
    BelowMinimumAmountError,
    DepositChannelRequiredError,
    InsufficientFundsError,
    InvalidWithdrawalMethodError,
    PaymentGatewayNotFoundError,
    PaymentGatewayUnavailableError,
    TransactionAlreadyProcessedError,
    WalletTransactionNotFoundError,
)
from src.bk_common.id_generator import GATEWAY_PREFIX, METHOD_PREFIX, TXN_PREFIX, generate_id
from src.bk_common.pagination import cursor_decode, cursor_encode
from src.bk_notify.domain.emitter import NotificationEmitterProtocol, notify_quietly
from src.bk_notify.infrastructure.db_emitter import DbNotificationEmitter
from src.bk_wallet.application.schemas import (
    PaymentGatewayRequest,
    WalletHistoryResponse,
    WalletTransactionResponse,
    WithdrawalMethodRequest,
)
from src.bk_wallet.domain.models import PaymentGateway, WalletTransaction, WithdrawalMethod
from src.bk_wallet.domain.repository import (
    PaymentGatewayRepositoryProtocol,
    WalletTransactionRepositoryProtocol,
    WithdrawalMethodRepositoryProtocol,
)
from src.bk_wallet.infrastructure.persistence import (
    PaymentGatewayRepository,
    WalletTransactionRepository,
    WithdrawalMethodRepository,
)

logger = logging.getLogger(__name__)


class WalletService:
    def __init__(
        self,
        repo: WalletTransactionRepositoryProtocol | None = None,
        method_repo: WithdrawalMethodRepositoryProtocol | None = None,
        account_service: AccountService | None = None,
        notifier: NotificationEmitterProtocol | None = None,
        gateway_repo: PaymentGatewayRepositoryProtocol | None = None,
    ) -> None:
        self._repo: WalletTransactionRepositoryProtocol = repo or WalletTransactionRepository()
        self._method_repo: WithdrawalMethodRepositoryProtocol = (
            method_repo or WithdrawalMethodRepository()
        )
        self._gateway_repo: PaymentGatewayRepositoryProtocol = (
            gateway_repo or PaymentGatewayRepository()
        )
        self._notifier: NotificationEmitterProtocol = notifier or DbNotificationEmitter()
        self._accounts = account_service or AccountService(
            wallet_repo=self._repo, notifier=self._notifier
        )

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request_deposit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        channel: str | None,
        gateway_id: str | None = None,
        reference: str | None = None,
    ) -> WalletTransaction:
        """Record a pending deposit.

        A named gateway must be active and its minimum deposit met. Its name
        becomes the channel.
        """
        require_positive_amount(amount)
        if gateway_id is not None:
            gateway = await self._gateway_repo.get_gateway(db, gateway_id)
            if gateway is None or not gateway.is_active:
                raise PaymentGatewayUnavailableError(gateway_id)
            if amount < gateway.min_deposit:
                raise BelowMinimumAmountError(amount, gateway.min_deposit)
            channel = gateway.name
        elif not channel:
            raise DepositChannelRequiredError()
        await self._accounts.get_account(db, user_id)
        try:
            txn = await self._repo.insert_transaction(
                db,
                WalletTransaction(
                    id=generate_id(TXN_PREFIX),
                    user_id=user_id,
                    kind=WalletTxnKind.DEPOSIT,
                    amount=amount,
                    status=WalletTxnStatus.PENDING,
                    channel=channel,
                    gateway_id=gateway_id,
                    reference_id=reference,
                    description=f"Deposit via {channel}",
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Deposit requested: txn=%s user=%s amount=%d", txn.id, user_id, amount)
        return txn

    async def request_withdrawal(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        method_id: str,
        account: str,
        details: dict[str, str] | None = None,
    ) -> WalletTransaction:
        """Validate against the method and the current balance, then record a pending request.

        The balance check is a pre-check only. The debit happens at approval
        and is re-checked there.
        """
        require_positive_amount(amount)
        method = await self._method_repo.get_method(db, method_id)
        if method is None or not method.is_active:
            raise InvalidWithdrawalMethodError(method_id)
        if amount < method.min_amount:
            raise BelowMinimumAmountError(amount, method.min_amount)
        balance = await self._accounts.get_balance(db, user_id)
        if amount > balance:
            raise InsufficientFundsError(amount, balance)

        try:
            txn = await self._repo.insert_transaction(
                db,
                WalletTransaction(
                    id=generate_id(TXN_PREFIX),
                    user_id=user_id,
                    kind=WalletTxnKind.WITHDRAWAL,
                    amount=amount,
                    status=WalletTxnStatus.PENDING,
                    channel=method.type,
                    fee=method.fee,
                    method_id=method.id,
                    destination_account=account,
                    details=dict(details or {}),
                    description=f"Withdrawal via {method.name}",
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Withdrawal requested: txn=%s user=%s amount=%d fee=%d",
            txn.id, user_id, amount, txn.fee,
        )
        return txn

    # ------------------------------------------------------------------
    # Moderation
    # ------------------------------------------------------------------

    async def approve(self, db: AsyncSession, txn_id: str) -> WalletTransaction:
        try:
            txn = await self._repo.transition_from_pending(
                db, txn_id, WalletTxnStatus.APPROVED, None
            )
            if txn is None:
                await self._raise_not_pending(db, txn_id)
            if txn.kind is WalletTxnKind.DEPOSIT:
                await self._accounts.credit(
                    db, txn.user_id, txn.amount,
                    entry_type=LedgerEntryType.DEPOSIT,
                    reference_type=ReferenceType.WALLET_TXN,
                    reference_id=txn.id,
                    description=txn.description,
                )
            else:
                # Full amount; the fee is informational
                await self._accounts.debit(
                    db, txn.user_id, txn.amount,
                    entry_type=LedgerEntryType.WITHDRAW,
                    reference_type=ReferenceType.WALLET_TXN,
                    reference_id=txn.id,
                    description=txn.description,
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Wallet txn approved: txn=%s kind=%s amount=%d", txn.id, txn.kind.value, txn.amount)
        label = _kind_label(txn.kind)
        await notify_quietly(
            self._notifier,
            txn.user_id,
            NotificationCategory.WALLET_UPDATES,
            f"{label} Approved",
            f"Your {label.lower()} of {cents_to_display(txn.amount)} has been approved.",
            "/user/wallet",
        )
        return txn

    async def reject(
        self, db: AsyncSession, txn_id: str, reason: str | None = None
    ) -> WalletTransaction:
        try:
            txn = await self._repo.transition_from_pending(
                db, txn_id, WalletTxnStatus.REJECTED, reason
            )
            if txn is None:
                await self._raise_not_pending(db, txn_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info("Wallet txn rejected: txn=%s reason=%r", txn.id, reason)
        label = _kind_label(txn.kind)
        await notify_quietly(
            self._notifier,
            txn.user_id,
            NotificationCategory.WALLET_UPDATES,
            f"{label} Rejected",
            f"Your {label.lower()} of {cents_to_display(txn.amount)} has been rejected. "
            f"{reason or 'Please contact support.'}",
            "/user/wallet",
        )
        return txn

    async def _raise_not_pending(self, db: AsyncSession, txn_id: str) -> NoReturn:
        existing = await self._repo.get_transaction(db, txn_id)
        if existing is None:
            raise WalletTransactionNotFoundError(txn_id)
        raise TransactionAlreadyProcessedError(txn_id, existing.status.value)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get_transaction(self, db: AsyncSession, txn_id: str) -> WalletTransaction:
        txn = await self._repo.get_transaction(db, txn_id)
        if txn is None:
            raise WalletTransactionNotFoundError(txn_id)
        return txn

    async def list_history(
        self, db: AsyncSession, user_id: str, cursor: str | None, limit: int
    ) -> WalletHistoryResponse:
        cursor_seq = cursor_decode(cursor)
        rows = await self._repo.list_by_user(db, user_id, cursor_seq, limit + 1)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = None
        if has_more and page and page[-1].seq is not None:
            next_cursor = cursor_encode(page[-1].seq)
        return WalletHistoryResponse(
            items=[WalletTransactionResponse.from_domain(t) for t in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def list_pending(
        self, db: AsyncSession, kind: WalletTxnKind | None = None
    ) -> list[WalletTransaction]:
        return await self._repo.list_by_status(db, WalletTxnStatus.PENDING, kind)

    # ------------------------------------------------------------------
    # Withdrawal methods
    # ------------------------------------------------------------------

    async def list_active_methods(self, db: AsyncSession) -> list[WithdrawalMethod]:
        return await self._method_repo.list_methods(db, active_only=True)

    async def list_all_methods(self, db: AsyncSession) -> list[WithdrawalMethod]:
        return await self._method_repo.list_methods(db, active_only=False)

    async def add_method(
        self, db: AsyncSession, body: WithdrawalMethodRequest
    ) -> WithdrawalMethod:
        try:
            method = await self._method_repo.insert_method(
                db,
                WithdrawalMethod(
                    id=generate_id(METHOD_PREFIX),
                    name=body.name,
                    type=body.type,
                    min_amount=body.min_amount_cents,
                    fee=body.fee_cents,
                    processing_time=body.processing_time,
                    is_active=body.is_active,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal method added: id=%s name=%s", method.id, method.name)
        return method

    async def update_method(
        self, db: AsyncSession, method_id: str, body: WithdrawalMethodRequest
    ) -> WithdrawalMethod:
        existing = await self._method_repo.get_method(db, method_id)
        if existing is None:
            raise InvalidWithdrawalMethodError(method_id)
        existing.name = body.name
        existing.type = body.type
        existing.min_amount = body.min_amount_cents
        existing.fee = body.fee_cents
        existing.processing_time = body.processing_time
        existing.is_active = body.is_active
        return await self._save_method(db, existing)

    async def deactivate_method(self, db: AsyncSession, method_id: str) -> WithdrawalMethod:
        """Soft delete: historical requests keep pointing at the row."""
        existing = await self._method_repo.get_method(db, method_id)
        if existing is None:
            raise InvalidWithdrawalMethodError(method_id)
        existing.is_active = False
        return await self._save_method(db, existing)

    async def _save_method(self, db: AsyncSession, method: WithdrawalMethod) -> WithdrawalMethod:
        try:
            updated = await self._method_repo.update_method(db, method)
            if updated is None:
                raise InvalidWithdrawalMethodError(method.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return updated

    # ------------------------------------------------------------------
    # Payment gateways
    # ------------------------------------------------------------------

    async def list_active_gateways(self, db: AsyncSession) -> list[PaymentGateway]:
        return await self._gateway_repo.list_gateways(db, active_only=True)

    async def list_all_gateways(self, db: AsyncSession) -> list[PaymentGateway]:
        return await self._gateway_repo.list_gateways(db, active_only=False)

    async def get_gateway(self, db: AsyncSession, gateway_id: str) -> PaymentGateway:
        """Active gateways only, as shown on the deposit screen."""
        gateway = await self._gateway_repo.get_gateway(db, gateway_id)
        if gateway is None or not gateway.is_active:
            raise PaymentGatewayNotFoundError(gateway_id)
        return gateway

    async def add_gateway(
        self, db: AsyncSession, body: PaymentGatewayRequest
    ) -> PaymentGateway:
        try:
            gateway = await self._gateway_repo.insert_gateway(
                db,
                PaymentGateway(
                    id=generate_id(GATEWAY_PREFIX),
                    name=body.name,
                    trc20_address=body.trc20_address,
                    trc20_qr_code=body.trc20_qr_code,
                    min_deposit=body.min_deposit_cents,
                    confirmation_time=body.confirmation_time,
                    instructions=body.instructions,
                    is_active=body.is_active,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Payment gateway added: id=%s name=%s", gateway.id, gateway.name)
        return gateway

    async def update_gateway(
        self, db: AsyncSession, gateway_id: str, body: PaymentGatewayRequest
    ) -> PaymentGateway:
        existing = await self._gateway_repo.get_gateway(db, gateway_id)
        if existing is None:
            raise PaymentGatewayNotFoundError(gateway_id)
        existing.name = body.name
        existing.trc20_address = body.trc20_address
        existing.trc20_qr_code = body.trc20_qr_code
        existing.min_deposit = body.min_deposit_cents
        existing.confirmation_time = body.confirmation_time
        existing.instructions = body.instructions
        existing.is_active = body.is_active
        return await self._save_gateway(db, existing)

    async def deactivate_gateway(self, db: AsyncSession, gateway_id: str) -> PaymentGateway:
        """Soft delete: deposits keep their gateway_id."""
        existing = await self._gateway_repo.get_gateway(db, gateway_id)
        if existing is None:
            raise PaymentGatewayNotFoundError(gateway_id)
        existing.is_active = False
        gateway = await self._save_gateway(db, existing)
        logger.info("Payment gateway deactivated: id=%s", gateway_id)
        return gateway

    async def _save_gateway(self, db: AsyncSession, gateway: PaymentGateway) -> PaymentGateway:
        try:
            updated = await self._gateway_repo.update_gateway(db, gateway)
            if updated is None:
                raise PaymentGatewayNotFoundError(gateway.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return updated


def _kind_label(kind: WalletTxnKind) -> str:
    return "Deposit" if kind is WalletTxnKind.DEPOSIT else "Withdrawal"
