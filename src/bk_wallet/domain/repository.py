"""Repository Protocols for wallet transactions, withdrawal methods and payment gateways."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.enums import WalletTxnKind, WalletTxnStatus
from src.bk_wallet.domain.models import PaymentGateway, WalletTransaction, WithdrawalMethod


class WalletTransactionRepositoryProtocol(Protocol):
    async def insert_transaction(
        self, db: AsyncSession, txn: WalletTransaction
    ) -> WalletTransaction: ...

    async def get_transaction(
        self, db: AsyncSession, txn_id: str
    ) -> WalletTransaction | None: ...

    async def transition_from_pending(
        self,
        db: AsyncSession,
        txn_id: str,
        new_status: WalletTxnStatus,
        rejection_reason: str | None,
    ) -> WalletTransaction | None:
        """Move a PENDING row to new_status. Returns None if the row is not PENDING."""
        ...

    async def list_by_user(
        self, db: AsyncSession, user_id: str, cursor_seq: int | None, limit: int
    ) -> list[WalletTransaction]: ...

    async def list_by_status(
        self,
        db: AsyncSession,
        status: WalletTxnStatus,
        kind: WalletTxnKind | None,
    ) -> list[WalletTransaction]: ...


class WithdrawalMethodRepositoryProtocol(Protocol):
    async def get_method(
        self, db: AsyncSession, method_id: str
    ) -> WithdrawalMethod | None: ...

    async def list_methods(
        self, db: AsyncSession, active_only: bool
    ) -> list[WithdrawalMethod]: ...

    async def insert_method(
        self, db: AsyncSession, method: WithdrawalMethod
    ) -> WithdrawalMethod: ...

    async def update_method(
        self, db: AsyncSession, method: WithdrawalMethod
    ) -> WithdrawalMethod | None: ...


class PaymentGatewayRepositoryProtocol(Protocol):
    async def get_gateway(
        self, db: AsyncSession, gateway_id: str
    ) -> PaymentGateway | None: ...

    async def list_gateways(
        self, db: AsyncSession, active_only: bool
    ) -> list[PaymentGateway]: ...

    async def insert_gateway(
        self, db: AsyncSession, gateway: PaymentGateway
    ) -> PaymentGateway: ...

    async def update_gateway(
        self, db: AsyncSession, gateway: PaymentGateway
    ) -> PaymentGateway | None: ...
