"""EscrowService — the hold/settle state machine behind timed trades and IPO applications.

    [create] -> PENDING --resolve(return | forfeit | bonus)--> RESOLVED_* (terminal)

create debits the held amount and inserts the hold in one transaction; if the
insert fails the rollback restores the balance. Each resolution, in one
transaction: conditional status update, credit of the payout (if any) and an
approved audit WalletTransaction. The notification goes out after commit and
its failure is only logged.
"""

import logging
import random
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_account.application.service import AccountService
from src.bk_common.cents import cents_to_display, require_positive_amount
from src.bk_common.datetime_utils import Clock, minutes_after, utc_now
from src.bk_common.enums import (
    HoldKind,
    HoldStatus,
    IpoStatus,
    LedgerEntryType,
    NotificationCategory,
    OrderSide,
    ReferenceType,
    TimedTradeOutcome,
    WalletChannel,
    WalletTxnKind,
    WalletTxnStatus,
)
from src.bk_common.errors import (
    BelowMinimumAmountError,
    HoldAlreadyResolvedError,
    HoldKindMismatchError,
    HoldNotFoundError,
    InvalidAmountError,
    IpoInUseError,
    IpoNotFoundError,
    IpoNotLiveError,
)
from src.bk_common.id_generator import HOLD_PREFIX, IPO_PREFIX, TXN_PREFIX, generate_id
from src.bk_config.application.service import (
    TradingConfigService,
    get_trading_config_service,
)
from src.bk_escrow.domain.models import (
    RESOLVED_BY_ADMIN,
    RESOLVED_BY_SYSTEM,
    EscrowHold,
    IpoOffering,
)
from src.bk_escrow.domain.repository import (
    EscrowHoldRepositoryProtocol,
    IpoRepositoryProtocol,
)
from src.bk_escrow.domain.settlement import (
    compute_payout,
    outcome_to_status,
    pick_random_outcome,
)
from src.bk_escrow.infrastructure.persistence import EscrowHoldRepository, IpoRepository
from src.bk_notify.domain.emitter import NotificationEmitterProtocol, notify_quietly
from src.bk_notify.infrastructure.db_emitter import DbNotificationEmitter
from src.bk_wallet.domain.models import WalletTransaction
from src.bk_wallet.domain.repository import WalletTransactionRepositoryProtocol
from src.bk_wallet.infrastructure.persistence import WalletTransactionRepository

logger = logging.getLogger(__name__)

DEFAULT_HOLD_PAGE = 100

_TRADE_LINK = "/user/trading"
_IPO_LINK = "/user/ipo"


class EscrowService:
    def __init__(
        self,
        account_service: AccountService | None = None,
        wallet_repo: WalletTransactionRepositoryProtocol | None = None,
        repo: EscrowHoldRepositoryProtocol | None = None,
        ipo_repo: IpoRepositoryProtocol | None = None,
        config_service: TradingConfigService | None = None,
        notifier: NotificationEmitterProtocol | None = None,
        clock: Clock | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._wallet_repo: WalletTransactionRepositoryProtocol = (
            wallet_repo or WalletTransactionRepository()
        )
        self._notifier: NotificationEmitterProtocol = notifier or DbNotificationEmitter()
        self._accounts = account_service or AccountService(
            wallet_repo=self._wallet_repo, notifier=self._notifier
        )
        self._repo: EscrowHoldRepositoryProtocol = repo or EscrowHoldRepository()
        self._ipo_repo: IpoRepositoryProtocol = ipo_repo or IpoRepository()
        self._config = config_service or get_trading_config_service()
        self._clock: Clock = clock or utc_now
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Generic holds
    # ------------------------------------------------------------------

    async def create_hold(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        kind: HoldKind,
        metadata: dict[str, Any] | None = None,
        *,
        expires_at: datetime | None = None,
        profit_rate: Decimal | None = None,
    ) -> EscrowHold:
        """Debit `amount` and persist a PENDING hold, atomically.

        Raises:
            InsufficientFundsError: balance < amount (nothing is written).
        """
        require_positive_amount(amount)
        hold_id = generate_id(HOLD_PREFIX)
        try:
            await self._accounts.debit(
                db, user_id, amount,
                entry_type=LedgerEntryType.ESCROW_HOLD,
                reference_type=ReferenceType.ESCROW_HOLD,
                reference_id=hold_id,
                description=f"{_kind_label(kind)} hold",
            )
            hold = await self._repo.insert_hold(
                db,
                EscrowHold(
                    id=hold_id,
                    user_id=user_id,
                    kind=kind,
                    held_amount=amount,
                    profit_rate=profit_rate,
                    metadata=dict(metadata or {}),
                    expires_at=expires_at,
                ),
            )
            await db.commit()
        except Exception:
            # Reverses the debit together with anything else written above
            await db.rollback()
            raise

        logger.info(
            "Escrow hold created: id=%s user=%s kind=%s amount=%d expires_at=%s",
            hold.id, user_id, kind.value, amount, expires_at,
        )
        return hold

    async def resolve_return(
        self, db: AsyncSession, hold_id: str, resolved_by: str = RESOLVED_BY_ADMIN
    ) -> EscrowHold:
        return await self._resolve(db, hold_id, HoldStatus.RESOLVED_RETURN, resolved_by)

    async def resolve_forfeit(
        self, db: AsyncSession, hold_id: str, resolved_by: str = RESOLVED_BY_ADMIN
    ) -> EscrowHold:
        return await self._resolve(db, hold_id, HoldStatus.RESOLVED_FORFEIT, resolved_by)

    async def resolve_bonus(
        self,
        db: AsyncSession,
        hold_id: str,
        profit_rate: Decimal | None = None,
        resolved_by: str = RESOLVED_BY_ADMIN,
    ) -> EscrowHold:
        """Credit held + held * rate / 100. rate defaults to the one captured at creation."""
        return await self._resolve(
            db, hold_id, HoldStatus.RESOLVED_BONUS, resolved_by, profit_rate=profit_rate
        )

    async def _resolve(
        self,
        db: AsyncSession,
        hold_id: str,
        status: HoldStatus,
        resolved_by: str,
        *,
        profit_rate: Decimal | None = None,
        expected_kind: HoldKind | None = None,
    ) -> EscrowHold:
        try:
            hold = await self._repo.get_hold(db, hold_id)
            if hold is None:
                raise HoldNotFoundError(hold_id)
            if expected_kind is not None and hold.kind is not expected_kind:
                raise HoldKindMismatchError(hold_id, expected_kind.value, hold.kind.value)
            if not hold.is_pending:
                raise HoldAlreadyResolvedError(hold_id, hold.status.value)

            rate = profit_rate if profit_rate is not None else hold.profit_rate
            payout, profit = compute_payout(hold.held_amount, status, rate)

            resolved = await self._repo.resolve_pending(
                db, hold_id, status, payout, profit, resolved_by
            )
            if resolved is None:
                # Another resolver won between our read and the conditional update
                current = await self._repo.get_hold(db, hold_id)
                raise HoldAlreadyResolvedError(
                    hold_id, current.status.value if current else "UNKNOWN"
                )

            if payout > 0:
                await self._accounts.credit(
                    db, hold.user_id, payout,
                    entry_type=LedgerEntryType.ESCROW_RELEASE,
                    reference_type=ReferenceType.ESCROW_HOLD,
                    reference_id=hold_id,
                    description=f"{_kind_label(hold.kind)} settlement ({status.value})",
                )
            await self._wallet_repo.insert_transaction(
                db,
                WalletTransaction(
                    id=generate_id(TXN_PREFIX),
                    user_id=hold.user_id,
                    kind=WalletTxnKind.DEPOSIT,
                    amount=payout,
                    status=WalletTxnStatus.APPROVED,
                    channel=WalletChannel.ESCROW_SETTLEMENT.value,
                    reference_id=hold_id,
                    description=f"{_kind_label(hold.kind)} {status.value}",
                    details={"hold_kind": hold.kind.value, "resolved_by": resolved_by},
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise

        logger.info(
            "Escrow hold resolved: id=%s status=%s payout=%d profit=%d by=%s",
            hold_id, status.value, payout, profit, resolved_by,
        )
        await self._notify_resolution(resolved)
        return resolved

    # ------------------------------------------------------------------
    # Timed trades
    # ------------------------------------------------------------------

    async def create_timed_trade(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        timer_duration: int,
        symbol: str | None = None,
        side: OrderSide | None = None,
    ) -> EscrowHold:
        """Validate against the current configuration, then hold `amount` until expiry.

        Raises:
            TimerUnavailableError: no enabled timer with this duration.
            ProfitRateMissingError: no profit rate configured.
            InsufficientFundsError: balance < amount.
        """
        require_positive_amount(amount)
        snapshot = await self._config.snapshot(db)
        timer = self._config.require_timer(snapshot, timer_duration)
        rate = self._config.require_profit_rate(snapshot)
        expires_at = minutes_after(self._clock(), timer.duration_minutes)
        metadata: dict[str, Any] = {
            "timer_minutes": timer.duration_minutes,
            "timer_label": timer.label,
            "config_version": snapshot.version,
        }
        if symbol:
            metadata["symbol"] = symbol.upper()
        if side is not None:
            metadata["side"] = side.value
        return await self.create_hold(
            db, user_id, amount, HoldKind.TIMED_TRADE, metadata,
            expires_at=expires_at, profit_rate=rate,
        )

    async def set_timed_trade_result(
        self,
        db: AsyncSession,
        hold_id: str,
        outcome: TimedTradeOutcome,
        resolved_by: str = RESOLVED_BY_ADMIN,
    ) -> EscrowHold:
        return await self._resolve(
            db, hold_id, outcome_to_status(outcome), resolved_by,
            expected_kind=HoldKind.TIMED_TRADE,
        )

    async def list_user_timed_trades(self, db: AsyncSession, user_id: str) -> list[EscrowHold]:
        """List a user's timed trades, first settling any that expired unresolved.

        An expired PENDING trade gets a uniformly random outcome. A trade
        settled concurrently by someone else is skipped.
        """
        holds = await self._repo.list_user_holds(db, user_id, HoldKind.TIMED_TRADE)
        now = self._clock()
        settled = 0
        for hold in holds:
            if hold.is_expired(now) and await self._auto_resolve(db, hold):
                settled += 1
        if settled:
            holds = await self._repo.list_user_holds(db, user_id, HoldKind.TIMED_TRADE)
        return holds

    async def sweep_expired(self, db: AsyncSession, batch_size: int) -> int:
        """Settle up to batch_size expired timed trades. Returns how many this call settled."""
        expired = await self._repo.list_expired_pending(
            db, HoldKind.TIMED_TRADE, self._clock(), batch_size
        )
        settled = 0
        for hold in expired:
            try:
                if await self._auto_resolve(db, hold):
                    settled += 1
            except Exception:
                # _resolve has already rolled back
                logger.exception("Expired timed trade %s could not be settled; skipping", hold.id)
        return settled

    async def _auto_resolve(self, db: AsyncSession, hold: EscrowHold) -> bool:
        outcome = pick_random_outcome(self._rng)
        try:
            await self.set_timed_trade_result(db, hold.id, outcome, RESOLVED_BY_SYSTEM)
        except HoldAlreadyResolvedError:
            logger.debug("Expired hold %s already settled by another resolver", hold.id)
            return False
        logger.info("Expired timed trade auto-settled: id=%s outcome=%s", hold.id, outcome.value)
        return True

    async def list_holds(
        self,
        db: AsyncSession,
        kind: HoldKind | None = None,
        status: HoldStatus | None = None,
        limit: int = DEFAULT_HOLD_PAGE,
    ) -> list[EscrowHold]:
        return await self._repo.list_holds(db, kind, status, limit)

    async def get_hold(self, db: AsyncSession, hold_id: str) -> EscrowHold:
        hold = await self._repo.get_hold(db, hold_id)
        if hold is None:
            raise HoldNotFoundError(hold_id)
        return hold

    # ------------------------------------------------------------------
    # IPO offerings and applications
    # ------------------------------------------------------------------

    async def create_ipo(
        self,
        db: AsyncSession,
        company_name: str,
        price: int,
        lot_size: int,
        min_investment: int,
        status: IpoStatus = IpoStatus.UPCOMING,
        symbol: str | None = None,
    ) -> IpoOffering:
        _check_ipo_terms(price, lot_size, min_investment)
        try:
            ipo = await self._ipo_repo.insert_ipo(
                db,
                IpoOffering(
                    id=generate_id(IPO_PREFIX),
                    company_name=company_name,
                    price=price,
                    lot_size=lot_size,
                    min_investment=min_investment,
                    status=status,
                    symbol=symbol.upper() if symbol else None,
                ),
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("IPO created: id=%s company=%s status=%s", ipo.id, company_name, status.value)
        return ipo

    async def set_ipo_status(
        self, db: AsyncSession, ipo_id: str, status: IpoStatus
    ) -> IpoOffering:
        try:
            ipo = await self._ipo_repo.update_ipo_status(db, ipo_id, status)
            if ipo is None:
                raise IpoNotFoundError(ipo_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return ipo

    async def update_ipo(
        self,
        db: AsyncSession,
        ipo_id: str,
        company_name: str,
        price: int,
        lot_size: int,
        min_investment: int,
        status: IpoStatus,
        symbol: str | None = None,
    ) -> IpoOffering:
        """Replace the offering terms. Pending applications keep the terms they were held at."""
        _check_ipo_terms(price, lot_size, min_investment)
        try:
            ipo = await self._ipo_repo.update_ipo(
                db,
                IpoOffering(
                    id=ipo_id,
                    company_name=company_name,
                    price=price,
                    lot_size=lot_size,
                    min_investment=min_investment,
                    status=status,
                    symbol=symbol.upper() if symbol else None,
                ),
            )
            if ipo is None:
                raise IpoNotFoundError(ipo_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("IPO updated: id=%s company=%s status=%s", ipo_id, company_name, status.value)
        return ipo

    async def delete_ipo(self, db: AsyncSession, ipo_id: str) -> None:
        """Refused while any application on the offering is still pending."""
        try:
            if not await self._ipo_repo.delete_ipo(db, ipo_id):
                if await self._ipo_repo.get_ipo(db, ipo_id) is None:
                    raise IpoNotFoundError(ipo_id)
                raise IpoInUseError(ipo_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("IPO deleted: id=%s", ipo_id)

    async def get_ipo(self, db: AsyncSession, ipo_id: str) -> IpoOffering:
        ipo = await self._ipo_repo.get_ipo(db, ipo_id)
        if ipo is None:
            raise IpoNotFoundError(ipo_id)
        return ipo

    async def list_ipos(
        self, db: AsyncSession, status: IpoStatus | None = None
    ) -> list[IpoOffering]:
        return await self._ipo_repo.list_ipos(db, status)

    async def apply_for_ipo(
        self, db: AsyncSession, user_id: str, ipo_id: str, lots: int
    ) -> EscrowHold:
        if isinstance(lots, bool) or not isinstance(lots, int) or lots <= 0:
            raise InvalidAmountError(f"lots must be a positive integer, got {lots!r}")
        ipo = await self.get_ipo(db, ipo_id)
        if ipo.status is not IpoStatus.LIVE:
            raise IpoNotLiveError(ipo_id, ipo.status.value)
        amount = ipo.application_amount(lots)
        if amount < ipo.min_investment:
            raise BelowMinimumAmountError(amount, ipo.min_investment)

        hold = await self.create_hold(
            db, user_id, amount, HoldKind.IPO_APPLICATION,
            {
                "ipo_id": ipo.id,
                "company_name": ipo.company_name,
                "lots": lots,
                "price": ipo.price,
                "lot_size": ipo.lot_size,
            },
        )
        await notify_quietly(
            self._notifier,
            user_id,
            NotificationCategory.IPO_ALERTS,
            f"{ipo.company_name} - Application Received",
            f"Your application for {lots} lots ({cents_to_display(amount)}) is pending allotment.",
            _IPO_LINK,
        )
        return hold

    async def list_user_ipo_applications(
        self, db: AsyncSession, user_id: str
    ) -> list[EscrowHold]:
        return await self._repo.list_user_holds(db, user_id, HoldKind.IPO_APPLICATION)

    async def allot_ipo_application(
        self, db: AsyncSession, hold_id: str, resolved_by: str = RESOLVED_BY_ADMIN
    ) -> EscrowHold:
        """Allotted: the held funds pay for the shares."""
        return await self._resolve(
            db, hold_id, HoldStatus.RESOLVED_FORFEIT, resolved_by,
            expected_kind=HoldKind.IPO_APPLICATION,
        )

    async def reject_ipo_application(
        self, db: AsyncSession, hold_id: str, resolved_by: str = RESOLVED_BY_ADMIN
    ) -> EscrowHold:
        """Not allotted: the held funds are refunded in full."""
        return await self._resolve(
            db, hold_id, HoldStatus.RESOLVED_RETURN, resolved_by,
            expected_kind=HoldKind.IPO_APPLICATION,
        )

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    async def _notify_resolution(self, hold: EscrowHold) -> None:
        if hold.kind is HoldKind.IPO_APPLICATION:
            company = hold.metadata.get("company_name", "IPO")
            lots = hold.metadata.get("lots")
            if hold.status is HoldStatus.RESOLVED_FORFEIT:
                title = f"{company} - Allotted"
                message = f"Congratulations! Your application for {lots} lots has been allotted."
            else:
                title = f"{company} - Not Allotted"
                message = (
                    f"Your application for {lots} lots was not allotted. "
                    f"{cents_to_display(hold.payout_amount)} has been refunded to your wallet."
                )
            await notify_quietly(
                self._notifier, hold.user_id, NotificationCategory.IPO_ALERTS,
                title, message, _IPO_LINK,
            )
            return

        held = cents_to_display(hold.held_amount)
        if hold.status is HoldStatus.RESOLVED_BONUS:
            title = "Timed Trade Won"
            message = (
                f"Your timed trade of {held} won. "
                f"{cents_to_display(hold.payout_amount)} (profit {cents_to_display(hold.profit_amount)}) "
                "has been credited to your wallet."
            )
        elif hold.status is HoldStatus.RESOLVED_RETURN:
            title = "Timed Trade Draw"
            message = f"Your timed trade of {held} ended in a draw. {held} has been returned."
        else:
            title = "Timed Trade Lost"
            message = f"Your timed trade of {held} did not win."
        await notify_quietly(
            self._notifier, hold.user_id, NotificationCategory.APPROVALS,
            title, message, _TRADE_LINK,
        )


def _kind_label(kind: HoldKind) -> str:
    return "Timed trade" if kind is HoldKind.TIMED_TRADE else "IPO application"



def _check_ipo_terms(price: int, lot_size: int, min_investment: int) -> None:
    require_positive_amount(price, "price")
    if lot_size <= 0:
        raise InvalidAmountError(f"lot_size must be positive, got {lot_size}")
    if min_investment < 0:
        raise InvalidAmountError(f"min_investment must not be negative, got {min_investment}")
