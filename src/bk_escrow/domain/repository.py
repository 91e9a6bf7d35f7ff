"""Repository Protocols for escrow holds and IPO offerings."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.enums import HoldKind, HoldStatus, IpoStatus
from src.bk_escrow.domain.models import EscrowHold, IpoOffering


class EscrowHoldRepositoryProtocol(Protocol):
    async def insert_hold(self, db: AsyncSession, hold: EscrowHold) -> EscrowHold: ...

    async def get_hold(self, db: AsyncSession, hold_id: str) -> EscrowHold | None: ...

    async def resolve_pending(
        self,
        db: AsyncSession,
        hold_id: str,
        status: HoldStatus,
        payout_amount: int,
        profit_amount: int,
        resolved_by: str,
    ) -> EscrowHold | None:
        """Move a PENDING hold to a resolved status. Returns None if it is not PENDING."""
        ...

    async def list_user_holds(
        self, db: AsyncSession, user_id: str, kind: HoldKind | None
    ) -> list[EscrowHold]: ...

    async def list_holds(
        self,
        db: AsyncSession,
        kind: HoldKind | None,
        status: HoldStatus | None,
        limit: int,
    ) -> list[EscrowHold]: ...

    async def list_expired_pending(
        self, db: AsyncSession, kind: HoldKind, now: datetime, limit: int
    ) -> list[EscrowHold]: ...


class IpoRepositoryProtocol(Protocol):
    async def insert_ipo(self, db: AsyncSession, ipo: IpoOffering) -> IpoOffering: ...

    async def get_ipo(self, db: AsyncSession, ipo_id: str) -> IpoOffering | None: ...

    async def list_ipos(
        self, db: AsyncSession, status: IpoStatus | None
    ) -> list[IpoOffering]: ...

    async def update_ipo_status(
        self, db: AsyncSession, ipo_id: str, status: IpoStatus
    ) -> IpoOffering | None: ...

    async def update_ipo(self, db: AsyncSession, ipo: IpoOffering) -> IpoOffering | None: ...

    async def delete_ipo(self, db: AsyncSession, ipo_id: str) -> bool:
        """Delete unless a pending application references it. False when nothing was deleted."""
        ...
