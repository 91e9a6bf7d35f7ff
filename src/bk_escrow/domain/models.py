"""Domain models for bk_escrow — holds (timed trades, IPO applications) and IPO offerings."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from src.bk_common.enums import HoldKind, HoldStatus, IpoStatus

RESOLVED_BY_ADMIN = "ADMIN"
RESOLVED_BY_SYSTEM = "SYSTEM"


@dataclass
class EscrowHold:
    id: str
    user_id: str
    kind: HoldKind
    held_amount: int                     # cents, debited at creation
    status: HoldStatus = HoldStatus.PENDING
    profit_rate: Decimal | None = None   # percent, captured at creation (timed trades)
    payout_amount: int = 0               # cents credited back at resolution
    profit_amount: int = 0               # bonus part of payout_amount
    metadata: dict[str, Any] = field(default_factory=dict)
    expires_at: datetime | None = None   # timed trades only
    resolved_by: str | None = None       # "ADMIN", an operator id, or "SYSTEM"
    resolved_at: datetime | None = None
    created_at: datetime | None = None

    @property
    def is_pending(self) -> bool:
        return self.status is HoldStatus.PENDING

    def is_expired(self, now: datetime) -> bool:
        return self.is_pending and self.expires_at is not None and self.expires_at <= now


@dataclass
class IpoOffering:
    id: str
    company_name: str
    price: int                           # cents per share
    lot_size: int                        # shares per lot
    min_investment: int                  # cents
    status: IpoStatus = IpoStatus.UPCOMING
    symbol: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def application_amount(self, lots: int) -> int:
        return lots * self.price * self.lot_size
