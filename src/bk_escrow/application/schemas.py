"""Pydantic schemas for bk_escrow API."""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from src.bk_common.cents import cents_to_display
from src.bk_common.datetime_utils import isoformat_or_none
from src.bk_common.enums import HoldKind, IpoStatus, OrderSide, TimedTradeOutcome
from src.bk_escrow.domain.models import EscrowHold, IpoOffering
from src.bk_escrow.domain.settlement import status_to_outcome

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class CreateTimedTradeRequest(BaseModel):
    amount_cents: int = Field(..., gt=0)
    timer_duration: int = Field(..., gt=0, description="Minutes; must match an enabled timer")
    symbol: str | None = Field(None, max_length=20)
    side: OrderSide | None = None


class TimedTradeResultRequest(BaseModel):
    outcome: TimedTradeOutcome


class ResolveBonusRequest(BaseModel):
    profit_rate: Decimal | None = Field(
        None, gt=0, le=1000, description="Percent; defaults to the rate captured at creation"
    )


class IpoApplicationRequest(BaseModel):
    lots: int = Field(..., gt=0)


class CreateIpoRequest(BaseModel):
    company_name: str = Field(..., min_length=1, max_length=200)
    symbol: str | None = Field(None, max_length=20)
    price_cents: int = Field(..., gt=0)
    lot_size: int = Field(..., gt=0)
    min_investment_cents: int = Field(0, ge=0)
    status: IpoStatus = IpoStatus.UPCOMING


class IpoStatusRequest(BaseModel):
    status: IpoStatus


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class EscrowHoldResponse(BaseModel):
    id: str
    user_id: str
    kind: str
    status: str
    outcome: str | None           # win / lose / draw for resolved timed trades
    held_amount_cents: int
    held_amount_display: str
    profit_rate: str | None
    payout_amount_cents: int
    profit_amount_cents: int
    metadata: dict[str, Any]
    expires_at: str | None
    resolved_by: str | None
    resolved_at: str | None
    created_at: str | None

    @classmethod
    def from_domain(cls, hold: EscrowHold) -> "EscrowHoldResponse":
        outcome = status_to_outcome(hold.status) if hold.kind is HoldKind.TIMED_TRADE else None
        return cls(
            id=hold.id,
            user_id=hold.user_id,
            kind=hold.kind.value,
            status=hold.status.value,
            outcome=outcome.value if outcome else None,
            held_amount_cents=hold.held_amount,
            held_amount_display=cents_to_display(hold.held_amount),
            profit_rate=str(hold.profit_rate) if hold.profit_rate is not None else None,
            payout_amount_cents=hold.payout_amount,
            profit_amount_cents=hold.profit_amount,
            metadata=hold.metadata,
            expires_at=isoformat_or_none(hold.expires_at),
            resolved_by=hold.resolved_by,
            resolved_at=isoformat_or_none(hold.resolved_at),
            created_at=isoformat_or_none(hold.created_at),
        )


class IpoOfferingResponse(BaseModel):
    id: str
    company_name: str
    symbol: str | None
    price_cents: int
    lot_size: int
    lot_price_cents: int
    min_investment_cents: int
    status: str

    @classmethod
    def from_domain(cls, ipo: IpoOffering) -> "IpoOfferingResponse":
        return cls(
            id=ipo.id,
            company_name=ipo.company_name,
            symbol=ipo.symbol,
            price_cents=ipo.price,
            lot_size=ipo.lot_size,
            lot_price_cents=ipo.application_amount(1),
            min_investment_cents=ipo.min_investment,
            status=ipo.status.value,
        )
