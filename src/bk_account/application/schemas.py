"""Pydantic schemas for bk_account API."""

from pydantic import BaseModel, Field

from src.bk_common.cents import cents_to_display
from src.bk_common.enums import AdjustDirection

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class OpenAccountRequest(BaseModel):
    initial_balance_cents: int = Field(0, ge=0)


class AdjustBalanceRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Amount to add or deduct in cents")
    direction: AdjustDirection
    reason: str | None = Field(None, max_length=500)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BalanceResponse(BaseModel):
    user_id: str
    balance_cents: int
    balance_display: str
    version: int

    @classmethod
    def from_cents(cls, user_id: str, balance: int, version: int) -> "BalanceResponse":
        return cls(
            user_id=user_id,
            balance_cents=balance,
            balance_display=cents_to_display(balance),
            version=version,
        )


class AdjustmentResponse(BaseModel):
    user_id: str
    direction: AdjustDirection
    amount_cents: int
    new_balance_cents: int
    new_balance_display: str
    transaction_id: str


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount_cents: int
    amount_display: str
    balance_after_cents: int
    balance_after_display: str
    reference_type: str | None
    reference_id: str | None
    description: str | None
    created_at: str  # ISO8601 string


class LedgerResponse(BaseModel):
    items: list[LedgerEntryItem]
    next_cursor: str | None
    has_more: bool
