"""Pydantic schemas for bk_wallet API."""

from pydantic import BaseModel, Field, model_validator

from src.bk_common.cents import cents_to_display
from src.bk_common.datetime_utils import isoformat_or_none
from src.bk_wallet.domain.models import PaymentGateway, WalletTransaction, WithdrawalMethod

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Deposit amount in cents")
    channel: str | None = Field(
        None, min_length=1, max_length=50, description="e.g. upi; replaced by the gateway name"
    )
    gateway_id: str | None = Field(None, max_length=64)
    reference: str | None = Field(None, max_length=128, description="Payer proof reference")

    @model_validator(mode="after")
    def _channel_or_gateway(self) -> "DepositRequest":
        if self.channel is None and self.gateway_id is None:
            raise ValueError("channel or gateway_id is required")
        return self


class WithdrawalRequest(BaseModel):
    amount_cents: int = Field(..., gt=0, description="Withdrawal amount in cents")
    method_id: str = Field(..., min_length=1, max_length=64)
    account: str = Field(..., min_length=1, max_length=200, description="Destination account")
    details: dict[str, str] = Field(default_factory=dict)


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class WithdrawalMethodRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: str = Field(..., min_length=1, max_length=30)
    min_amount_cents: int = Field(..., ge=0)
    fee_cents: int = Field(0, ge=0)
    processing_time: str = Field("1-2 business days", max_length=100)
    is_active: bool = True


class PaymentGatewayRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    trc20_address: str = Field(..., min_length=1, max_length=128)
    trc20_qr_code: str | None = Field(None, max_length=500)
    min_deposit_cents: int = Field(0, ge=0)
    confirmation_time: str | None = Field(None, max_length=100)
    instructions: str | None = Field(None, max_length=1000)
    is_active: bool = True


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletTransactionResponse(BaseModel):
    id: str
    user_id: str
    kind: str
    status: str
    channel: str
    amount_cents: int
    amount_display: str
    fee_cents: int
    final_amount_cents: int
    method_id: str | None
    gateway_id: str | None
    destination_account: str | None
    details: dict[str, str]
    reference_id: str | None
    description: str | None
    rejection_reason: str | None
    created_at: str | None
    resolved_at: str | None

    @classmethod
    def from_domain(cls, txn: WalletTransaction) -> "WalletTransactionResponse":
        return cls(
            id=txn.id,
            user_id=txn.user_id,
            kind=txn.kind.value,
            status=txn.status.value,
            channel=txn.channel,
            amount_cents=txn.amount,
            amount_display=cents_to_display(txn.amount),
            fee_cents=txn.fee,
            final_amount_cents=txn.final_amount,
            method_id=txn.method_id,
            gateway_id=txn.gateway_id,
            destination_account=txn.destination_account,
            details=txn.details,
            reference_id=txn.reference_id,
            description=txn.description,
            rejection_reason=txn.rejection_reason,
            created_at=isoformat_or_none(txn.created_at),
            resolved_at=isoformat_or_none(txn.resolved_at),
        )


class WalletHistoryResponse(BaseModel):
    items: list[WalletTransactionResponse]
    next_cursor: str | None
    has_more: bool


class WithdrawalMethodResponse(BaseModel):
    id: str
    name: str
    type: str
    min_amount_cents: int
    fee_cents: int
    processing_time: str
    is_active: bool

    @classmethod
    def from_domain(cls, method: WithdrawalMethod) -> "WithdrawalMethodResponse":
        return cls(
            id=method.id,
            name=method.name,
            type=method.type,
            min_amount_cents=method.min_amount,
            fee_cents=method.fee,
            processing_time=method.processing_time,
            is_active=method.is_active,
        )


class PaymentGatewayResponse(BaseModel):
    id: str
    name: str
    trc20_address: str
    trc20_qr_code: str | None
    min_deposit_cents: int
    confirmation_time: str | None
    instructions: str | None
    is_active: bool

    @classmethod
    def from_domain(cls, gateway: PaymentGateway) -> "PaymentGatewayResponse":
        return cls(
            id=gateway.id,
            name=gateway.name,
            trc20_address=gateway.trc20_address,
            trc20_qr_code=gateway.trc20_qr_code,
            min_deposit_cents=gateway.min_deposit,
            confirmation_time=gateway.confirmation_time,
            instructions=gateway.instructions,
            is_active=gateway.is_active,
        )
