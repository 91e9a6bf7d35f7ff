"""Domain models for bk_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime

from src.bk_common.enums import WalletTxnKind, WalletTxnStatus


@dataclass
class WalletTransaction:
    id: str
    user_id: str
    kind: WalletTxnKind
    amount: int                          # cents, the full amount moved on approval
    status: WalletTxnStatus
    channel: str
    fee: int = 0                         # cents, withdrawal only, informational
    method_id: str | None = None
    gateway_id: str | None = None
    destination_account: str | None = None
    details: dict[str, str] = field(default_factory=dict)
    reference_id: str | None = None      # payer proof / escrow hold id / operator id
    description: str | None = None
    rejection_reason: str | None = None
    seq: int | None = None               # BIGSERIAL, pagination key
    created_at: datetime | None = None
    resolved_at: datetime | None = None

    @property
    def final_amount(self) -> int:
        """What the user receives off-platform; the ledger debit is always `amount`."""
        if self.kind is WalletTxnKind.WITHDRAWAL:
            return self.amount - self.fee
        return self.amount

    @property
    def is_terminal(self) -> bool:
        return self.status is not WalletTxnStatus.PENDING


@dataclass
class WithdrawalMethod:
    id: str
    name: str
    type: str                            # e.g. "bank", "upi", "crypto"
    min_amount: int                      # cents
    fee: int                             # cents
    processing_time: str
    is_active: bool = True
    created_at: datetime | None = None


@dataclass
class PaymentGateway:
    id: str
    name: str                            # becomes the deposit channel
    trc20_address: str
    trc20_qr_code: str | None = None
    min_deposit: int = 0                 # cents
    confirmation_time: str | None = None
    instructions: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
