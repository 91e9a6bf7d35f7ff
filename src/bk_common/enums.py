"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class WalletTxnKind(str, Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"


class WalletTxnStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class WalletChannel(str, Enum):
    """Well-known channels for wallet rows the platform writes itself."""
    ADMIN_ADJUSTMENT = "admin_adjustment"
    ESCROW_SETTLEMENT = "escrow_settlement"


class AdjustDirection(str, Enum):
    ADD = "add"
    DEDUCT = "deduct"


class LedgerEntryType(str, Enum):
    # Wallet moderation
    DEPOSIT = "DEPOSIT"
    WITHDRAW = "WITHDRAW"
    # Operator adjustment
    ADJUST_ADD = "ADJUST_ADD"
    ADJUST_DEDUCT = "ADJUST_DEDUCT"
    # Order settlement
    BUY_COST = "BUY_COST"
    SELL_PROCEEDS = "SELL_PROCEEDS"
    # Escrow
    ESCROW_HOLD = "ESCROW_HOLD"
    ESCROW_RELEASE = "ESCROW_RELEASE"


class ReferenceType(str, Enum):
    WALLET_TXN = "WALLET_TXN"
    ADJUSTMENT = "ADJUSTMENT"
    ORDER = "ORDER"
    ESCROW_HOLD = "ESCROW_HOLD"


class OrderSide(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class OrderStatus(str, Enum):
    EXECUTED = "EXECUTED"


class HoldKind(str, Enum):
    TIMED_TRADE = "TIMED_TRADE"
    IPO_APPLICATION = "IPO_APPLICATION"


class HoldStatus(str, Enum):
    PENDING = "PENDING"
    RESOLVED_RETURN = "RESOLVED_RETURN"
    RESOLVED_FORFEIT = "RESOLVED_FORFEIT"
    RESOLVED_BONUS = "RESOLVED_BONUS"


class TimedTradeOutcome(str, Enum):
    WIN = "win"
    LOSE = "lose"
    DRAW = "draw"


class IpoStatus(str, Enum):
    UPCOMING = "UPCOMING"
    LIVE = "LIVE"
    CLOSED = "CLOSED"


class NotificationCategory(str, Enum):
    IPO_ALERTS = "IPO Alerts"
    WALLET_UPDATES = "Deposit & Withdrawal updates"
    APPROVALS = "Approval notifications"
    SYSTEM_ALERTS = "System alerts"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"
