"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  2xxx: Account
  3xxx: Wallet
  4xxx: Portfolio
  5xxx: Escrow / trading configuration
  9xxx: System

Every error also carries a kind, the caller-facing category of the rejection.
None of these are retried internally.
"""

from enum import Enum


class ErrorKind(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    INSUFFICIENT_QUANTITY = "INSUFFICIENT_QUANTITY"
    ALREADY_PROCESSED = "ALREADY_PROCESSED"
    INVALID_STATE = "INVALID_STATE"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    VALIDATION = "VALIDATION"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    INTERNAL = "INTERNAL"


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
        kind: ErrorKind = ErrorKind.INTERNAL,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        self.kind = kind
        super().__init__(message)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404, ErrorKind.NOT_FOUND)


class AlreadyProcessedError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409, ErrorKind.ALREADY_PROCESSED)


class InvalidStateError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422, ErrorKind.INVALID_STATE)


class InvalidConfigurationError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422, ErrorKind.INVALID_CONFIGURATION)


class DomainValidationError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 422, ErrorKind.VALIDATION)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid or expired token", 401, ErrorKind.UNAUTHORIZED)


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1006, "Operator role required", 403, ErrorKind.FORBIDDEN)


# --- 2xxx: Account ---

class InsufficientFundsError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} cents, available {available} cents",
            422,
            ErrorKind.INSUFFICIENT_FUNDS,
        )
        self.required = required
        self.available = available


class AccountNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Account not found for user {user_id}")


# --- 3xxx: Wallet ---

class WalletTransactionNotFoundError(NotFoundError):
    def __init__(self, txn_id: str) -> None:
        super().__init__(3001, f"Wallet transaction not found: {txn_id}")


class TransactionAlreadyProcessedError(AlreadyProcessedError):
    def __init__(self, txn_id: str, status: str) -> None:
        super().__init__(3002, f"Wallet transaction {txn_id} already processed (status={status})")


class InvalidWithdrawalMethodError(InvalidConfigurationError):
    def __init__(self, method_id: str) -> None:
        super().__init__(3003, f"Withdrawal method not found or inactive: {method_id}")


class BelowMinimumAmountError(DomainValidationError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(3004, f"Minimum amount is {minimum} cents, got {amount} cents")


class PaymentGatewayUnavailableError(InvalidConfigurationError):
    def __init__(self, gateway_id: str) -> None:
        super().__init__(3005, f"Payment gateway not found or inactive: {gateway_id}")


class PaymentGatewayNotFoundError(NotFoundError):
    def __init__(self, gateway_id: str) -> None:
        super().__init__(3006, f"Payment gateway not found: {gateway_id}")


class DepositChannelRequiredError(DomainValidationError):
    def __init__(self) -> None:
        super().__init__(3007, "Deposit channel or payment gateway is required")


# --- 4xxx: Portfolio ---

class InsufficientQuantityError(AppError):
    def __init__(self, symbol: str, requested: int, held: int) -> None:
        super().__init__(
            4001,
            f"Insufficient quantity to sell {symbol}: requested {requested}, held {held}",
            422,
            ErrorKind.INSUFFICIENT_QUANTITY,
        )


class PositionNotFoundError(NotFoundError):
    def __init__(self, symbol: str) -> None:
        super().__init__(4002, f"Position not found: {symbol}")


class InvalidOrderError(DomainValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(4003, f"Invalid order: {detail}")


# --- 5xxx: Escrow / trading configuration ---

class HoldNotFoundError(NotFoundError):
    def __init__(self, hold_id: str) -> None:
        super().__init__(5001, f"Escrow hold not found: {hold_id}")


class HoldAlreadyResolvedError(AlreadyProcessedError):
    def __init__(self, hold_id: str, status: str) -> None:
        super().__init__(5002, f"Escrow hold {hold_id} already resolved (status={status})")


class TimerUnavailableError(InvalidConfigurationError):
    def __init__(self, duration_minutes: int) -> None:
        super().__init__(5003, f"Timer not available or disabled: {duration_minutes} minutes")


class ProfitRateMissingError(InvalidConfigurationError):
    def __init__(self) -> None:
        super().__init__(5004, "Profit rate is not configured")


class IpoNotFoundError(NotFoundError):
    def __init__(self, ipo_id: str) -> None:
        super().__init__(5005, f"IPO not found: {ipo_id}")


class IpoNotLiveError(InvalidStateError):
    def __init__(self, ipo_id: str, status: str) -> None:
        super().__init__(5006, f"IPO {ipo_id} is not open for applications (status={status})")


class HoldKindMismatchError(InvalidStateError):
    def __init__(self, hold_id: str, expected: str, actual: str) -> None:
        super().__init__(5007, f"Escrow hold {hold_id} is {actual}, expected {expected}")


class TimerInUseError(InvalidStateError):
    def __init__(self, timer_id: str) -> None:
        super().__init__(5008, f"Cannot delete timer {timer_id} with pending timed trades")


class DuplicateTimerError(DomainValidationError):
    def __init__(self, duration_minutes: int) -> None:
        super().__init__(5009, f"Timer with duration {duration_minutes} minutes already exists")


class TimerNotFoundError(NotFoundError):
    def __init__(self, timer_id: str) -> None:
        super().__init__(5010, f"Timer not found: {timer_id}")


class IpoInUseError(InvalidStateError):
    def __init__(self, ipo_id: str) -> None:
        super().__init__(5011, f"Cannot delete IPO {ipo_id} with pending applications")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500, ErrorKind.INTERNAL)


class InvalidAmountError(DomainValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(9003, detail)
