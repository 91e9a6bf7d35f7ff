"""Unit tests for the error hierarchy: codes, HTTP statuses and kinds."""

from src.bk_common.errors import (
    AccountNotFoundError,
    AdminRequiredError,
    AppError,
    BelowMinimumAmountError,
    ErrorKind,
    HoldAlreadyResolvedError,
    InsufficientFundsError,
    InsufficientQuantityError,
    InvalidWithdrawalMethodError,
    IpoNotLiveError,
    ProfitRateMissingError,
    TimerInUseError,
    TransactionAlreadyProcessedError,
)


def test_insufficient_funds_carries_amounts() -> None:
    err = InsufficientFundsError(500, 120)
    assert err.code == 2001
    assert err.http_status == 422
    assert err.kind is ErrorKind.INSUFFICIENT_FUNDS
    assert err.required == 500
    assert err.available == 120


def test_not_found_is_404() -> None:
    err = AccountNotFoundError("user-1")
    assert err.http_status == 404
    assert err.kind is ErrorKind.NOT_FOUND
    assert "user-1" in err.message


def test_already_processed_kinds() -> None:
    assert TransactionAlreadyProcessedError("TXN1", "APPROVED").kind is ErrorKind.ALREADY_PROCESSED
    assert HoldAlreadyResolvedError("HOLD1", "RESOLVED_BONUS").http_status == 409


def test_configuration_errors() -> None:
    assert InvalidWithdrawalMethodError("WM1").kind is ErrorKind.INVALID_CONFIGURATION
    assert ProfitRateMissingError().kind is ErrorKind.INVALID_CONFIGURATION


def test_state_and_validation_errors() -> None:
    assert IpoNotLiveError("IPO1", "UPCOMING").kind is ErrorKind.INVALID_STATE
    assert TimerInUseError("TIMER_1M").kind is ErrorKind.INVALID_STATE
    assert BelowMinimumAmountError(10, 50).kind is ErrorKind.VALIDATION
    assert InsufficientQuantityError("ACME", 5, 2).kind is ErrorKind.INSUFFICIENT_QUANTITY


def test_admin_required_is_forbidden() -> None:
    err = AdminRequiredError()
    assert err.http_status == 403
    assert err.kind is ErrorKind.FORBIDDEN


def test_all_are_app_errors() -> None:
    assert isinstance(ProfitRateMissingError(), AppError)
    assert str(AccountNotFoundError("u")) == "Account not found for user u"
