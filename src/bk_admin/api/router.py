"""Operator REST API — moderation, adjustments, settlement and configuration.

Every endpoint requires a token with role=admin.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bk_account.application.schemas import (
    AdjustBalanceRequest,
    BalanceResponse,
    OpenAccountRequest,
)
from src.bk_account.application.service import AccountService
from src.bk_common.database import get_db_session
from src.bk_common.enums import HoldKind, HoldStatus, WalletTxnKind
from src.bk_common.response import ApiResponse, success_response
from src.bk_config.application.schemas import (
    ConfigSnapshotResponse,
    TimerSettingRequest,
    TimerSettingResponse,
    TimerToggleRequest,
    TradingSettingsUpdateRequest,
)
from src.bk_config.application.service import get_trading_config_service
from src.bk_escrow.application.schemas import (
    CreateIpoRequest,
    EscrowHoldResponse,
    IpoOfferingResponse,
    IpoStatusRequest,
    ResolveBonusRequest,
    TimedTradeResultRequest,
)
from src.bk_escrow.application.service import EscrowService
from src.bk_gateway.auth.dependencies import CurrentUser, require_admin
from src.bk_wallet.application.schemas import (
    PaymentGatewayRequest,
    PaymentGatewayResponse,
    RejectRequest,
    WalletTransactionResponse,
    WithdrawalMethodRequest,
    WithdrawalMethodResponse,
)
from src.bk_wallet.application.service import WalletService

router = APIRouter(prefix="/admin", tags=["admin"])

_accounts = AccountService()
_wallet = WalletService(account_service=_accounts)
_escrow = EscrowService(account_service=_accounts)

Operator = Annotated[CurrentUser, Depends(require_admin)]
Db = Annotated[AsyncSession, Depends(get_db_session)]


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@router.post("/accounts/{user_id}/open")
async def open_account(user_id: str, body: OpenAccountRequest, operator: Operator, db: Db) -> ApiResponse:
    account = await _accounts.open_account(db, user_id, body.initial_balance_cents)
    return success_response(
        BalanceResponse.from_cents(account.user_id, account.balance, account.version).model_dump()
    )


@router.get("/accounts/{user_id}/balance")
async def get_balance(user_id: str, operator: Operator, db: Db) -> ApiResponse:
    account = await _accounts.get_account(db, user_id)
    return success_response(
        BalanceResponse.from_cents(account.user_id, account.balance, account.version).model_dump()
    )


@router.post("/accounts/{user_id}/adjust")
async def adjust_balance(
    user_id: str, body: AdjustBalanceRequest, operator: Operator, db: Db
) -> ApiResponse:
    result = await _accounts.adjust(
        db, user_id, body.amount_cents, body.direction, body.reason, operator.user_id
    )
    return success_response(result.model_dump())


# ---------------------------------------------------------------------------
# Wallet moderation
# ---------------------------------------------------------------------------


@router.get("/wallet/pending")
async def list_pending(
    operator: Operator, db: Db, kind: WalletTxnKind | None = Query(None)
) -> ApiResponse:
    txns = await _wallet.list_pending(db, kind)
    return success_response([WalletTransactionResponse.from_domain(t).model_dump() for t in txns])


@router.post("/wallet/transactions/{txn_id}/approve")
async def approve_transaction(txn_id: str, operator: Operator, db: Db) -> ApiResponse:
    txn = await _wallet.approve(db, txn_id)
    return success_response(WalletTransactionResponse.from_domain(txn).model_dump())


@router.post("/wallet/transactions/{txn_id}/reject")
async def reject_transaction(
    txn_id: str, body: RejectRequest, operator: Operator, db: Db
) -> ApiResponse:
    txn = await _wallet.reject(db, txn_id, body.reason)
    return success_response(WalletTransactionResponse.from_domain(txn).model_dump())


@router.get("/withdrawal-methods")
async def list_all_methods(operator: Operator, db: Db) -> ApiResponse:
    methods = await _wallet.list_all_methods(db)
    return success_response([WithdrawalMethodResponse.from_domain(m).model_dump() for m in methods])


@router.post("/withdrawal-methods")
async def add_method(body: WithdrawalMethodRequest, operator: Operator, db: Db) -> ApiResponse:
    method = await _wallet.add_method(db, body)
    return success_response(WithdrawalMethodResponse.from_domain(method).model_dump())


@router.put("/withdrawal-methods/{method_id}")
async def update_method(
    method_id: str, body: WithdrawalMethodRequest, operator: Operator, db: Db
) -> ApiResponse:
    method = await _wallet.update_method(db, method_id, body)
    return success_response(WithdrawalMethodResponse.from_domain(method).model_dump())


@router.delete("/withdrawal-methods/{method_id}")
async def deactivate_method(method_id: str, operator: Operator, db: Db) -> ApiResponse:
    method = await _wallet.deactivate_method(db, method_id)
    return success_response(WithdrawalMethodResponse.from_domain(method).model_dump())


@router.get("/payment-gateways")
async def list_all_gateways(operator: Operator, db: Db) -> ApiResponse:
    gateways = await _wallet.list_all_gateways(db)
    return success_response([PaymentGatewayResponse.from_domain(g).model_dump() for g in gateways])


@router.post("/payment-gateways")
async def add_gateway(body: PaymentGatewayRequest, operator: Operator, db: Db) -> ApiResponse:
    gateway = await _wallet.add_gateway(db, body)
    return success_response(PaymentGatewayResponse.from_domain(gateway).model_dump())


@router.put("/payment-gateways/{gateway_id}")
async def update_gateway(
    gateway_id: str, body: PaymentGatewayRequest, operator: Operator, db: Db
) -> ApiResponse:
    gateway = await _wallet.update_gateway(db, gateway_id, body)
    return success_response(PaymentGatewayResponse.from_domain(gateway).model_dump())


@router.delete("/payment-gateways/{gateway_id}")
async def deactivate_gateway(gateway_id: str, operator: Operator, db: Db) -> ApiResponse:
    gateway = await _wallet.deactivate_gateway(db, gateway_id)
    return success_response(PaymentGatewayResponse.from_domain(gateway).model_dump())


# ---------------------------------------------------------------------------
# Escrow settlement
# ---------------------------------------------------------------------------


@router.get("/holds")
async def list_holds(
    operator: Operator,
    db: Db,
    kind: HoldKind | None = Query(None),
    status: HoldStatus | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    holds = await _escrow.list_holds(db, kind, status, limit)
    return success_response([EscrowHoldResponse.from_domain(h).model_dump() for h in holds])


@router.post("/holds/{hold_id}/return")
async def resolve_return(hold_id: str, operator: Operator, db: Db) -> ApiResponse:
    hold = await _escrow.resolve_return(db, hold_id, operator.user_id)
    return success_response(EscrowHoldResponse.from_domain(hold).model_dump())


@router.post("/holds/{hold_id}/forfeit")
async def resolve_forfeit(hold_id: str, operator: Operator, db: Db) -> ApiResponse:
    hold = await _escrow.resolve_forfeit(db, hold_id, operator.user_id)
    return success_response(EscrowHoldResponse.from_domain(hold).model_dump())


@router.post("/holds/{hold_id}/bonus")
async def resolve_bonus(
    hold_id: str, body: ResolveBonusRequest, operator: Operator, db: Db
) -> ApiResponse:
    hold = await _escrow.resolve_bonus(db, hold_id, body.profit_rate, operator.user_id)
    return success_response(EscrowHoldResponse.from_domain(hold).model_dump())


@router.post("/timed-trades/{hold_id}/result")
async def set_timed_trade_result(
    hold_id: str, body: TimedTradeResultRequest, operator: Operator, db: Db
) -> ApiResponse:
    hold = await _escrow.set_timed_trade_result(db, hold_id, body.outcome, operator.user_id)
    return success_response(EscrowHoldResponse.from_domain(hold).model_dump())


@router.post("/escrow/sweep")
async def sweep_expired(operator: Operator, db: Db) -> ApiResponse:
    settled = await _escrow.sweep_expired(db, settings.ESCROW_SWEEP_BATCH_SIZE)
    return success_response({"settled": settled})


@router.post("/ipos")
async def create_ipo(body: CreateIpoRequest, operator: Operator, db: Db) -> ApiResponse:
    ipo = await _escrow.create_ipo(
        db, body.company_name, body.price_cents, body.lot_size,
        body.min_investment_cents, body.status, body.symbol,
    )
    return success_response(IpoOfferingResponse.from_domain(ipo).model_dump())


@router.patch("/ipos/{ipo_id}/status")
async def set_ipo_status(
    ipo_id: str, body: IpoStatusRequest, operator: Operator, db: Db
) -> ApiResponse:
    ipo = await _escrow.set_ipo_status(db, ipo_id, body.status)
    return success_response(IpoOfferingResponse.from_domain(ipo).model_dump())


@router.put("/ipos/{ipo_id}")
async def update_ipo(
    ipo_id: str, body: CreateIpoRequest, operator: Operator, db: Db
) -> ApiResponse:
    ipo = await _escrow.update_ipo(
        db, ipo_id, body.company_name, body.price_cents, body.lot_size,
        body.min_investment_cents, body.status, body.symbol,
    )
    return success_response(IpoOfferingResponse.from_domain(ipo).model_dump())


@router.delete("/ipos/{ipo_id}")
async def delete_ipo(ipo_id: str, operator: Operator, db: Db) -> ApiResponse:
    await _escrow.delete_ipo(db, ipo_id)
    return success_response({"deleted": ipo_id})


@router.post("/ipo-applications/{hold_id}/allot")
async def allot_ipo_application(hold_id: str, operator: Operator, db: Db) -> ApiResponse:
    hold = await _escrow.allot_ipo_application(db, hold_id, operator.user_id)
    return success_response(EscrowHoldResponse.from_domain(hold).model_dump())


@router.post("/ipo-applications/{hold_id}/reject")
async def reject_ipo_application(hold_id: str, operator: Operator, db: Db) -> ApiResponse:
    hold = await _escrow.reject_ipo_application(db, hold_id, operator.user_id)
    return success_response(EscrowHoldResponse.from_domain(hold).model_dump())


# ---------------------------------------------------------------------------
# Timer / rate configuration
# ---------------------------------------------------------------------------


@router.get("/config")
async def get_config(operator: Operator, db: Db) -> ApiResponse:
    snapshot = await get_trading_config_service().snapshot(db)
    return success_response(ConfigSnapshotResponse.from_snapshot(snapshot).model_dump())


@router.post("/config/reload")
async def reload_config(operator: Operator, db: Db) -> ApiResponse:
    snapshot = await get_trading_config_service().reload(db)
    return success_response(ConfigSnapshotResponse.from_snapshot(snapshot).model_dump())


@router.post("/config/timers")
async def add_timer(body: TimerSettingRequest, operator: Operator, db: Db) -> ApiResponse:
    timer = await get_trading_config_service().add_timer(db, body.duration_minutes, body.label)
    return success_response(TimerSettingResponse.from_domain(timer).model_dump())


@router.patch("/config/timers/{timer_id}")
async def toggle_timer(
    timer_id: str, body: TimerToggleRequest, operator: Operator, db: Db
) -> ApiResponse:
    timer = await get_trading_config_service().set_timer_enabled(db, timer_id, body.is_enabled)
    return success_response(TimerSettingResponse.from_domain(timer).model_dump())


@router.delete("/config/timers/{timer_id}")
async def delete_timer(timer_id: str, operator: Operator, db: Db) -> ApiResponse:
    await get_trading_config_service().delete_timer(db, timer_id)
    return success_response({"deleted": timer_id})


@router.put("/config/trading")
async def update_trading_settings(
    body: TradingSettingsUpdateRequest, operator: Operator, db: Db
) -> ApiResponse:
    snapshot = await get_trading_config_service().update_trading_settings(db, body)
    return success_response(ConfigSnapshotResponse.from_snapshot(snapshot).model_dump())
