"""bk_wallet REST API — user-facing deposit/withdrawal requests, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.database import get_db_session
from src.bk_common.response import ApiResponse, success_response
from src.bk_gateway.auth.dependencies import CurrentUser, get_current_user
from src.bk_wallet.application.schemas import (
    DepositRequest,
    PaymentGatewayResponse,
    WalletTransactionResponse,
    WithdrawalMethodResponse,
    WithdrawalRequest,
)
from src.bk_wallet.application.service import WalletService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletService()


@router.post("/deposits")
async def request_deposit(
    body: DepositRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    txn = await _service.request_deposit(
        db, current_user.user_id, body.amount_cents, body.channel,
        body.gateway_id, body.reference,
    )
    resp = success_response(WalletTransactionResponse.from_domain(txn).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/withdrawals")
async def request_withdrawal(
    body: WithdrawalRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    txn = await _service.request_withdrawal(
        db, current_user.user_id, body.amount_cents, body.method_id,
        body.account, body.details,
    )
    resp = success_response(WalletTransactionResponse.from_domain(txn).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/transactions")
async def list_history(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_history(db, current_user.user_id, cursor, limit)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/withdrawal-methods")
async def list_active_methods(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    methods = await _service.list_active_methods(db)
    return success_response(
        [WithdrawalMethodResponse.from_domain(m).model_dump() for m in methods]
    )


@router.get("/payment-gateways")
async def list_active_gateways(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    gateways = await _service.list_active_gateways(db)
    return success_response(
        [PaymentGatewayResponse.from_domain(g).model_dump() for g in gateways]
    )


@router.get("/payment-gateways/{gateway_id}")
async def get_gateway(
    gateway_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    gateway = await _service.get_gateway(db, gateway_id)
    return success_response(PaymentGatewayResponse.from_domain(gateway).model_dump())
