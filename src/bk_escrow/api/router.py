"""bk_escrow REST API — timed trades and IPO applications, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.database import get_db_session
from src.bk_common.enums import IpoStatus
from src.bk_common.response import ApiResponse, success_response
from src.bk_escrow.application.schemas import (
    CreateTimedTradeRequest,
    EscrowHoldResponse,
    IpoApplicationRequest,
    IpoOfferingResponse,
)
from src.bk_escrow.application.service import EscrowService
from src.bk_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/escrow", tags=["escrow"])

_service = EscrowService()


@router.post("/timed-trades")
async def create_timed_trade(
    body: CreateTimedTradeRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    hold = await _service.create_timed_trade(
        db, current_user.user_id, body.amount_cents, body.timer_duration,
        body.symbol, body.side,
    )
    resp = success_response(EscrowHoldResponse.from_domain(hold).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/timed-trades")
async def list_timed_trades(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    holds = await _service.list_user_timed_trades(db, current_user.user_id)
    return success_response([EscrowHoldResponse.from_domain(h).model_dump() for h in holds])


@router.get("/ipos")
async def list_ipos(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    status: IpoStatus | None = Query(None),
) -> ApiResponse:
    ipos = await _service.list_ipos(db, status)
    return success_response([IpoOfferingResponse.from_domain(i).model_dump() for i in ipos])


@router.get("/ipos/{ipo_id}")
async def get_ipo(
    ipo_id: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    ipo = await _service.get_ipo(db, ipo_id)
    return success_response(IpoOfferingResponse.from_domain(ipo).model_dump())


@router.post("/ipos/{ipo_id}/applications")
async def apply_for_ipo(
    ipo_id: str,
    body: IpoApplicationRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    hold = await _service.apply_for_ipo(db, current_user.user_id, ipo_id, body.lots)
    resp = success_response(EscrowHoldResponse.from_domain(hold).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/ipo-applications")
async def list_ipo_applications(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    holds = await _service.list_user_ipo_applications(db, current_user.user_id)
    return success_response([EscrowHoldResponse.from_domain(h).model_dump() for h in holds])
