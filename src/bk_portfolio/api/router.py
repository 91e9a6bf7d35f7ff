"""bk_portfolio REST API — orders, positions and P&L, JWT required."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.database import get_db_session
from src.bk_common.response import ApiResponse, success_response
from src.bk_gateway.auth.dependencies import CurrentUser, get_current_user
from src.bk_portfolio.application.schemas import (
    OrderResponse,
    OrderResultResponse,
    PlaceOrderRequest,
    PortfolioSummaryResponse,
    PositionResponse,
    RealizedPnlResponse,
)
from src.bk_portfolio.application.service import (
    ORDERS_PAGE,
    REALIZED_PNL_PAGE,
    PositionService,
)

router = APIRouter(prefix="/portfolio", tags=["portfolio"])

_service = PositionService()


@router.post("/orders")
async def place_order(
    body: PlaceOrderRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    result = await _service.place_order(
        db, current_user.user_id, body.symbol, body.side, body.quantity, body.price_cents
    )
    resp = success_response(OrderResultResponse.from_result(result).model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/orders")
async def list_orders(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(ORDERS_PAGE, ge=1, le=100),
) -> ApiResponse:
    orders = await _service.list_orders(db, current_user.user_id, limit)
    return success_response([OrderResponse.from_domain(o).model_dump() for o in orders])


@router.get("/positions")
async def list_positions(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    views = await _service.list_positions(db, current_user.user_id)
    return success_response(
        {"items": [PositionResponse.from_view(v).model_dump() for v in views], "total": len(views)}
    )


@router.get("/positions/{symbol}")
async def get_position(
    symbol: str,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    view = await _service.get_position(db, current_user.user_id, symbol)
    return success_response(PositionResponse.from_view(view).model_dump())


@router.get("/realized-pnl")
async def list_realized_pnl(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    limit: int = Query(REALIZED_PNL_PAGE, ge=1, le=200),
) -> ApiResponse:
    records = await _service.list_realized_pnl(db, current_user.user_id, limit)
    return success_response([RealizedPnlResponse.from_domain(r).model_dump() for r in records])


@router.get("/summary")
async def get_portfolio_summary(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    summary = await _service.get_portfolio_summary(db, current_user.user_id)
    return success_response(PortfolioSummaryResponse.from_summary(summary).model_dump())
