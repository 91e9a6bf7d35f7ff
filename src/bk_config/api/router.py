"""bk_config REST API — read-only view of enabled timers and the profit rate."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.database import get_db_session
from src.bk_common.response import ApiResponse, success_response
from src.bk_config.application.schemas import ConfigSnapshotResponse
from src.bk_config.application.service import get_trading_config_service
from src.bk_gateway.auth.dependencies import CurrentUser, get_current_user

router = APIRouter(prefix="/config", tags=["config"])


@router.get("/trading")
async def get_trading_config(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    snapshot = await get_trading_config_service().snapshot(db)
    return success_response(
        ConfigSnapshotResponse.from_snapshot(snapshot, enabled_only=True).model_dump()
    )
