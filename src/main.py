"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import settings
from src.bk_account.api.router import router as account_router
from src.bk_admin.api.router import router as admin_router
from src.bk_common.database import async_session_factory, engine
from src.bk_common.errors import AppError
from src.bk_common.redis_client import close_redis, get_redis
from src.bk_common.response import error_response
from src.bk_config.api.router import router as config_router
from src.bk_escrow.api.router import router as escrow_router
from src.bk_escrow.application.service import EscrowService
from src.bk_escrow.application.sweeper import EscrowExpirySweeper
from src.bk_gateway.middleware.request_log import RequestLogMiddleware
from src.bk_market.api.router import router as market_router
from src.bk_portfolio.api.router import router as portfolio_router
from src.bk_wallet.api.router import router as wallet_router

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup: verify DB + Redis, start the expiry sweep. Shutdown: stop and dispose."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
    await get_redis()

    sweeper: EscrowExpirySweeper | None = None
    if settings.ESCROW_SWEEP_ENABLED:
        sweeper = EscrowExpirySweeper(EscrowService(), async_session_factory, get_redis)
        sweeper.start()
    app.state.escrow_sweeper = sweeper
    yield

    if sweeper is not None:
        await sweeper.stop()
    await engine.dispose()
    await close_redis()


app = FastAPI(
    title=settings.APP_NAME,
    version="0.1.0",
    lifespan=lifespan,
)


app.add_middleware(RequestLogMiddleware)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    resp = error_response(exc.code, exc.message, exc.kind.value)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(
        status_code=exc.http_status,
        content=resp.model_dump(),
    )


app.include_router(account_router, prefix="/api/v1")
app.include_router(wallet_router, prefix="/api/v1")
app.include_router(portfolio_router, prefix="/api/v1")
app.include_router(escrow_router, prefix="/api/v1")
app.include_router(config_router, prefix="/api/v1")
app.include_router(market_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": "0.1.0"}
