"""Market quotes REST API — read-only view of the price source."""

from fastapi import APIRouter

from src.bk_common.cents import cents_to_display
from src.bk_common.response import ApiResponse, success_response
from src.bk_market.infrastructure.static_prices import get_price_source

router = APIRouter(prefix="/market", tags=["market"])


@router.get("/quotes")
async def list_quotes() -> ApiResponse:
    quotes = get_price_source().quotes()
    return success_response(
        [
            {"symbol": symbol, "ltp_cents": ltp, "ltp_display": cents_to_display(ltp)}
            for symbol, ltp in quotes.items()
        ]
    )


@router.get("/quotes/{symbol}")
async def get_quote(symbol: str) -> ApiResponse:
    ltp = get_price_source().get_price(symbol)
    return success_response(
        {"symbol": symbol.upper(), "ltp_cents": ltp, "ltp_display": cents_to_display(ltp)}
    )
