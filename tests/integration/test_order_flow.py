"""Integration tests for the order flow: buy → sell → realized P&L (requires migrated PG).

Orders carry an explicit price so results do not depend on the quote source.
"""

import uuid

import pytest
from httpx import AsyncClient

from src.bk_common.enums import UserRole
from src.bk_gateway.auth.jwt_handler import create_access_token

pytestmark = pytest.mark.asyncio(loop_scope="session")

ADMIN = {"Authorization": f"Bearer {create_access_token('ops-orders', UserRole.ADMIN)}"}
DEPOSIT_AMOUNT = 1_000_000


async def _open_user(client: AsyncClient, balance: int = DEPOSIT_AMOUNT) -> dict[str, str]:
    user_id = f"order_{uuid.uuid4().hex[:12]}"
    await client.post(
        f"/api/v1/admin/accounts/{user_id}/open",
        json={"initial_balance_cents": balance},
        headers=ADMIN,
    )
    return {"Authorization": f"Bearer {create_access_token(user_id, UserRole.USER)}"}


async def _order(
    client: AsyncClient, headers: dict[str, str], side: str, quantity: int, price: int
):  # type: ignore[no-untyped-def]
    return await client.post(
        "/api/v1/portfolio/orders",
        json={"symbol": "INFY", "side": side, "quantity": quantity, "price_cents": price},
        headers=headers,
    )


class TestOrderFlow:
    async def test_unauthenticated_returns_401(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/portfolio/orders",
            json={"symbol": "INFY", "side": "BUY", "quantity": 1, "price_cents": 100},
        )
        assert resp.status_code == 401

    async def test_buy_then_partial_sell(self, client: AsyncClient) -> None:
        headers = await _open_user(client)

        resp = await _order(client, headers, "BUY", 10, 15000)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["order"]["amount_cents"] == 150000
        assert data["position"]["quantity"] == 10
        assert data["balance_after_cents"] == DEPOSIT_AMOUNT - 150000

        resp = await _order(client, headers, "SELL", 4, 20000)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["realized"]["quantity"] == 4
        assert data["balance_after_cents"] == DEPOSIT_AMOUNT - 150000 + 80000

        position = (
            await client.get("/api/v1/portfolio/positions/INFY", headers=headers)
        ).json()["data"]
        assert position["quantity"] == 6
        realized = (await client.get("/api/v1/portfolio/realized-pnl", headers=headers)).json()
        assert len(realized["data"]) == 1

    async def test_sell_more_than_held(self, client: AsyncClient) -> None:
        headers = await _open_user(client)
        await _order(client, headers, "BUY", 2, 15000)
        resp = await _order(client, headers, "SELL", 3, 15000)
        assert resp.status_code == 422
        assert resp.json()["code"] == 4001

    async def test_buy_beyond_balance(self, client: AsyncClient) -> None:
        headers = await _open_user(client, 1000)
        resp = await _order(client, headers, "BUY", 1, 5000)
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001
        orders = (await client.get("/api/v1/portfolio/orders", headers=headers)).json()["data"]
        assert orders == []
