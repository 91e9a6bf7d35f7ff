"""Integration tests for escrowed timed trades and IPO applications (requires migrated PG).

Migration 006 seeds the 1/5/10/15/60 minute timers and an 80% profit rate.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import text

from src.bk_common.database import async_session_factory
from src.bk_common.enums import UserRole
from src.bk_gateway.auth.jwt_handler import create_access_token

pytestmark = pytest.mark.asyncio(loop_scope="session")

ADMIN = {"Authorization": f"Bearer {create_access_token('ops-escrow', UserRole.ADMIN)}"}
STAKE = 10000


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _open_user(client: AsyncClient, balance: int) -> dict[str, str]:
    user_id = f"escrow_{uuid.uuid4().hex[:12]}"
    await client.post(
        f"/api/v1/admin/accounts/{user_id}/open",
        json={"initial_balance_cents": balance},
        headers=ADMIN,
    )
    return {"Authorization": f"Bearer {create_access_token(user_id, UserRole.USER)}"}


async def _balance(client: AsyncClient, headers: dict[str, str]) -> int:
    resp = await client.get("/api/v1/account/balance", headers=headers)
    return int(resp.json()["data"]["balance_cents"])


async def _create_trade(client: AsyncClient, headers: dict[str, str]) -> dict:
    resp = await client.post(
        "/api/v1/escrow/timed-trades",
        json={"amount_cents": STAKE, "timer_duration": 5, "symbol": "INFY", "side": "BUY"},
        headers=headers,
    )
    assert resp.status_code == 200
    return dict(resp.json()["data"])


async def _expire(hold_id: str) -> None:
    """Backdate a hold so the next listing treats it as expired."""
    async with async_session_factory() as session:
        await session.execute(
            text("UPDATE escrow_holds SET expires_at = NOW() - INTERVAL '1 second' WHERE id = :id"),
            {"id": hold_id},
        )
        await session.commit()


# ---------------------------------------------------------------------------
# Timed trades
# ---------------------------------------------------------------------------


class TestTimedTrade:
    async def test_create_holds_stake(self, client: AsyncClient) -> None:
        headers = await _open_user(client, 100000)
        hold = await _create_trade(client, headers)
        assert hold["status"] == "PENDING"
        assert hold["profit_rate"] == "80.00"
        assert hold["expires_at"] is not None
        assert await _balance(client, headers) == 100000 - STAKE

    async def test_operator_win_pays_profit(self, client: AsyncClient) -> None:
        headers = await _open_user(client, 100000)
        hold = await _create_trade(client, headers)
        resp = await client.post(
            f"/api/v1/admin/timed-trades/{hold['id']}/result",
            json={"outcome": "win"},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["status"] == "RESOLVED_BONUS"
        assert data["payout_amount_cents"] == 18000
        assert await _balance(client, headers) == 108000

        resp = await client.post(
            f"/api/v1/admin/timed-trades/{hold['id']}/result",
            json={"outcome": "lose"},
            headers=ADMIN,
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 5002

    async def test_disabled_or_unknown_timer(self, client: AsyncClient) -> None:
        headers = await _open_user(client, 100000)
        resp = await client.post(
            "/api/v1/escrow/timed-trades",
            json={"amount_cents": STAKE, "timer_duration": 7},
            headers=headers,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 5003
        assert await _balance(client, headers) == 100000

    async def test_listing_settles_expired_trade(self, client: AsyncClient) -> None:
        headers = await _open_user(client, 100000)
        hold = await _create_trade(client, headers)
        await _expire(hold["id"])

        items = (await client.get("/api/v1/escrow/timed-trades", headers=headers)).json()["data"]
        settled = next(i for i in items if i["id"] == hold["id"])
        assert settled["status"] != "PENDING"
        assert settled["resolved_by"] == "SYSTEM"
        assert settled["outcome"] in ("win", "lose", "draw")
        expected = 100000 - STAKE + settled["payout_amount_cents"]
        assert await _balance(client, headers) == expected

        # A second listing does not settle again
        again = (await client.get("/api/v1/escrow/timed-trades", headers=headers)).json()["data"]
        assert next(i for i in again if i["id"] == hold["id"])["status"] == settled["status"]
        assert await _balance(client, headers) == expected


# ---------------------------------------------------------------------------
# IPO offerings
# ---------------------------------------------------------------------------


class TestIpo:
    async def _create_ipo(self, client: AsyncClient) -> dict:
        resp = await client.post(
            "/api/v1/admin/ipos",
            json={
                "company_name": f"Acme {uuid.uuid4().hex[:6]}",
                "price_cents": 100,
                "lot_size": 10,
                "min_investment_cents": 1000,
                "status": "UPCOMING",
            },
            headers=ADMIN,
        )
        assert resp.status_code == 200
        return dict(resp.json()["data"])

    async def test_update_opens_applications_and_delete_waits_for_them(
        self, client: AsyncClient
    ) -> None:
        ipo = await self._create_ipo(client)
        resp = await client.put(
            f"/api/v1/admin/ipos/{ipo['id']}",
            json={
                "company_name": ipo["company_name"],
                "symbol": "acme",
                "price_cents": 200,
                "lot_size": 10,
                "min_investment_cents": 1000,
                "status": "LIVE",
            },
            headers=ADMIN,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["symbol"] == "ACME"

        headers = await _open_user(client, 50000)
        resp = await client.post(
            f"/api/v1/escrow/ipos/{ipo['id']}/applications", json={"lots": 2}, headers=headers
        )
        assert resp.status_code == 200
        hold_id = resp.json()["data"]["id"]
        assert await _balance(client, headers) == 46000

        resp = await client.delete(f"/api/v1/admin/ipos/{ipo['id']}", headers=ADMIN)
        assert resp.status_code == 422
        assert resp.json()["code"] == 5011

        await client.post(f"/api/v1/admin/ipo-applications/{hold_id}/reject", headers=ADMIN)
        assert await _balance(client, headers) == 50000

        resp = await client.delete(f"/api/v1/admin/ipos/{ipo['id']}", headers=ADMIN)
        assert resp.status_code == 200
        resp = await client.get(f"/api/v1/escrow/ipos/{ipo['id']}", headers=headers)
        assert resp.status_code == 404
