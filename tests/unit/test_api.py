"""HTTP-level tests: routing, auth, and the response envelope."""

import pytest
from httpx import AsyncClient

from src.bk_account.api import router as account_router
from src.bk_admin.api import router as admin_router
from src.bk_common.database import get_db_session
from src.bk_common.enums import UserRole
from src.bk_gateway.auth.dependencies import CurrentUser, get_current_user
from src.bk_gateway.auth.jwt_handler import create_access_token
from src.bk_wallet.api import router as wallet_router
from tests.fakes import World


@pytest.fixture
def wired(world: World, monkeypatch: pytest.MonkeyPatch) -> World:
    """Point the account, wallet and admin routers at the in-memory world."""
    from src.main import app

    async def fake_db():
        yield world.session()

    app.dependency_overrides[get_db_session] = fake_db
    monkeypatch.setattr(account_router, "_service", world.accounts)
    monkeypatch.setattr(admin_router, "_accounts", world.accounts)
    monkeypatch.setattr(wallet_router, "_service", world.wallet)
    monkeypatch.setattr(admin_router, "_wallet", world.wallet)
    return world


def _as(user_id: str, role: UserRole = UserRole.USER) -> None:
    from src.main import app

    app.dependency_overrides[get_current_user] = lambda: CurrentUser(user_id=user_id, role=role)


class TestPublicEndpoints:
    async def test_health(self, client: AsyncClient) -> None:
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"
        assert resp.headers["X-Request-ID"].startswith("req_")

    async def test_quote_unknown_symbol_uses_default(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/market/quotes/zzzz")
        body = resp.json()
        assert body["code"] == 0
        assert body["data"]["symbol"] == "ZZZZ"
        assert body["data"]["ltp_cents"] > 0


class TestAuth:
    async def test_missing_token(self, client: AsyncClient) -> None:
        resp = await client.get("/api/v1/account/balance")
        assert resp.status_code == 401

    async def test_bad_token(self, client: AsyncClient) -> None:
        resp = await client.get(
            "/api/v1/account/balance", headers={"Authorization": "Bearer nope"}
        )
        assert resp.status_code == 401

    async def test_user_token_on_admin_route(self, client: AsyncClient, wired: World) -> None:
        token = create_access_token("user-1", UserRole.USER)
        resp = await client.get(
            "/api/v1/admin/accounts/user-1/balance",
            headers={"Authorization": f"Bearer {token}"},
        )
        assert resp.status_code == 403
        body = resp.json()
        assert body["code"] == 1006
        assert body["data"] == {"kind": "FORBIDDEN"}


class TestAccountEndpoints:
    async def test_balance(self, client: AsyncClient, wired: World) -> None:
        wired.store.open("user-1", 250000)
        _as("user-1")
        resp = await client.get("/api/v1/account/balance")
        body = resp.json()
        assert resp.status_code == 200
        assert body["data"]["balance_cents"] == 250000
        assert body["data"]["balance_display"] == "₹2,500.00"
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_missing_account_envelope(self, client: AsyncClient, wired: World) -> None:
        _as("ghost")
        resp = await client.get("/api/v1/account/balance")
        body = resp.json()
        assert resp.status_code == 404
        assert body["code"] == 2002
        assert body["data"] == {"kind": "NOT_FOUND"}
        assert body["request_id"] == resp.headers["X-Request-ID"]

    async def test_operator_adjust(self, client: AsyncClient, wired: World) -> None:
        wired.store.open("user-1", 1000)
        _as("ops-1", UserRole.ADMIN)
        resp = await client.post(
            "/api/v1/admin/accounts/user-1/adjust",
            json={"amount_cents": 500, "direction": "add", "reason": "goodwill"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["new_balance_cents"] == 1500
        assert wired.store.balance("user-1") == 1500

    async def test_adjust_rejects_non_positive(self, client: AsyncClient, wired: World) -> None:
        wired.store.open("user-1", 1000)
        _as("ops-1", UserRole.ADMIN)
        resp = await client.post(
            "/api/v1/admin/accounts/user-1/adjust",
            json={"amount_cents": 0, "direction": "add", "reason": "x"},
        )
        assert resp.status_code == 422


class TestPaymentGatewayEndpoints:
    async def test_operator_adds_gateway_user_deposits_through_it(
        self, client: AsyncClient, wired: World
    ) -> None:
        wired.store.open("user-1", 0)
        _as("ops-1", UserRole.ADMIN)
        resp = await client.post(
            "/api/v1/admin/payment-gateways",
            json={"name": "USDT TRC20", "trc20_address": "TXyz123", "min_deposit_cents": 1000},
        )
        assert resp.status_code == 200
        gateway_id = resp.json()["data"]["id"]

        _as("user-1")
        listed = (await client.get("/api/v1/wallet/payment-gateways")).json()["data"]
        assert [g["id"] for g in listed] == [gateway_id]

        resp = await client.post(
            "/api/v1/wallet/deposits", json={"amount_cents": 2500, "gateway_id": gateway_id}
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["channel"] == "USDT TRC20"

    async def test_deposit_below_gateway_minimum(self, client: AsyncClient, wired: World) -> None:
        wired.store.open("user-1", 0)
        _as("ops-1", UserRole.ADMIN)
        resp = await client.post(
            "/api/v1/admin/payment-gateways",
            json={"name": "USDT TRC20", "trc20_address": "TXyz123", "min_deposit_cents": 1000},
        )
        gateway_id = resp.json()["data"]["id"]
        _as("user-1")
        resp = await client.post(
            "/api/v1/wallet/deposits", json={"amount_cents": 500, "gateway_id": gateway_id}
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3004

    async def test_deposit_needs_channel_or_gateway(
        self, client: AsyncClient, wired: World
    ) -> None:
        wired.store.open("user-1", 0)
        _as("user-1")
        resp = await client.post("/api/v1/wallet/deposits", json={"amount_cents": 500})
        assert resp.status_code == 422
        assert wired.store.wallet_txns == {}
