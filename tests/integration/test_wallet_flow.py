"""Integration tests for the wallet lifecycle (requires migrated PG).

Deposit and withdrawal requests, operator approve/reject, payment gateways
and balance adjustments, all through the HTTP API.

Each test opens a fresh account under a random user id to avoid state
pollution across tests.
"""

import uuid

import pytest
from httpx import AsyncClient

from src.bk_common.enums import UserRole
from src.bk_gateway.auth.jwt_handler import create_access_token

pytestmark = pytest.mark.asyncio(loop_scope="session")

ADMIN = {"Authorization": f"Bearer {create_access_token('ops-wallet', UserRole.ADMIN)}"}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _open_user(client: AsyncClient, balance: int = 0) -> tuple[str, dict[str, str]]:
    """Open an account for a fresh user id and return (user_id, auth headers)."""
    user_id = f"wallet_{uuid.uuid4().hex[:12]}"
    resp = await client.post(
        f"/api/v1/admin/accounts/{user_id}/open",
        json={"initial_balance_cents": balance},
        headers=ADMIN,
    )
    assert resp.status_code == 200
    token = create_access_token(user_id, UserRole.USER)
    return user_id, {"Authorization": f"Bearer {token}"}


async def _balance(client: AsyncClient, headers: dict[str, str]) -> int:
    resp = await client.get("/api/v1/account/balance", headers=headers)
    return int(resp.json()["data"]["balance_cents"])


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------


class TestDepositModeration:
    async def test_pending_deposit_then_approve_credits(self, client: AsyncClient) -> None:
        _, headers = await _open_user(client, 1000)
        resp = await client.post(
            "/api/v1/wallet/deposits",
            json={"amount_cents": 50000, "channel": "upi", "reference": "UTR-1"},
            headers=headers,
        )
        assert resp.status_code == 200
        txn = resp.json()["data"]
        assert txn["status"] == "PENDING"
        assert txn["resolved_at"] is None
        assert await _balance(client, headers) == 1000

        resp = await client.post(
            f"/api/v1/admin/wallet/transactions/{txn['id']}/approve", headers=ADMIN
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["status"] == "APPROVED"
        assert resp.json()["data"]["resolved_at"] is not None
        assert await _balance(client, headers) == 51000

    async def test_reject_leaves_balance_and_blocks_approve(self, client: AsyncClient) -> None:
        _, headers = await _open_user(client, 1000)
        txn_id = (
            await client.post(
                "/api/v1/wallet/deposits",
                json={"amount_cents": 50000, "channel": "upi"},
                headers=headers,
            )
        ).json()["data"]["id"]

        resp = await client.post(
            f"/api/v1/admin/wallet/transactions/{txn_id}/reject",
            json={"reason": "Proof unreadable"},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["rejection_reason"] == "Proof unreadable"

        resp = await client.post(
            f"/api/v1/admin/wallet/transactions/{txn_id}/approve", headers=ADMIN
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == 3002
        assert await _balance(client, headers) == 1000

    async def test_history_lists_newest_first(self, client: AsyncClient) -> None:
        _, headers = await _open_user(client)
        for amount in (100, 200):
            await client.post(
                "/api/v1/wallet/deposits",
                json={"amount_cents": amount, "channel": "upi"},
                headers=headers,
            )
        items = (
            await client.get("/api/v1/wallet/transactions", headers=headers)
        ).json()["data"]["items"]
        assert [i["amount_cents"] for i in items] == [200, 100]


class TestWithdrawalModeration:
    async def test_approve_debits_full_amount(self, client: AsyncClient) -> None:
        _, headers = await _open_user(client, 100000)
        resp = await client.post(
            "/api/v1/wallet/withdrawals",
            json={"amount_cents": 60000, "method_id": "WM_BANK", "account": "HDFC-0001"},
            headers=headers,
        )
        assert resp.status_code == 200
        txn = resp.json()["data"]
        assert txn["fee_cents"] == 500
        assert txn["final_amount_cents"] == 59500

        await client.post(f"/api/v1/admin/wallet/transactions/{txn['id']}/approve", headers=ADMIN)
        assert await _balance(client, headers) == 40000

    async def test_below_method_minimum(self, client: AsyncClient) -> None:
        _, headers = await _open_user(client, 100000)
        resp = await client.post(
            "/api/v1/wallet/withdrawals",
            json={"amount_cents": 100, "method_id": "WM_UPI", "account": "me@upi"},
            headers=headers,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3004


# ---------------------------------------------------------------------------
# Payment gateways
# ---------------------------------------------------------------------------


class TestPaymentGateways:
    async def test_gateway_deposit_and_deactivation(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/v1/admin/payment-gateways",
            json={
                "name": f"USDT {uuid.uuid4().hex[:6]}",
                "trc20_address": "TXyz1234567890abcdef",
                "min_deposit_cents": 1000,
                "confirmation_time": "10-30 minutes",
            },
            headers=ADMIN,
        )
        assert resp.status_code == 200
        gateway = resp.json()["data"]

        _, headers = await _open_user(client)
        resp = await client.post(
            "/api/v1/wallet/deposits",
            json={"amount_cents": 999, "gateway_id": gateway["id"]},
            headers=headers,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3004

        resp = await client.post(
            "/api/v1/wallet/deposits",
            json={"amount_cents": 2500, "gateway_id": gateway["id"]},
            headers=headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["channel"] == gateway["name"]
        assert resp.json()["data"]["gateway_id"] == gateway["id"]

        resp = await client.delete(
            f"/api/v1/admin/payment-gateways/{gateway['id']}", headers=ADMIN
        )
        assert resp.json()["data"]["is_active"] is False
        resp = await client.post(
            "/api/v1/wallet/deposits",
            json={"amount_cents": 2500, "gateway_id": gateway["id"]},
            headers=headers,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 3005


# ---------------------------------------------------------------------------
# Adjustments
# ---------------------------------------------------------------------------


class TestAdjust:
    async def test_add_then_deduct(self, client: AsyncClient) -> None:
        user_id, headers = await _open_user(client, 1000)
        resp = await client.post(
            f"/api/v1/admin/accounts/{user_id}/adjust",
            json={"amount_cents": 500, "direction": "add", "reason": "Goodwill"},
            headers=ADMIN,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["new_balance_cents"] == 1500

        resp = await client.post(
            f"/api/v1/admin/accounts/{user_id}/adjust",
            json={"amount_cents": 5000, "direction": "deduct"},
            headers=ADMIN,
        )
        assert resp.status_code == 422
        assert resp.json()["code"] == 2001
        assert await _balance(client, headers) == 1500

        items = (
            await client.get("/api/v1/wallet/transactions", headers=headers)
        ).json()["data"]["items"]
        assert items[0]["status"] == "APPROVED"
        assert items[0]["channel"] == "admin_adjustment"

    async def test_reopen_does_not_credit_again(self, client: AsyncClient) -> None:
        user_id, headers = await _open_user(client, 0)
        await client.post(
            f"/api/v1/admin/accounts/{user_id}/open",
            json={"initial_balance_cents": 100000},
            headers=ADMIN,
        )
        assert await _balance(client, headers) == 0
