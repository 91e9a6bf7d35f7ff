"""Wallet repositories — raw SQL over wallet_transactions / withdrawal_methods /
payment_gateways.

The PENDING -> terminal transition is a single conditional UPDATE, so two
operators racing on the same request cannot both win. Nothing here commits.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.enums import WalletTxnKind, WalletTxnStatus
from src.bk_common.errors import InternalError
from src.bk_wallet.domain.models import PaymentGateway, WalletTransaction, WithdrawalMethod

_TXN_COLUMNS = """
    seq, id, user_id, kind, amount, fee, status, channel, method_id, gateway_id,
    destination_account, details, reference_id, description, rejection_reason,
    created_at, resolved_at
"""

_INSERT_TXN_SQL = text(f"""
    INSERT INTO wallet_transactions
        (id, user_id, kind, amount, fee, status, channel, method_id, gateway_id,
         destination_account, details, reference_id, description, resolved_at)
    VALUES
        (:id, :user_id, :kind, :amount, :fee, :status, :channel, :method_id, :gateway_id,
         :destination_account, CAST(:details AS JSONB), :reference_id, :description,
         CASE WHEN CAST(:status AS VARCHAR) = 'PENDING' THEN NULL ELSE NOW() END)
    RETURNING {_TXN_COLUMNS}
""")

_GET_TXN_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM wallet_transactions
    WHERE id = :id
""")

_TRANSITION_SQL = text(f"""
    UPDATE wallet_transactions
    SET status = :new_status,
        rejection_reason = :rejection_reason,
        resolved_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING {_TXN_COLUMNS}
""")

_LIST_BY_USER_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_seq AS BIGINT) IS NULL OR seq < :cursor_seq)
    ORDER BY seq DESC
    LIMIT :limit
""")

_LIST_BY_STATUS_SQL = text(f"""
    SELECT {_TXN_COLUMNS}
    FROM wallet_transactions
    WHERE status = :status
      AND (CAST(:kind AS VARCHAR) IS NULL OR kind = :kind)
    ORDER BY seq ASC
""")

_METHOD_COLUMNS = "id, name, type, min_amount, fee, processing_time, is_active, created_at"

_GET_METHOD_SQL = text(f"SELECT {_METHOD_COLUMNS} FROM withdrawal_methods WHERE id = :id")

_LIST_METHODS_SQL = text(f"""
    SELECT {_METHOD_COLUMNS}
    FROM withdrawal_methods
    WHERE (:active_only = FALSE OR is_active = TRUE)
    ORDER BY name
""")

_INSERT_METHOD_SQL = text(f"""
    INSERT INTO withdrawal_methods (id, name, type, min_amount, fee, processing_time, is_active)
    VALUES (:id, :name, :type, :min_amount, :fee, :processing_time, :is_active)
    RETURNING {_METHOD_COLUMNS}
""")

_UPDATE_METHOD_SQL = text(f"""
    UPDATE withdrawal_methods
    SET name = :name,
        type = :type,
        min_amount = :min_amount,
        fee = :fee,
        processing_time = :processing_time,
        is_active = :is_active
    WHERE id = :id
    RETURNING {_METHOD_COLUMNS}
""")

_GATEWAY_COLUMNS = """
    id, name, trc20_address, trc20_qr_code, min_deposit, confirmation_time,
    instructions, is_active, created_at, updated_at
"""

_GET_GATEWAY_SQL = text(f"SELECT {_GATEWAY_COLUMNS} FROM payment_gateways WHERE id = :id")

_LIST_GATEWAYS_SQL = text(f"""
    SELECT {_GATEWAY_COLUMNS}
    FROM payment_gateways
    WHERE (:active_only = FALSE OR is_active = TRUE)
    ORDER BY name
""")

_INSERT_GATEWAY_SQL = text(f"""
    INSERT INTO payment_gateways
        (id, name, trc20_address, trc20_qr_code, min_deposit, confirmation_time,
         instructions, is_active)
    VALUES
        (:id, :name, :trc20_address, :trc20_qr_code, :min_deposit, :confirmation_time,
         :instructions, :is_active)
    RETURNING {_GATEWAY_COLUMNS}
""")

_UPDATE_GATEWAY_SQL = text(f"""
    UPDATE payment_gateways
    SET name = :name,
        trc20_address = :trc20_address,
        trc20_qr_code = :trc20_qr_code,
        min_deposit = :min_deposit,
        confirmation_time = :confirmation_time,
        instructions = :instructions,
        is_active = :is_active
    WHERE id = :id
    RETURNING {_GATEWAY_COLUMNS}
""")


def _parse_details(value: Any) -> dict[str, str]:
    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        return dict(json.loads(value))
    return dict(value)


def _row_to_txn(row: Any) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,
        user_id=row.user_id,
        kind=WalletTxnKind(row.kind),
        amount=row.amount,
        status=WalletTxnStatus(row.status),
        channel=row.channel,
        fee=row.fee,
        method_id=row.method_id,
        gateway_id=row.gateway_id,
        destination_account=row.destination_account,
        details=_parse_details(row.details),
        reference_id=row.reference_id,
        description=row.description,
        rejection_reason=row.rejection_reason,
        seq=row.seq,
        created_at=row.created_at,
        resolved_at=row.resolved_at,
    )


def _row_to_method(row: Any) -> WithdrawalMethod:
    return WithdrawalMethod(
        id=row.id,
        name=row.name,
        type=row.type,
        min_amount=row.min_amount,
        fee=row.fee,
        processing_time=row.processing_time,
        is_active=row.is_active,
        created_at=row.created_at,
    )


def _method_params(method: WithdrawalMethod) -> dict[str, Any]:
    return {
        "id": method.id,
        "name": method.name,
        "type": method.type,
        "min_amount": method.min_amount,
        "fee": method.fee,
        "processing_time": method.processing_time,
        "is_active": method.is_active,
    }


def _row_to_gateway(row: Any) -> PaymentGateway:
    return PaymentGateway(
        id=row.id,
        name=row.name,
        trc20_address=row.trc20_address,
        trc20_qr_code=row.trc20_qr_code,
        min_deposit=row.min_deposit,
        confirmation_time=row.confirmation_time,
        instructions=row.instructions,
        is_active=row.is_active,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _gateway_params(gateway: PaymentGateway) -> dict[str, Any]:
    return {
        "id": gateway.id,
        "name": gateway.name,
        "trc20_address": gateway.trc20_address,
        "trc20_qr_code": gateway.trc20_qr_code,
        "min_deposit": gateway.min_deposit,
        "confirmation_time": gateway.confirmation_time,
        "instructions": gateway.instructions,
        "is_active": gateway.is_active,
    }


class WalletTransactionRepository:
    async def insert_transaction(
        self, db: AsyncSession, txn: WalletTransaction
    ) -> WalletTransaction:
        result = await db.execute(
            _INSERT_TXN_SQL,
            {
                "id": txn.id,
                "user_id": txn.user_id,
                "kind": txn.kind.value,
                "amount": txn.amount,
                "fee": txn.fee,
                "status": txn.status.value,
                "channel": txn.channel,
                "method_id": txn.method_id,
                "gateway_id": txn.gateway_id,
                "destination_account": txn.destination_account,
                "details": json.dumps(txn.details),
                "reference_id": txn.reference_id,
                "description": txn.description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Wallet transaction insert returned no rows")
        return _row_to_txn(row)

    async def get_transaction(
        self, db: AsyncSession, txn_id: str
    ) -> WalletTransaction | None:
        row = (await db.execute(_GET_TXN_SQL, {"id": txn_id})).fetchone()
        return _row_to_txn(row) if row else None

    async def transition_from_pending(
        self,
        db: AsyncSession,
        txn_id: str,
        new_status: WalletTxnStatus,
        rejection_reason: str | None,
    ) -> WalletTransaction | None:
        row = (
            await db.execute(
                _TRANSITION_SQL,
                {
                    "id": txn_id,
                    "new_status": new_status.value,
                    "rejection_reason": rejection_reason,
                },
            )
        ).fetchone()
        return _row_to_txn(row) if row else None

    async def list_by_user(
        self, db: AsyncSession, user_id: str, cursor_seq: int | None, limit: int
    ) -> list[WalletTransaction]:
        rows = (
            await db.execute(
                _LIST_BY_USER_SQL,
                {"user_id": user_id, "cursor_seq": cursor_seq, "limit": limit},
            )
        ).fetchall()
        return [_row_to_txn(r) for r in rows]

    async def list_by_status(
        self,
        db: AsyncSession,
        status: WalletTxnStatus,
        kind: WalletTxnKind | None,
    ) -> list[WalletTransaction]:
        rows = (
            await db.execute(
                _LIST_BY_STATUS_SQL,
                {"status": status.value, "kind": kind.value if kind else None},
            )
        ).fetchall()
        return [_row_to_txn(r) for r in rows]


class WithdrawalMethodRepository:
    async def get_method(
        self, db: AsyncSession, method_id: str
    ) -> WithdrawalMethod | None:
        row = (await db.execute(_GET_METHOD_SQL, {"id": method_id})).fetchone()
        return _row_to_method(row) if row else None

    async def list_methods(
        self, db: AsyncSession, active_only: bool
    ) -> list[WithdrawalMethod]:
        rows = (await db.execute(_LIST_METHODS_SQL, {"active_only": active_only})).fetchall()
        return [_row_to_method(r) for r in rows]

    async def insert_method(
        self, db: AsyncSession, method: WithdrawalMethod
    ) -> WithdrawalMethod:
        row = (await db.execute(_INSERT_METHOD_SQL, _method_params(method))).fetchone()
        if row is None:
            raise InternalError("Withdrawal method insert returned no rows")
        return _row_to_method(row)

    async def update_method(
        self, db: AsyncSession, method: WithdrawalMethod
    ) -> WithdrawalMethod | None:
        row = (await db.execute(_UPDATE_METHOD_SQL, _method_params(method))).fetchone()
        return _row_to_method(row) if row else None


class PaymentGatewayRepository:
    async def get_gateway(
        self, db: AsyncSession, gateway_id: str
    ) -> PaymentGateway | None:
        row = (await db.execute(_GET_GATEWAY_SQL, {"id": gateway_id})).fetchone()
        return _row_to_gateway(row) if row else None

    async def list_gateways(
        self, db: AsyncSession, active_only: bool
    ) -> list[PaymentGateway]:
        rows = (await db.execute(_LIST_GATEWAYS_SQL, {"active_only": active_only})).fetchall()
        return [_row_to_gateway(r) for r in rows]

    async def insert_gateway(
        self, db: AsyncSession, gateway: PaymentGateway
    ) -> PaymentGateway:
        row = (await db.execute(_INSERT_GATEWAY_SQL, _gateway_params(gateway))).fetchone()
        if row is None:
            raise InternalError("Payment gateway insert returned no rows")
        return _row_to_gateway(row)

    async def update_gateway(
        self, db: AsyncSession, gateway: PaymentGateway
    ) -> PaymentGateway | None:
        row = (await db.execute(_UPDATE_GATEWAY_SQL, _gateway_params(gateway))).fetchone()
        return _row_to_gateway(row) if row else None
