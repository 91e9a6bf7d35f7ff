"""Escrow repositories — raw SQL over escrow_holds / ipo_offerings.

Resolution is one conditional UPDATE (WHERE status = 'PENDING'): of several
concurrent resolvers (operator, listing, background sweep) exactly one gets a
row back. Nothing here commits.
"""

import json
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.enums import HoldKind, HoldStatus, IpoStatus
from src.bk_common.errors import InternalError
from src.bk_escrow.domain.models import EscrowHold, IpoOffering

_HOLD_COLUMNS = """
    id, user_id, kind, held_amount, status, profit_rate, payout_amount, profit_amount,
    metadata, expires_at, resolved_by, resolved_at, created_at
"""

_INSERT_HOLD_SQL = text(f"""
    INSERT INTO escrow_holds
        (id, user_id, kind, held_amount, status, profit_rate, metadata, expires_at)
    VALUES
        (:id, :user_id, :kind, :held_amount, 'PENDING', :profit_rate,
         CAST(:metadata AS JSONB), :expires_at)
    RETURNING {_HOLD_COLUMNS}
""")

_GET_HOLD_SQL = text(f"SELECT {_HOLD_COLUMNS} FROM escrow_holds WHERE id = :id")

_RESOLVE_SQL = text(f"""
    UPDATE escrow_holds
    SET status = :status,
        payout_amount = :payout_amount,
        profit_amount = :profit_amount,
        resolved_by = :resolved_by,
        resolved_at = NOW()
    WHERE id = :id AND status = 'PENDING'
    RETURNING {_HOLD_COLUMNS}
""")

_LIST_USER_HOLDS_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM escrow_holds
    WHERE user_id = :user_id
      AND (CAST(:kind AS VARCHAR) IS NULL OR kind = :kind)
    ORDER BY created_at DESC, id DESC
""")

_LIST_HOLDS_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM escrow_holds
    WHERE (CAST(:kind AS VARCHAR) IS NULL OR kind = :kind)
      AND (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_LIST_EXPIRED_SQL = text(f"""
    SELECT {_HOLD_COLUMNS}
    FROM escrow_holds
    WHERE kind = :kind
      AND status = 'PENDING'
      AND expires_at IS NOT NULL
      AND expires_at <= :now
    ORDER BY expires_at ASC
    LIMIT :limit
""")

_IPO_COLUMNS = (
    "id, company_name, symbol, price, lot_size, min_investment, status, created_at, updated_at"
)

_INSERT_IPO_SQL = text(f"""
    INSERT INTO ipo_offerings (id, company_name, symbol, price, lot_size, min_investment, status)
    VALUES (:id, :company_name, :symbol, :price, :lot_size, :min_investment, :status)
    RETURNING {_IPO_COLUMNS}
""")

_GET_IPO_SQL = text(f"SELECT {_IPO_COLUMNS} FROM ipo_offerings WHERE id = :id")

_LIST_IPOS_SQL = text(f"""
    SELECT {_IPO_COLUMNS}
    FROM ipo_offerings
    WHERE (CAST(:status AS VARCHAR) IS NULL OR status = :status)
    ORDER BY created_at DESC
""")

_UPDATE_IPO_STATUS_SQL = text(f"""
    UPDATE ipo_offerings
    SET status = :status, updated_at = NOW()
    WHERE id = :id
    RETURNING {_IPO_COLUMNS}
""")

_UPDATE_IPO_SQL = text(f"""
    UPDATE ipo_offerings
    SET company_name = :company_name,
        symbol = :symbol,
        price = :price,
        lot_size = :lot_size,
        min_investment = :min_investment,
        status = :status
    WHERE id = :id
    RETURNING {_IPO_COLUMNS}
""")

_DELETE_IPO_SQL = text("""
    DELETE FROM ipo_offerings o
    WHERE o.id = :id
      AND NOT EXISTS (
          SELECT 1 FROM escrow_holds h
          WHERE h.kind = 'IPO_APPLICATION'
            AND h.status = 'PENDING'
            AND h.metadata ->> 'ipo_id' = o.id
      )
    RETURNING o.id
""")


def _parse_metadata(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        return dict(json.loads(value))
    return dict(value)


def _row_to_hold(row: Any) -> EscrowHold:
    return EscrowHold(
        id=row.id,
        user_id=row.user_id,
        kind=HoldKind(row.kind),
        held_amount=row.held_amount,
        status=HoldStatus(row.status),
        profit_rate=Decimal(row.profit_rate) if row.profit_rate is not None else None,
        payout_amount=row.payout_amount,
        profit_amount=row.profit_amount,
        metadata=_parse_metadata(row.metadata),
        expires_at=row.expires_at,
        resolved_by=row.resolved_by,
        resolved_at=row.resolved_at,
        created_at=row.created_at,
    )


def _row_to_ipo(row: Any) -> IpoOffering:
    return IpoOffering(
        id=row.id,
        company_name=row.company_name,
        symbol=row.symbol,
        price=row.price,
        lot_size=row.lot_size,
        min_investment=row.min_investment,
        status=IpoStatus(row.status),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _ipo_params(ipo: IpoOffering) -> dict[str, Any]:
    return {
        "id": ipo.id,
        "company_name": ipo.company_name,
        "symbol": ipo.symbol,
        "price": ipo.price,
        "lot_size": ipo.lot_size,
        "min_investment": ipo.min_investment,
        "status": ipo.status.value,
    }


class EscrowHoldRepository:
    async def insert_hold(self, db: AsyncSession, hold: EscrowHold) -> EscrowHold:
        row = (
            await db.execute(
                _INSERT_HOLD_SQL,
                {
                    "id": hold.id,
                    "user_id": hold.user_id,
                    "kind": hold.kind.value,
                    "held_amount": hold.held_amount,
                    "profit_rate": hold.profit_rate,
                    "metadata": json.dumps(hold.metadata),
                    "expires_at": hold.expires_at,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Escrow hold insert returned no rows")
        return _row_to_hold(row)

    async def get_hold(self, db: AsyncSession, hold_id: str) -> EscrowHold | None:
        row = (await db.execute(_GET_HOLD_SQL, {"id": hold_id})).fetchone()
        return _row_to_hold(row) if row else None

    async def resolve_pending(
        self,
        db: AsyncSession,
        hold_id: str,
        status: HoldStatus,
        payout_amount: int,
        profit_amount: int,
        resolved_by: str,
    ) -> EscrowHold | None:
        row = (
            await db.execute(
                _RESOLVE_SQL,
                {
                    "id": hold_id,
                    "status": status.value,
                    "payout_amount": payout_amount,
                    "profit_amount": profit_amount,
                    "resolved_by": resolved_by,
                },
            )
        ).fetchone()
        return _row_to_hold(row) if row else None

    async def list_user_holds(
        self, db: AsyncSession, user_id: str, kind: HoldKind | None
    ) -> list[EscrowHold]:
        rows = (
            await db.execute(
                _LIST_USER_HOLDS_SQL,
                {"user_id": user_id, "kind": kind.value if kind else None},
            )
        ).fetchall()
        return [_row_to_hold(r) for r in rows]

    async def list_holds(
        self,
        db: AsyncSession,
        kind: HoldKind | None,
        status: HoldStatus | None,
        limit: int,
    ) -> list[EscrowHold]:
        rows = (
            await db.execute(
                _LIST_HOLDS_SQL,
                {
                    "kind": kind.value if kind else None,
                    "status": status.value if status else None,
                    "limit": limit,
                },
            )
        ).fetchall()
        return [_row_to_hold(r) for r in rows]

    async def list_expired_pending(
        self, db: AsyncSession, kind: HoldKind, now: datetime, limit: int
    ) -> list[EscrowHold]:
        rows = (
            await db.execute(
                _LIST_EXPIRED_SQL, {"kind": kind.value, "now": now, "limit": limit}
            )
        ).fetchall()
        return [_row_to_hold(r) for r in rows]


class IpoRepository:
    async def insert_ipo(self, db: AsyncSession, ipo: IpoOffering) -> IpoOffering:
        row = (await db.execute(_INSERT_IPO_SQL, _ipo_params(ipo))).fetchone()
        if row is None:
            raise InternalError("IPO insert returned no rows")
        return _row_to_ipo(row)

    async def get_ipo(self, db: AsyncSession, ipo_id: str) -> IpoOffering | None:
        row = (await db.execute(_GET_IPO_SQL, {"id": ipo_id})).fetchone()
        return _row_to_ipo(row) if row else None

    async def list_ipos(
        self, db: AsyncSession, status: IpoStatus | None
    ) -> list[IpoOffering]:
        rows = (
            await db.execute(_LIST_IPOS_SQL, {"status": status.value if status else None})
        ).fetchall()
        return [_row_to_ipo(r) for r in rows]

    async def update_ipo_status(
        self, db: AsyncSession, ipo_id: str, status: IpoStatus
    ) -> IpoOffering | None:
        row = (
            await db.execute(_UPDATE_IPO_STATUS_SQL, {"id": ipo_id, "status": status.value})
        ).fetchone()
        return _row_to_ipo(row) if row else None

    async def update_ipo(self, db: AsyncSession, ipo: IpoOffering) -> IpoOffering | None:
        row = (await db.execute(_UPDATE_IPO_SQL, _ipo_params(ipo))).fetchone()
        return _row_to_ipo(row) if row else None

    async def delete_ipo(self, db: AsyncSession, ipo_id: str) -> bool:
        row = (await db.execute(_DELETE_IPO_SQL, {"id": ipo_id})).fetchone()
        return row is not None
