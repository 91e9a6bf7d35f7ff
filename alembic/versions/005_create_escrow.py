"""005: create escrow_holds and ipo_offerings tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE escrow_holds (
            id              VARCHAR(64)     PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            kind            VARCHAR(20)     NOT NULL,
            held_amount     BIGINT          NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            profit_rate     NUMERIC(6, 2),
            payout_amount   BIGINT          NOT NULL DEFAULT 0,
            profit_amount   BIGINT          NOT NULL DEFAULT 0,
            metadata        JSONB           NOT NULL DEFAULT '{}'::jsonb,
            expires_at      TIMESTAMPTZ,
            resolved_by     VARCHAR(64),
            resolved_at     TIMESTAMPTZ,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_escrow_kind CHECK (kind IN ('TIMED_TRADE', 'IPO_APPLICATION')),
            CONSTRAINT ck_escrow_status CHECK (
                status IN ('PENDING', 'RESOLVED_RETURN', 'RESOLVED_FORFEIT', 'RESOLVED_BONUS')
            ),
            CONSTRAINT ck_escrow_held_gt_0      CHECK (held_amount > 0),
            CONSTRAINT ck_escrow_payout_gte_0   CHECK (payout_amount >= 0),
            CONSTRAINT ck_escrow_profit_gte_0   CHECK (profit_amount >= 0),
            CONSTRAINT ck_escrow_resolved       CHECK ((status = 'PENDING') = (resolved_at IS NULL))
        );
    """)
    op.execute("CREATE INDEX idx_escrow_user_kind ON escrow_holds (user_id, kind, created_at DESC);")
    op.execute("""
        CREATE INDEX idx_escrow_pending_expiry
        ON escrow_holds (kind, expires_at)
        WHERE status = 'PENDING' AND expires_at IS NOT NULL;
    """)
    op.execute("COMMENT ON TABLE escrow_holds IS 'Funds held pending an outcome. Amounts in cents';")

    op.execute("""
        CREATE TABLE ipo_offerings (
            id              VARCHAR(64)     PRIMARY KEY,
            company_name    VARCHAR(200)    NOT NULL,
            symbol          VARCHAR(20),
            price           BIGINT          NOT NULL,
            lot_size        INT             NOT NULL,
            min_investment  BIGINT          NOT NULL DEFAULT 0,
            status          VARCHAR(20)     NOT NULL DEFAULT 'UPCOMING',
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_ipo_status        CHECK (status IN ('UPCOMING', 'LIVE', 'CLOSED')),
            CONSTRAINT ck_ipo_price_gt_0    CHECK (price > 0),
            CONSTRAINT ck_ipo_lot_size_gt_0 CHECK (lot_size > 0),
            CONSTRAINT ck_ipo_min_inv_gte_0 CHECK (min_investment >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_ipo_offerings_updated_at
            BEFORE UPDATE ON ipo_offerings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ipo_offerings CASCADE;")
    op.execute("DROP TABLE IF EXISTS escrow_holds CASCADE;")
