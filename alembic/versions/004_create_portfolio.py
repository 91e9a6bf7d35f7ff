"""004: create positions, orders and realized_pnl tables

Revision ID: 004
Revises: 003
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE positions (
            id          BIGSERIAL       PRIMARY KEY,
            user_id     VARCHAR(64)     NOT NULL,
            symbol      VARCHAR(20)     NOT NULL,
            quantity    INT             NOT NULL,
            avg_price   NUMERIC(20, 6)  NOT NULL,
            invested    NUMERIC(24, 6)  NOT NULL,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_positions_user_symbol UNIQUE (user_id, symbol),
            CONSTRAINT ck_positions_quantity_gt_0 CHECK (quantity > 0),
            CONSTRAINT ck_positions_avg_price_gte_0 CHECK (avg_price >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_positions_updated_at
            BEFORE UPDATE ON positions
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE positions IS 'Open holdings; row deleted when quantity reaches zero';")

    op.execute("""
        CREATE TABLE orders (
            id              VARCHAR(64)     PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            symbol          VARCHAR(20)     NOT NULL,
            side            VARCHAR(4)      NOT NULL,
            quantity        INT             NOT NULL,
            price           BIGINT          NOT NULL,
            amount          BIGINT          NOT NULL,
            status          VARCHAR(20)     NOT NULL DEFAULT 'EXECUTED',
            realized_pnl    NUMERIC(24, 6),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_orders_side         CHECK (side IN ('BUY', 'SELL')),
            CONSTRAINT ck_orders_status       CHECK (status IN ('EXECUTED')),
            CONSTRAINT ck_orders_quantity_gt_0 CHECK (quantity > 0),
            CONSTRAINT ck_orders_price_gt_0   CHECK (price > 0),
            CONSTRAINT ck_orders_amount       CHECK (amount = price * quantity)
        );
    """)
    op.execute("CREATE INDEX idx_orders_user_time ON orders (user_id, created_at DESC);")

    op.execute("""
        CREATE TABLE realized_pnl (
            id          VARCHAR(64)     PRIMARY KEY,
            user_id     VARCHAR(64)     NOT NULL,
            symbol      VARCHAR(20)     NOT NULL,
            buy_price   NUMERIC(20, 6)  NOT NULL,
            sell_price  BIGINT          NOT NULL,
            quantity    INT             NOT NULL,
            pnl         NUMERIC(24, 6)  NOT NULL,
            order_id    VARCHAR(64)     NOT NULL REFERENCES orders(id),
            executed_at TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_realized_pnl_quantity_gt_0 CHECK (quantity > 0)
        );
    """)
    op.execute("CREATE INDEX idx_realized_pnl_user_time ON realized_pnl (user_id, executed_at DESC);")
    op.execute("COMMENT ON TABLE realized_pnl IS 'One row per sell execution, append-only';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS realized_pnl CASCADE;")
    op.execute("DROP TABLE IF EXISTS orders CASCADE;")
    op.execute("DROP TABLE IF EXISTS positions CASCADE;")
