"""008: create payment_gateways table

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE payment_gateways (
            id                  VARCHAR(64)     PRIMARY KEY,
            name                VARCHAR(50)     NOT NULL,
            trc20_address       VARCHAR(128)    NOT NULL,
            trc20_qr_code       VARCHAR(500),
            min_deposit         BIGINT          NOT NULL DEFAULT 0,
            confirmation_time   VARCHAR(100),
            instructions        VARCHAR(1000),
            is_active           BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_pg_min_deposit_gte_0 CHECK (min_deposit >= 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_payment_gateways_updated_at
            BEFORE UPDATE ON payment_gateways
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE payment_gateways IS 'Deposit destinations shown to users. min_deposit in cents';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS payment_gateways CASCADE;")
