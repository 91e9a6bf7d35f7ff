"""003: create wallet_transactions and withdrawal_methods tables

Revision ID: 003
Revises: 002
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE withdrawal_methods (
            id              VARCHAR(64)     PRIMARY KEY,
            name            VARCHAR(100)    NOT NULL,
            type            VARCHAR(50)     NOT NULL,
            min_amount      BIGINT          NOT NULL DEFAULT 0,
            fee             BIGINT          NOT NULL DEFAULT 0,
            processing_time VARCHAR(100),
            is_active       BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wm_min_amount_gte_0 CHECK (min_amount >= 0),
            CONSTRAINT ck_wm_fee_gte_0        CHECK (fee >= 0)
        );
    """)

    # Resolved audit rows written on escrow forfeit carry amount 0
    op.execute("""
        CREATE TABLE wallet_transactions (
            seq                 BIGSERIAL       NOT NULL,
            id                  VARCHAR(64)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            kind                VARCHAR(20)     NOT NULL,
            amount              BIGINT          NOT NULL,
            fee                 BIGINT          NOT NULL DEFAULT 0,
            status              VARCHAR(20)     NOT NULL DEFAULT 'PENDING',
            channel             VARCHAR(50),
            method_id           VARCHAR(64)     REFERENCES withdrawal_methods(id),
            gateway_id          VARCHAR(64),
            destination_account VARCHAR(200),
            details             JSONB           NOT NULL DEFAULT '{}'::jsonb,
            reference_id        VARCHAR(64),
            description         VARCHAR(500),
            rejection_reason    VARCHAR(500),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            resolved_at         TIMESTAMPTZ,
            CONSTRAINT uq_wallet_txn_seq          UNIQUE (seq),
            CONSTRAINT ck_wallet_txn_kind         CHECK (kind IN ('DEPOSIT', 'WITHDRAWAL')),
            CONSTRAINT ck_wallet_txn_status       CHECK (status IN ('PENDING', 'APPROVED', 'REJECTED')),
            CONSTRAINT ck_wallet_txn_amount_gte_0 CHECK (amount >= 0),
            CONSTRAINT ck_wallet_txn_pending_gt_0 CHECK (status <> 'PENDING' OR amount > 0),
            CONSTRAINT ck_wallet_txn_fee_gte_0    CHECK (fee >= 0),
            CONSTRAINT ck_wallet_txn_resolved     CHECK ((status = 'PENDING') = (resolved_at IS NULL))
        );
    """)
    op.execute("CREATE INDEX idx_wallet_txn_user ON wallet_transactions (user_id, seq DESC);")
    op.execute("""
        CREATE INDEX idx_wallet_txn_pending
        ON wallet_transactions (seq)
        WHERE status = 'PENDING';
    """)
    op.execute("COMMENT ON TABLE wallet_transactions IS 'Deposit/withdrawal requests and audit rows. Amounts in cents';")

    op.execute("""
        INSERT INTO withdrawal_methods (id, name, type, min_amount, fee, processing_time)
        VALUES
            ('WM_UPI',  'UPI',           'upi',  10000, 0,   'Within 24 hours'),
            ('WM_BANK', 'Bank Transfer', 'bank', 50000, 500, '1-3 business days');
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
    op.execute("DROP TABLE IF EXISTS withdrawal_methods CASCADE;")
