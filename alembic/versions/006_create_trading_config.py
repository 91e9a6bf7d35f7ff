"""006: create timer_settings and trading_settings tables, seed defaults

Revision ID: 006
Revises: 005
Create Date: 2026-10-01
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE timer_settings (
            id                  VARCHAR(64)     PRIMARY KEY,
            duration_minutes    INT             NOT NULL,
            label               VARCHAR(50)     NOT NULL,
            is_enabled          BOOLEAN         NOT NULL DEFAULT TRUE,
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_timer_duration        UNIQUE (duration_minutes),
            CONSTRAINT ck_timer_duration_gt_0   CHECK (duration_minutes > 0)
        );
    """)

    # Singleton row; version is bumped on every configuration write
    op.execute("""
        CREATE TABLE trading_settings (
            id              SMALLINT        PRIMARY KEY DEFAULT 1,
            profit_rate     NUMERIC(6, 2),
            currency_code   VARCHAR(3)      NOT NULL DEFAULT 'INR',
            currency_symbol VARCHAR(8)      NOT NULL DEFAULT '₹',
            locale          VARCHAR(16)     NOT NULL DEFAULT 'en-IN',
            version         BIGINT          NOT NULL DEFAULT 0,
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_trading_settings_singleton CHECK (id = 1),
            CONSTRAINT ck_trading_settings_rate_gt_0 CHECK (profit_rate IS NULL OR profit_rate > 0)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_trading_settings_updated_at
            BEFORE UPDATE ON trading_settings
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)

    op.execute("""
        INSERT INTO timer_settings (id, duration_minutes, label)
        VALUES
            ('TIMER_1M',  1,  '1 min'),
            ('TIMER_5M',  5,  '5 min'),
            ('TIMER_10M', 10, '10 min'),
            ('TIMER_15M', 15, '15 min'),
            ('TIMER_60M', 60, '1 hour');
    """)
    op.execute("""
        INSERT INTO trading_settings (id, profit_rate, currency_code, currency_symbol, locale, version)
        VALUES (1, 80.00, 'INR', '₹', 'en-IN', 0);
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS trading_settings CASCADE;")
    op.execute("DROP TABLE IF EXISTS timer_settings CASCADE;")
