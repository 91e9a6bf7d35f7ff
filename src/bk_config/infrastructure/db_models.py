"""SQLAlchemy ORM models for bk_config.

These map to existing tables created by Alembic migrations.
DO NOT add/remove columns here without a corresponding migration.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, Boolean, DateTime, Integer, Numeric, SmallInteger, String, func
from sqlalchemy.orm import Mapped, mapped_column

from src.bk_common.database import Base


class TimerSettingORM(Base):
    __tablename__ = "timer_settings"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    label: Mapped[str] = mapped_column(String(50), nullable=False)
    is_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class TradingSettingsORM(Base):
    __tablename__ = "trading_settings"

    # Single-row table, id is always 1
    id: Mapped[int] = mapped_column(SmallInteger, primary_key=True, default=1)
    profit_rate: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False, default="INR")
    currency_symbol: Mapped[str] = mapped_column(String(8), nullable=False, default="₹")
    locale: Mapped[str] = mapped_column(String(16), nullable=False, default="en-IN")
    version: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
