"""TradingConfigRepository — ORM reads/writes over timer_settings / trading_settings.

The version bump and the pending-trade count are raw SQL: the first must be a
single atomic increment, the second reads escrow_holds metadata.
Nothing here commits.
"""

from sqlalchemy import delete, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_config.domain.models import TimerSetting, TradingSettings
from src.bk_config.infrastructure.db_models import TimerSettingORM, TradingSettingsORM
from src.bk_common.errors import InternalError

_SETTINGS_ROW_ID = 1

_BUMP_VERSION_SQL = text("""
    UPDATE trading_settings
    SET version = version + 1,
        updated_at = NOW()
    WHERE id = 1
    RETURNING version
""")

_COUNT_PENDING_TIMED_TRADES_SQL = text("""
    SELECT COUNT(*)
    FROM escrow_holds
    WHERE kind = 'TIMED_TRADE'
      AND status = 'PENDING'
      AND (metadata->>'timer_minutes')::INT = :duration_minutes
""")


def _orm_to_timer(orm: TimerSettingORM) -> TimerSetting:
    return TimerSetting(
        id=orm.id,
        duration_minutes=orm.duration_minutes,
        label=orm.label,
        is_enabled=orm.is_enabled,
        created_at=orm.created_at,
    )


def _orm_to_trading(orm: TradingSettingsORM) -> TradingSettings:
    return TradingSettings(
        profit_rate=orm.profit_rate,
        currency_code=orm.currency_code,
        currency_symbol=orm.currency_symbol,
        locale=orm.locale,
        version=orm.version,
        updated_at=orm.updated_at,
    )


class TradingConfigRepository:
    async def list_timers(self, db: AsyncSession) -> list[TimerSetting]:
        result = await db.execute(
            select(TimerSettingORM).order_by(TimerSettingORM.duration_minutes)
        )
        return [_orm_to_timer(o) for o in result.scalars().all()]

    async def get_timer(self, db: AsyncSession, timer_id: str) -> TimerSetting | None:
        orm = await db.get(TimerSettingORM, timer_id)
        return _orm_to_timer(orm) if orm else None

    async def get_timer_by_duration(
        self, db: AsyncSession, duration_minutes: int
    ) -> TimerSetting | None:
        result = await db.execute(
            select(TimerSettingORM).where(TimerSettingORM.duration_minutes == duration_minutes)
        )
        orm = result.scalar_one_or_none()
        return _orm_to_timer(orm) if orm else None

    async def insert_timer(self, db: AsyncSession, timer: TimerSetting) -> TimerSetting:
        orm = TimerSettingORM(
            id=timer.id,
            duration_minutes=timer.duration_minutes,
            label=timer.label,
            is_enabled=timer.is_enabled,
        )
        db.add(orm)
        await db.flush()  # Surface the UNIQUE(duration_minutes) violation now
        return _orm_to_timer(orm)

    async def set_timer_enabled(
        self, db: AsyncSession, timer_id: str, enabled: bool
    ) -> TimerSetting | None:
        orm = await db.get(TimerSettingORM, timer_id)
        if orm is None:
            return None
        orm.is_enabled = enabled
        await db.flush()
        return _orm_to_timer(orm)

    async def delete_timer(self, db: AsyncSession, timer_id: str) -> bool:
        result = await db.execute(delete(TimerSettingORM).where(TimerSettingORM.id == timer_id))
        return bool(result.rowcount)  # type: ignore[attr-defined]

    async def count_pending_timed_trades(
        self, db: AsyncSession, duration_minutes: int
    ) -> int:
        result = await db.execute(
            _COUNT_PENDING_TIMED_TRADES_SQL, {"duration_minutes": duration_minutes}
        )
        return int(result.scalar_one())

    async def get_trading_settings(self, db: AsyncSession) -> TradingSettings:
        # populate_existing: the version column is bumped by raw SQL behind the identity map
        result = await db.execute(
            select(TradingSettingsORM)
            .where(TradingSettingsORM.id == _SETTINGS_ROW_ID)
            .execution_options(populate_existing=True)
        )
        orm = result.scalar_one_or_none()
        if orm is None:
            # Unseeded database: no profit rate configured
            return TradingSettings(profit_rate=None)
        return _orm_to_trading(orm)

    async def save_trading_settings(
        self, db: AsyncSession, trading: TradingSettings
    ) -> TradingSettings:
        orm = await db.get(TradingSettingsORM, _SETTINGS_ROW_ID)
        if orm is None:
            orm = TradingSettingsORM(id=_SETTINGS_ROW_ID, version=trading.version)
            db.add(orm)
        orm.profit_rate = trading.profit_rate
        orm.currency_code = trading.currency_code
        orm.currency_symbol = trading.currency_symbol
        orm.locale = trading.locale
        await db.flush()
        return _orm_to_trading(orm)

    async def bump_version(self, db: AsyncSession) -> int:
        row = (await db.execute(_BUMP_VERSION_SQL)).fetchone()
        if row is None:
            raise InternalError("trading_settings row missing; run migrations")
        return int(row.version)
