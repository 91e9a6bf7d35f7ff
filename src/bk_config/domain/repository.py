"""Repository Protocol for timer / trading configuration."""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_config.domain.models import TimerSetting, TradingSettings


class TradingConfigRepositoryProtocol(Protocol):
    async def list_timers(self, db: AsyncSession) -> list[TimerSetting]: ...

    async def get_timer(self, db: AsyncSession, timer_id: str) -> TimerSetting | None: ...

    async def get_timer_by_duration(
        self, db: AsyncSession, duration_minutes: int
    ) -> TimerSetting | None: ...

    async def insert_timer(self, db: AsyncSession, timer: TimerSetting) -> TimerSetting: ...

    async def set_timer_enabled(
        self, db: AsyncSession, timer_id: str, enabled: bool
    ) -> TimerSetting | None: ...

    async def delete_timer(self, db: AsyncSession, timer_id: str) -> bool: ...

    async def count_pending_timed_trades(
        self, db: AsyncSession, duration_minutes: int
    ) -> int: ...

    async def get_trading_settings(self, db: AsyncSession) -> TradingSettings: ...

    async def save_trading_settings(
        self, db: AsyncSession, trading: TradingSettings
    ) -> TradingSettings:
        """Persist profit rate / currency fields. Does not bump the version."""
        ...

    async def bump_version(self, db: AsyncSession) -> int: ...
