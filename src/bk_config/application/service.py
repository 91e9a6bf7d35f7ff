"""TradingConfigService — versioned, cached timer and profit-rate configuration.

Readers get an immutable ConfigSnapshot. The snapshot is cached for
CONFIG_CACHE_TTL_SECONDS; reload() forces a fresh read. Every write bumps the
stored version in the same transaction and reloads the cache after commit,
so the writing process never serves a stale snapshot.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import timedelta
from decimal import Decimal
from typing import TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.bk_common.datetime_utils import Clock, utc_now
from src.bk_common.errors import (
    DuplicateTimerError,
    ProfitRateMissingError,
    TimerInUseError,
    TimerNotFoundError,
    TimerUnavailableError,
)
from src.bk_common.id_generator import TIMER_PREFIX, generate_id
from src.bk_config.application.schemas import TradingSettingsUpdateRequest
from src.bk_config.domain.models import ConfigSnapshot, TimerSetting, TradingSettings
from src.bk_config.domain.repository import TradingConfigRepositoryProtocol
from src.bk_config.infrastructure.persistence import TradingConfigRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TradingConfigService:
    def __init__(
        self,
        repo: TradingConfigRepositoryProtocol | None = None,
        ttl_seconds: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        self._repo: TradingConfigRepositoryProtocol = repo or TradingConfigRepository()
        ttl = settings.CONFIG_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._ttl = timedelta(seconds=ttl)
        self._clock: Clock = clock or utc_now
        self._snapshot: ConfigSnapshot | None = None

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def snapshot(self, db: AsyncSession) -> ConfigSnapshot:
        cached = self._snapshot
        if cached is not None and self._clock() - cached.loaded_at < self._ttl:
            return cached
        return await self.reload(db)

    async def reload(self, db: AsyncSession) -> ConfigSnapshot:
        timers = await self._repo.list_timers(db)
        trading = await self._repo.get_trading_settings(db)
        previous = self._snapshot
        snapshot = ConfigSnapshot(
            timers=tuple(timers), trading=trading, loaded_at=self._clock()
        )
        self._snapshot = snapshot
        if previous is None or previous.version != snapshot.version:
            logger.info(
                "Trading config loaded: version=%d timers=%d profit_rate=%s",
                snapshot.version, len(timers), trading.profit_rate,
            )
        return snapshot

    def invalidate(self) -> None:
        self._snapshot = None

    @staticmethod
    def require_timer(snapshot: ConfigSnapshot, duration_minutes: int) -> TimerSetting:
        timer = snapshot.find_timer(duration_minutes)
        if timer is None or not timer.is_enabled:
            raise TimerUnavailableError(duration_minutes)
        return timer

    @staticmethod
    def require_profit_rate(snapshot: ConfigSnapshot) -> Decimal:
        rate = snapshot.trading.profit_rate
        if rate is None or rate <= 0:
            raise ProfitRateMissingError()
        return rate

    # ------------------------------------------------------------------
    # Writes (operator only)
    # ------------------------------------------------------------------

    async def add_timer(
        self, db: AsyncSession, duration_minutes: int, label: str | None = None
    ) -> TimerSetting:
        if await self._repo.get_timer_by_duration(db, duration_minutes) is not None:
            raise DuplicateTimerError(duration_minutes)
        timer = TimerSetting(
            id=generate_id(TIMER_PREFIX),
            duration_minutes=duration_minutes,
            label=label or f"{duration_minutes} min",
        )

        async def _insert() -> TimerSetting:
            try:
                return await self._repo.insert_timer(db, timer)
            except IntegrityError:
                # Lost a race with a concurrent add of the same duration
                raise DuplicateTimerError(duration_minutes) from None

        return await self._write(db, _insert)

    async def set_timer_enabled(
        self, db: AsyncSession, timer_id: str, enabled: bool
    ) -> TimerSetting:
        async def _toggle() -> TimerSetting:
            updated = await self._repo.set_timer_enabled(db, timer_id, enabled)
            if updated is None:
                raise TimerNotFoundError(timer_id)
            return updated

        return await self._write(db, _toggle)

    async def delete_timer(self, db: AsyncSession, timer_id: str) -> None:
        timer = await self._repo.get_timer(db, timer_id)
        if timer is None:
            raise TimerNotFoundError(timer_id)
        if await self._repo.count_pending_timed_trades(db, timer.duration_minutes) > 0:
            raise TimerInUseError(timer_id)

        async def _delete() -> None:
            if not await self._repo.delete_timer(db, timer_id):
                raise TimerNotFoundError(timer_id)

        await self._write(db, _delete)

    async def update_trading_settings(
        self, db: AsyncSession, body: TradingSettingsUpdateRequest
    ) -> ConfigSnapshot:
        current = await self._repo.get_trading_settings(db)
        updated = TradingSettings(
            profit_rate=body.profit_rate if body.profit_rate is not None else current.profit_rate,
            currency_code=body.currency_code or current.currency_code,
            currency_symbol=body.currency_symbol or current.currency_symbol,
            locale=body.locale or current.locale,
            version=current.version,
        )

        async def _save() -> TradingSettings:
            return await self._repo.save_trading_settings(db, updated)

        await self._write(db, _save)
        return await self.snapshot(db)

    async def _write(self, db: AsyncSession, op: Callable[[], Awaitable[T]]) -> T:
        try:
            result = await op()
            version = await self._repo.bump_version(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Trading config written: version=%d", version)
        await self.reload(db)
        return result


_default_service: TradingConfigService | None = None


def get_trading_config_service() -> TradingConfigService:
    """Process-wide config service so every router shares one cache."""
    global _default_service  # noqa: PLW0603
    if _default_service is None:
        _default_service = TradingConfigService()
    return _default_service
