"""Domain models for bk_config — timer and trading-rate configuration."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass
class TimerSetting:
    id: str
    duration_minutes: int
    label: str
    is_enabled: bool = True
    created_at: datetime | None = None


@dataclass
class TradingSettings:
    profit_rate: Decimal | None          # percent, e.g. Decimal("80.00"); None = not configured
    currency_code: str = "INR"
    currency_symbol: str = "₹"
    locale: str = "en-IN"
    version: int = 0                     # bumped by every configuration write
    updated_at: datetime | None = None


@dataclass(frozen=True)
class ConfigSnapshot:
    """Immutable view of the configuration at one version."""

    timers: tuple[TimerSetting, ...]
    trading: TradingSettings
    loaded_at: datetime

    @property
    def version(self) -> int:
        return self.trading.version

    def find_timer(self, duration_minutes: int) -> TimerSetting | None:
        for timer in self.timers:
            if timer.duration_minutes == duration_minutes:
                return timer
        return None

    def enabled_timers(self) -> list[TimerSetting]:
        return [t for t in self.timers if t.is_enabled]
