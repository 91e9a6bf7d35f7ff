"""Pydantic schemas for bk_config API."""

from decimal import Decimal

from pydantic import BaseModel, Field

from src.bk_config.domain.models import ConfigSnapshot, TimerSetting

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class TimerSettingRequest(BaseModel):
    duration_minutes: int = Field(..., gt=0, le=1440)
    label: str | None = Field(None, max_length=50, description="Defaults to '<n> min'")


class TimerToggleRequest(BaseModel):
    is_enabled: bool


class TradingSettingsUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their current value."""

    profit_rate: Decimal | None = Field(None, gt=0, le=1000, decimal_places=2)
    currency_code: str | None = Field(None, min_length=3, max_length=3)
    currency_symbol: str | None = Field(None, min_length=1, max_length=8)
    locale: str | None = Field(None, min_length=2, max_length=16)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class TimerSettingResponse(BaseModel):
    id: str
    duration_minutes: int
    label: str
    is_enabled: bool

    @classmethod
    def from_domain(cls, timer: TimerSetting) -> "TimerSettingResponse":
        return cls(
            id=timer.id,
            duration_minutes=timer.duration_minutes,
            label=timer.label,
            is_enabled=timer.is_enabled,
        )


class ConfigSnapshotResponse(BaseModel):
    version: int
    timers: list[TimerSettingResponse]
    profit_rate: str | None      # Decimal rendered as string, e.g. "80.00"
    currency_code: str
    currency_symbol: str
    locale: str
    loaded_at: str

    @classmethod
    def from_snapshot(
        cls, snapshot: ConfigSnapshot, enabled_only: bool = False
    ) -> "ConfigSnapshotResponse":
        timers = snapshot.enabled_timers() if enabled_only else list(snapshot.timers)
        rate = snapshot.trading.profit_rate
        return cls(
            version=snapshot.version,
            timers=[TimerSettingResponse.from_domain(t) for t in timers],
            profit_rate=str(rate) if rate is not None else None,
            currency_code=snapshot.trading.currency_code,
            currency_symbol=snapshot.trading.currency_symbol,
            locale=snapshot.trading.locale,
            loaded_at=snapshot.loaded_at.isoformat(),
        )
