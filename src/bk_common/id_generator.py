"""Business ids: type prefix + 63-bit snowflake, e.g. "HOLD7151234567890123456".

Wallet transactions, holds, orders, realized P&L rows, withdrawal methods,
payment gateways, timers, IPO offerings and notifications all use these. Ids
sort by creation time within one prefix, and the timestamp can be read back
with `id_timestamp`.
"""

import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime

from config.settings import settings

TXN_PREFIX = "TXN"
HOLD_PREFIX = "HOLD"
ORDER_PREFIX = "ORD"
PNL_PREFIX = "PNL"
METHOD_PREFIX = "WM"
GATEWAY_PREFIX = "PG"
TIMER_PREFIX = "TIMER"
IPO_PREFIX = "IPO"
NOTIFICATION_PREFIX = "NOTIF"

_EPOCH_MS = 1_735_689_600_000  # 2025-01-01T00:00:00Z
_MACHINE_BITS = 10
_SEQUENCE_BITS = 12
_MAX_MACHINE = (1 << _MACHINE_BITS) - 1
_MAX_SEQUENCE = (1 << _SEQUENCE_BITS) - 1


def _wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class SnowflakeIdGenerator:
    """41-bit ms timestamp | 10-bit machine id | 12-bit per-ms sequence."""

    def __init__(self, machine_id: int = 0, clock_ms: Callable[[], int] = _wall_clock_ms) -> None:
        if not 0 <= machine_id <= _MAX_MACHINE:
            raise ValueError(f"machine_id must be 0-{_MAX_MACHINE}")
        self._machine_id = machine_id
        self._clock_ms = clock_ms
        self._lock = threading.Lock()
        self._last_ms = -1
        self._sequence = 0

    def next_id(self) -> int:
        with self._lock:
            now = max(self._clock_ms(), self._last_ms)  # never step backwards
            if now == self._last_ms:
                self._sequence = (self._sequence + 1) & _MAX_SEQUENCE
                if self._sequence == 0:
                    while now <= self._last_ms:
                        now = self._clock_ms()
            else:
                self._sequence = 0
            self._last_ms = now
            return (
                (now - _EPOCH_MS) << (_MACHINE_BITS + _SEQUENCE_BITS)
                | self._machine_id << _SEQUENCE_BITS
                | self._sequence
            )


def id_timestamp(business_id: str) -> datetime:
    """Creation time encoded in a prefixed id (millisecond precision)."""
    digits = business_id.lstrip("ABCDEFGHIJKLMNOPQRSTUVWXYZ")
    if not digits.isdigit():
        raise ValueError(f"Not a generated id: {business_id!r}")
    ms = (int(digits) >> (_MACHINE_BITS + _SEQUENCE_BITS)) + _EPOCH_MS
    return datetime.fromtimestamp(ms / 1000, tz=UTC)


_default_generator = SnowflakeIdGenerator(settings.ID_MACHINE_ID)


def generate_id(prefix: str = "") -> str:
    return f"{prefix}{_default_generator.next_id()}"
