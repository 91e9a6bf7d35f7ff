"""Background expiry sweep for timed trades.

Every ESCROW_SWEEP_INTERVAL_SECONDS one process (whichever holds the Redis
lock) settles up to ESCROW_SWEEP_BATCH_SIZE expired PENDING timed trades.
The pull-based settlement in EscrowService.list_user_timed_trades still covers
anything the sweep has not reached.
"""

import asyncio
import logging
import uuid
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import settings
from src.bk_escrow.application.service import EscrowService

logger = logging.getLogger(__name__)

LOCK_KEY = "bk:escrow:sweep_lock"

# Delete the lock only if we still own it
_RELEASE_LOCK_SCRIPT = """
if redis.call('get', KEYS[1]) == ARGV[1] then
    return redis.call('del', KEYS[1])
end
return 0
"""


class EscrowExpirySweeper:
    def __init__(
        self,
        service: EscrowService,
        session_factory: async_sessionmaker[AsyncSession],
        redis_getter: Callable[[], Awaitable[aioredis.Redis]],
        interval_seconds: float | None = None,
        batch_size: int | None = None,
        lock_ttl_seconds: int | None = None,
    ) -> None:
        self._service = service
        self._session_factory = session_factory
        self._redis_getter = redis_getter
        self._interval = (
            settings.ESCROW_SWEEP_INTERVAL_SECONDS if interval_seconds is None else interval_seconds
        )
        self._batch_size = settings.ESCROW_SWEEP_BATCH_SIZE if batch_size is None else batch_size
        self._lock_ttl = (
            settings.ESCROW_SWEEP_LOCK_TTL_SECONDS if lock_ttl_seconds is None else lock_ttl_seconds
        )
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="escrow-expiry-sweep")
        logger.info(
            "Escrow sweep started: interval=%ss batch=%d", self._interval, self._batch_size
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Escrow sweep stopped")

    async def run_once(self) -> int:
        """One sweep iteration. Returns the number of holds settled (0 if another process holds the lock)."""
        redis = await self._redis_getter()
        token = uuid.uuid4().hex
        acquired = await redis.set(LOCK_KEY, token, nx=True, ex=self._lock_ttl)
        if not acquired:
            logger.debug("Escrow sweep skipped: lock held elsewhere")
            return 0
        try:
            async with self._session_factory() as db:
                settled = await self._service.sweep_expired(db, self._batch_size)
        finally:
            await redis.eval(_RELEASE_LOCK_SCRIPT, 1, LOCK_KEY, token)
        if settled:
            logger.info("Escrow sweep settled %d expired timed trades", settled)
        return settled

    async def _loop(self) -> None:
        while True:
            try:
                settled = await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Escrow sweep iteration failed")
                settled = 0
            # A full batch means more may be waiting
            if settled < self._batch_size:
                await asyncio.sleep(self._interval)
