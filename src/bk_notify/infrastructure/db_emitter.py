"""DbNotificationEmitter — in-app inbox rows written in a session of their own.

Never joins the caller's transaction, so a failed insert cannot roll back the
balance mutation that triggered it.
"""

from collections.abc import Callable

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bk_common.enums import NotificationCategory
from src.bk_common.id_generator import NOTIFICATION_PREFIX, generate_id

_INSERT_NOTIFICATION_SQL = text("""
    INSERT INTO notifications (id, user_id, category, title, message, link, read)
    VALUES (:id, :user_id, :category, :title, :message, :link, FALSE)
""")


class DbNotificationEmitter:
    def __init__(self, session_factory: Callable[[], AsyncSession] | None = None) -> None:
        self._session_factory = session_factory

    def _factory(self) -> Callable[[], AsyncSession]:
        if self._session_factory is None:
            # Deferred so importing this module does not build the engine
            from src.bk_common.database import async_session_factory

            self._session_factory = async_session_factory
        return self._session_factory

    async def notify(
        self,
        user_id: str,
        category: NotificationCategory,
        title: str,
        message: str,
        link: str | None = None,
    ) -> None:
        async with self._factory()() as session:
            await session.execute(
                _INSERT_NOTIFICATION_SQL,
                {
                    "id": generate_id(NOTIFICATION_PREFIX),
                    "user_id": user_id,
                    "category": category.value,
                    "title": title,
                    "message": message,
                    "link": link,
                },
            )
            await session.commit()
