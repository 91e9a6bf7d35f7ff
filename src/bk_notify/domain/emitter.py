"""Notification emitter Protocol and the fire-and-forget call helper.

Notifications are one-way side effects emitted after a state change commits.
A failure is logged and discarded: it never retries or reverts the transition.
"""

import logging
from typing import Protocol

from src.bk_common.enums import NotificationCategory

logger = logging.getLogger(__name__)


class NotificationEmitterProtocol(Protocol):
    async def notify(
        self,
        user_id: str,
        category: NotificationCategory,
        title: str,
        message: str,
        link: str | None = None,
    ) -> None: ...


async def notify_quietly(
    emitter: NotificationEmitterProtocol,
    user_id: str,
    category: NotificationCategory,
    title: str,
    message: str,
    link: str | None = None,
) -> None:
    try:
        await emitter.notify(user_id, category, title, message, link)
    except Exception:
        logger.warning(
            "Notification dropped: user=%s category=%s title=%r",
            user_id,
            category.value,
            title,
            exc_info=True,
        )
