"""Tests for the fire-and-forget notification helper."""

import logging

import pytest

from src.bk_common.enums import NotificationCategory
from src.bk_notify.domain.emitter import notify_quietly
from tests.fakes import FailingNotifier, RecordingNotifier


class TestNotifyQuietly:
    async def test_delivers(self) -> None:
        notifier = RecordingNotifier()
        await notify_quietly(
            notifier, "u1", NotificationCategory.WALLET_UPDATES, "Deposit approved", "ok"
        )
        assert notifier.titles == ["Deposit approved"]

    async def test_failure_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        notifier = FailingNotifier()
        with caplog.at_level(logging.WARNING, logger="src.bk_notify.domain.emitter"):
            await notify_quietly(
                notifier, "u1", NotificationCategory.SYSTEM_ALERTS, "Balance adjusted", "x"
            )
        assert notifier.calls == 1
        assert "Notification dropped" in caplog.text
