"""Tests for the expiry scheduler."""

import anyio
import pytest

from calnotify.application.use_cases.notifications import ExpiryScheduler

pytestmark = pytest.mark.anyio


async def test_callback_fires_once_after_the_deadline():
    scheduler = ExpiryScheduler()
    fired: list[str] = []

    deadline = scheduler.schedule("a", 0.01, fired.append)
    assert deadline > scheduler.now()
    assert scheduler.deadline("a") == deadline

    await anyio.sleep(0.05)
    assert fired == ["a"]
    assert scheduler.pending() == []


async def test_cancel_prevents_the_callback():
    scheduler = ExpiryScheduler()
    fired: list[str] = []
    scheduler.schedule("a", 0.01, fired.append)

    assert scheduler.cancel("a") is True
    assert scheduler.cancel("a") is False
    await anyio.sleep(0.03)
    assert fired == []


async def test_rescheduling_replaces_the_timer_and_pending_is_ordered():
    scheduler = ExpiryScheduler()
    fired: list[str] = []
    scheduler.schedule("late", 10, fired.append)
    scheduler.schedule("soon", 5, fired.append)
    scheduler.schedule("late", 1, fired.append)

    assert [key for key, _ in scheduler.pending()] == ["late", "soon"]
    scheduler.cancel_all()
    assert scheduler.pending() == []


async def test_failing_callback_does_not_leak():
    scheduler = ExpiryScheduler()

    def _boom(key: str) -> None:
        raise RuntimeError(key)

    scheduler.schedule("a", 0, _boom)
    await anyio.sleep(0.01)
    assert scheduler.deadline("a") is None
