"""Tests for the auto-expiring toast queue."""

import anyio
import pytest

from calnotify.application.use_cases.notifications import (
    ExpiryScheduler,
    NotificationStore,
    ToastQueue,
)
from fakes import make_notification, wait_until

pytestmark = pytest.mark.anyio


async def _started_store(backend, *notifications) -> NotificationStore:
    backend.seed(*notifications)
    store = NotificationStore(backend)
    await store.start("u1")
    return store


async def test_live_insert_becomes_a_toast_that_expires(backend):
    store = await _started_store(backend)
    queue = ToastQueue(store, lifetime=0.05)

    backend.live_insert(make_notification("n1"))
    await wait_until(lambda: "n1" in queue)

    assert store.unread_count == 1
    assert store.notifications[0].id == "n1"
    assert [item.id for item in queue.items] == ["n1"]

    await wait_until(lambda: len(queue) == 0)
    assert store.unread_count == 1
    assert [n.id for n in store.notifications] == ["n1"]

    queue.teardown()
    await store.teardown()


async def test_backlog_at_initialize_admits_three(backend):
    store = await _started_store(
        backend, *(make_notification(f"n{i}", minutes=i) for i in range(10))
    )
    queue = ToastQueue(store, lifetime=60)

    assert len(queue) == 3
    assert {item.id for item in queue.items} == {"n9", "n8", "n7"}

    # Suppressed backlog does not trickle out as toasts expire or close.
    queue.dismiss("n9")
    queue.derive()
    assert {item.id for item in queue.items} == {"n8", "n7"}

    queue.teardown()
    await store.teardown()


async def test_read_notifications_are_not_toasted(backend):
    store = await _started_store(
        backend, make_notification("a", is_read=True), make_notification("b", minutes=1)
    )
    queue = ToastQueue(store, lifetime=60)

    assert [item.id for item in queue.items] == ["b"]
    queue.teardown()
    await store.teardown()


async def test_dismissed_toast_is_never_readmitted(backend):
    store = await _started_store(backend)
    queue = ToastQueue(store, lifetime=60)
    backend.live_insert(make_notification("n1"))
    await wait_until(lambda: "n1" in queue)

    assert queue.dismiss("n1") is True
    assert queue.dismiss("n1") is False
    backend.live_insert(make_notification("n2", minutes=1))
    await wait_until(lambda: "n2" in queue)

    assert "n1" not in queue
    assert store.get("n1").is_read is False
    queue.teardown()
    await store.teardown()


async def test_expired_toast_is_never_readmitted(backend):
    store = await _started_store(backend)
    queue = ToastQueue(store, lifetime=0.01)
    backend.live_insert(make_notification("n1"))
    await wait_until(lambda: "n1" in queue)
    await wait_until(lambda: len(queue) == 0)

    await store.refresh()

    assert queue.derive() == []
    assert len(queue) == 0
    queue.teardown()
    await store.teardown()


async def test_visible_cap_evicts_the_oldest_toast(backend):
    store = await _started_store(backend)
    scheduler = ExpiryScheduler()
    queue = ToastQueue(store, scheduler=scheduler, lifetime=60)

    for index in range(4):
        backend.live_insert(make_notification(f"n{index}", minutes=index))
        await wait_until(lambda index=index: f"n{index}" in queue)

    assert [item.id for item in queue.items] == ["n1", "n2", "n3"]
    assert scheduler.deadline("n0") is None
    assert [key for key, _ in scheduler.pending()] == ["n1", "n2", "n3"]
    queue.teardown()
    await store.teardown()


async def test_teardown_cancels_timers_and_stops_following(backend):
    store = await _started_store(backend)
    scheduler = ExpiryScheduler()
    queue = ToastQueue(store, scheduler=scheduler, lifetime=0.02)
    seen: list[int] = []
    queue.add_listener(lambda q: seen.append(len(q)))
    backend.live_insert(make_notification("n1"))
    await wait_until(lambda: "n1" in queue)

    queue.teardown()
    assert scheduler.pending() == []

    backend.live_insert(make_notification("n2", minutes=1))
    await wait_until(lambda: store.get("n2") is not None)
    await anyio.sleep(0.05)

    assert len(queue) == 0
    assert seen[-1] == 0
    await store.teardown()
