"""Tests for the client-side notification cache."""

import random

import anyio
import pytest

from calnotify.application.use_cases.notifications import (
    NotificationStore,
    StoreState,
    should_alert,
)
from calnotify.domain.entities import (
    DEFAULT_NOTIFICATION_SETTINGS,
    NotificationType,
    PermissionState,
    reconcile,
)
from fakes import make_notification, wait_until

pytestmark = pytest.mark.anyio


def _assert_consistent(store: NotificationStore) -> None:
    expected = sum(1 for n in store.notifications if not n.is_read)
    assert store.unread_count == expected
    assert store.unread_count >= 0


async def test_initialize_loads_newest_first_and_counts_unread(backend):
    backend.seed(
        make_notification("a", minutes=1),
        make_notification("b", minutes=3, is_read=True),
        make_notification("c", minutes=2),
    )
    store = NotificationStore(backend)
    states = []
    store.add_listener(lambda s: states.append(s.state))

    await store.initialize("u1")

    assert [n.id for n in store.notifications] == ["b", "c", "a"]
    assert store.unread_count == 2
    assert store.state is StoreState.READY
    assert store.loading is False
    assert states[0] is StoreState.LOADING
    assert states[-1] is StoreState.READY


async def test_initialize_caps_the_window_at_fifty(backend):
    backend.seed(*(make_notification(f"n{i}", minutes=i) for i in range(60)))
    store = NotificationStore(backend)

    await store.initialize("u1")

    assert len(store.notifications) == 50
    assert store.notifications[0].id == "n59"
    assert ("list", "u1", 50) in backend.calls
    _assert_consistent(store)


async def test_fetch_failure_leaves_an_empty_ready_store(backend):
    backend.seed(make_notification("a"))
    backend.failing.add("list")
    store = NotificationStore(backend)

    await store.initialize("u1")

    assert store.notifications == []
    assert store.unread_count == 0
    assert store.loading is False
    assert store.last_error is not None


async def test_live_insert_is_prepended_and_counted(backend):
    backend.seed(make_notification("old", minutes=5))
    store = NotificationStore(backend)
    await store.start("u1")

    backend.live_insert(make_notification("n1", minutes=1))
    await wait_until(lambda: store.get("n1") is not None)

    # Arrival order wins over created_at.
    assert [n.id for n in store.notifications] == ["n1", "old"]
    assert store.unread_count == 2
    await store.teardown()


async def test_duplicate_and_foreign_inserts_are_ignored(backend):
    store = NotificationStore(backend)
    await store.start("u1")
    subscription = backend.active_subscriptions()[0]

    subscription.push(make_notification("n1"))
    subscription.push(make_notification("n1"))
    subscription.push(make_notification("x", user_id="u2"))
    subscription.push(make_notification("u", minutes=1), event_type="UPDATE")
    subscription.push(make_notification("n2"))
    await wait_until(lambda: store.get("n2") is not None)

    assert [n.id for n in store.notifications] == ["n2", "n1"]
    assert store.unread_count == 2
    await store.teardown()


async def test_mark_as_read_is_optimistic_and_idempotent(backend):
    backend.seed(make_notification("n1"))
    store = NotificationStore(backend)
    await store.initialize("u1")

    await store.mark_as_read("n1")
    await store.mark_as_read("n1")

    assert store.unread_count == 0
    assert store.get("n1").is_read is True
    assert [c for c in backend.calls if c[0] == "update"] == [("update", "n1", "u1", True)]


async def test_mark_all_then_new_insert_counts_one(backend):
    backend.seed(make_notification("a"), make_notification("b", minutes=1))
    store = NotificationStore(backend)
    await store.start("u1")

    await store.mark_all_as_read()
    assert store.unread_count == 0
    assert ("mark_all", "u1") in backend.calls

    backend.live_insert(make_notification("c", minutes=2))
    await wait_until(lambda: store.get("c") is not None)

    assert store.unread_count == 1
    await store.teardown()


async def test_delete_only_decrements_for_unread(backend):
    backend.seed(make_notification("a"), make_notification("b", minutes=1, is_read=True))
    store = NotificationStore(backend)
    await store.initialize("u1")

    await store.delete("b")
    assert store.unread_count == 1

    await store.delete("a")
    assert store.unread_count == 0
    assert store.notifications == []
    assert backend.records["u1"] == []


async def test_failed_mutation_keeps_optimistic_state_and_marks_stale(backend):
    backend.seed(make_notification("a"), make_notification("b", minutes=1))
    store = NotificationStore(backend, failure_policy="keep")
    await store.initialize("u1")
    backend.failing.update({"update", "delete"})

    await store.mark_as_read("a")
    await store.delete("b")

    assert store.get("a").is_read is True
    assert store.get("b") is None
    assert store.unread_count == 0
    assert store.stale is True
    assert store.last_error is not None

    backend.failing.clear()
    await store.refresh()
    assert store.stale is False
    assert store.unread_count == 2


async def test_rollback_policy_restores_affected_records(backend):
    backend.seed(
        make_notification("a"),
        make_notification("b", minutes=1),
        make_notification("c", minutes=2, is_read=True),
    )
    store = NotificationStore(backend, failure_policy="rollback")
    await store.initialize("u1")
    backend.failing.update({"update", "delete", "mark_all"})

    await store.mark_as_read("a")
    assert store.get("a").is_read is False

    await store.delete("b")
    assert [n.id for n in store.notifications] == ["c", "b", "a"]

    await store.mark_all_as_read()
    assert store.get("c").is_read is True
    assert store.unread_count == 2
    assert store.stale is False
    _assert_consistent(store)


async def test_reinitialize_closes_the_live_channel(backend):
    store = NotificationStore(backend)
    await store.start("u1")
    subscription = backend.active_subscriptions()[0]

    await store.initialize("u1")

    assert subscription.cancelled is True
    assert store.subscribed is False


async def test_user_switch_starts_from_an_empty_cache(backend):
    backend.seed(make_notification("a"), make_notification("z", user_id="u2"))
    store = NotificationStore(backend)
    await store.start("u1")

    await store.start("u2")

    assert [n.id for n in store.notifications] == ["z"]
    assert backend.active_subscriptions("u1") == []
    assert len(backend.active_subscriptions("u2")) == 1
    with pytest.raises(ValueError):
        store.subscribe("u1")
    await store.teardown()


async def test_teardown_releases_everything(backend):
    backend.seed(make_notification("a"))
    store = NotificationStore(backend)
    await store.start("u1")
    subscription = backend.active_subscriptions()[0]

    await store.teardown()

    assert subscription.cancelled is True
    assert store.state is StoreState.UNINITIALIZED
    assert store.notifications == []
    assert store.unread_count == 0

    await store.mark_as_read("a")
    assert not [c for c in backend.calls if c[0] == "update"]


async def test_inserts_during_reload_are_applied_after_it(backend):
    backend.seed(make_notification("a"))
    store = NotificationStore(backend)
    await store.start("u1")
    subscription = backend.active_subscriptions()[0]
    backend.list_gate = anyio.Event()

    async with anyio.create_task_group() as task_group:
        task_group.start_soon(store.refresh)
        await wait_until(lambda: store.loading)
        subscription.push(make_notification("n1", minutes=1))
        await anyio.sleep(0.02)
        assert store.get("n1") is None
        backend.list_gate.set()

    assert [n.id for n in store.notifications] == ["n1", "a"]
    assert store.unread_count == 2
    await store.teardown()


async def test_dropped_channel_is_resubscribed(backend):
    backend.seed(make_notification("a"))
    store = NotificationStore(backend, resubscribe_attempts=2, resubscribe_delay=0)
    await store.start("u1")
    first = backend.active_subscriptions()[0]

    first.drop()
    await wait_until(
        lambda: bool(backend.active_subscriptions()) and backend.active_subscriptions()[0] is not first
    )
    assert [n.id for n in store.notifications] == ["a"]

    backend.live_insert(make_notification("n1", minutes=1))
    await wait_until(lambda: store.get("n1") is not None)
    assert store.unread_count == 2
    await store.teardown()


async def test_gives_up_when_resubscribing_keeps_failing(backend):
    store = NotificationStore(backend, resubscribe_attempts=2, resubscribe_delay=0)
    await store.start("u1")
    backend.failing.add("subscribe")

    backend.active_subscriptions()[0].drop()
    await wait_until(lambda: not store.subscribed)

    assert store.state is StoreState.READY
    assert [c for c in backend.calls if c[0] == "subscribe"] == [("subscribe", "u1")] * 3


async def test_live_insert_raises_a_deduplicated_host_alert(backend, host):
    host.state = PermissionState.GRANTED
    store = NotificationStore(backend, host=host, alert_icon="/icon.png")
    await store.start("u1")

    backend.live_insert(make_notification("n1"))
    await wait_until(lambda: store.get("n1") is not None)

    assert host.shown == [("Title n1", "Message n1", "/icon.png", "n1")]
    await store.teardown()


async def test_no_host_alert_without_permission_or_push(backend, host):
    settings = reconcile(DEFAULT_NOTIFICATION_SETTINGS, {"push_notifications": False})
    store = NotificationStore(backend, host=host, settings_provider=lambda: settings)
    await store.start("u1")

    backend.live_insert(make_notification("n1"))
    await wait_until(lambda: store.get("n1") is not None)
    host.state = PermissionState.GRANTED
    backend.live_insert(make_notification("n2", minutes=1))
    await wait_until(lambda: store.get("n2") is not None)

    assert host.shown == []
    await store.teardown()


def test_should_alert_respects_kind_and_project_preferences():
    settings = reconcile(
        DEFAULT_NOTIFICATION_SETTINGS,
        {"new_event_notifications": False, "project_filters": ["Work"]},
    )

    assert should_alert(settings, make_notification("a")) is False
    assert should_alert(
        settings, make_notification("b", type=NotificationType.EVENT_UPDATED)
    ) is True
    assert should_alert(
        settings,
        make_notification(
            "c", type=NotificationType.EVENT_REMINDER, metadata={"project": "Home"}
        ),
    ) is False
    assert should_alert(
        settings,
        make_notification(
            "d", type=NotificationType.EVENT_REMINDER, metadata={"project": "Work"}
        ),
    ) is True

    quiet = reconcile(DEFAULT_NOTIFICATION_SETTINGS, {"event_update_notifications": False})
    assert should_alert(
        quiet, make_notification("e", type=NotificationType.EVENT_DELETED)
    ) is False


async def test_unread_count_matches_cache_for_mixed_operations(backend):
    rng = random.Random(7)
    backend.seed(*(make_notification(f"seed{i}", minutes=i, is_read=i % 2 == 0) for i in range(6)))
    store = NotificationStore(backend)
    await store.start("u1")
    counter = 0

    for _ in range(120):
        operation = rng.choice(["insert", "read", "read_all", "delete"])
        ids = [n.id for n in store.notifications]
        if operation == "insert":
            counter += 1
            new_id = f"live{counter}"
            backend.live_insert(make_notification(new_id, minutes=100 + counter))
            await wait_until(lambda: store.get(new_id) is not None)
        elif operation == "read" and ids:
            await store.mark_as_read(rng.choice(ids))
        elif operation == "read_all" and rng.random() < 0.2:
            await store.mark_all_as_read()
        elif operation == "delete" and ids:
            await store.delete(rng.choice(ids))
        _assert_consistent(store)

    await store.teardown()
