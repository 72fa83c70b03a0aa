"""Tests for the bell read model."""

from datetime import timedelta

import pytest

from calnotify.application.use_cases.notifications import (
    BellSnapshot,
    NotificationStore,
    bell_snapshot,
    format_time_ago,
)
from calnotify.domain.entities import DEFAULT_NOTIFICATION_SETTINGS, NotificationType
from fakes import BASE_TIME, make_notification


@pytest.mark.parametrize(
    ("elapsed", "expected"),
    [
        (timedelta(seconds=30), "just now"),
        (timedelta(minutes=5), "5m ago"),
        (timedelta(minutes=59), "59m ago"),
        (timedelta(hours=2, minutes=10), "2h ago"),
        (timedelta(days=3, hours=1), "3d ago"),
    ],
)
def test_format_time_ago(elapsed, expected):
    assert format_time_ago(BASE_TIME, BASE_TIME + elapsed) == expected


def test_format_time_ago_without_timestamp():
    assert format_time_ago(None, BASE_TIME) == ""


@pytest.mark.parametrize(("count", "badge"), [(0, ""), (7, "7"), (99, "99"), (100, "99+")])
def test_badge(count, badge):
    snapshot = BellSnapshot(
        rows=(),
        unread_count=count,
        loading=False,
        stale=False,
        settings=DEFAULT_NOTIFICATION_SETTINGS,
    )
    assert snapshot.badge == badge


@pytest.mark.anyio
async def test_snapshot_mirrors_the_store(backend):
    backend.seed(
        make_notification("a"),
        make_notification("b", minutes=30, type=NotificationType.EVENT_DELETED, is_read=True),
    )
    store = NotificationStore(backend)
    await store.initialize("u1")

    snapshot = bell_snapshot(
        store, DEFAULT_NOTIFICATION_SETTINGS, now=BASE_TIME + timedelta(hours=1)
    )

    assert [n.id for n in snapshot.notifications] == ["b", "a"]
    assert snapshot.unread_count == 1
    assert snapshot.badge == "1"
    assert snapshot.loading is False
    assert snapshot.rows[0].icon == store.get("b").icon
    assert snapshot.rows[0].color == store.get("b").color
    assert [row.age for row in snapshot.rows] == ["30m ago", "1h ago"]
