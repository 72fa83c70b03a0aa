"""Read model consumed by the notification bell."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from calnotify.application.use_cases.notifications.store import NotificationStore
from calnotify.domain.entities import Notification, NotificationSettings
from calnotify.utils import ensure_app_timezone, now_in_app_timezone

_BADGE_LIMIT = 99


@dataclass(frozen=True)
class BellRow:
    notification: Notification
    icon: str
    color: str
    age: str


@dataclass(frozen=True)
class BellSnapshot:
    """Everything the bell needs to render in one consistent view."""

    rows: tuple[BellRow, ...]
    unread_count: int
    loading: bool
    stale: bool
    settings: NotificationSettings

    @property
    def notifications(self) -> list[Notification]:
        return [row.notification for row in self.rows]

    @property
    def badge(self) -> str:
        if self.unread_count <= 0:
            return ""
        if self.unread_count > _BADGE_LIMIT:
            return f"{_BADGE_LIMIT}+"
        return str(self.unread_count)


def format_time_ago(created_at: datetime | None, now: datetime | None = None) -> str:
    """Render the age of a notification the way the bell lists it."""

    if created_at is None:
        return ""
    current = ensure_app_timezone(now) if now is not None else now_in_app_timezone()
    elapsed = current - ensure_app_timezone(created_at)
    minutes = int(elapsed.total_seconds() // 60)
    if minutes < 1:
        return "just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if minutes < 1440:
        return f"{minutes // 60}h ago"
    return f"{minutes // 1440}d ago"


def bell_snapshot(
    store: NotificationStore,
    settings: NotificationSettings,
    *,
    now: datetime | None = None,
) -> BellSnapshot:
    current = now or now_in_app_timezone()
    rows = tuple(
        BellRow(
            notification=notification,
            icon=notification.icon,
            color=notification.color,
            age=format_time_ago(notification.created_at, current),
        )
        for notification in store.notifications
    )
    return BellSnapshot(
        rows=rows,
        unread_count=store.unread_count,
        loading=store.loading,
        stale=store.stale,
        settings=settings,
    )


__all__ = ["BellRow", "BellSnapshot", "bell_snapshot", "format_time_ago"]
