"""Notification cache, toast presentation and producer helpers."""

from .bell import BellRow, BellSnapshot, bell_snapshot, format_time_ago
from .events import (
    notify_event_created,
    notify_event_deleted,
    notify_event_reminder,
    notify_event_updated,
    publish_notification,
)
from .scheduler import ExpiryScheduler
from .session import NotificationSession
from .store import NotificationStore, StoreState, should_alert
from .toasts import ToastQueue

__all__ = [
    "BellRow",
    "BellSnapshot",
    "bell_snapshot",
    "format_time_ago",
    "ExpiryScheduler",
    "NotificationSession",
    "NotificationStore",
    "StoreState",
    "should_alert",
    "ToastQueue",
    "notify_event_created",
    "notify_event_updated",
    "notify_event_deleted",
    "notify_event_reminder",
    "publish_notification",
]
