"""Domain entities exposed by the application."""

from .notification import (
    NOTIFICATION_COLORS,
    NOTIFICATION_ICONS,
    Notification,
    NotificationType,
)
from .notification_settings import (
    DEFAULT_NOTIFICATION_SETTINGS,
    NotificationSettings,
    reconcile,
)
from .permission import PermissionState
from .toast import ToastItem

__all__ = [
    "Notification",
    "NotificationType",
    "NOTIFICATION_ICONS",
    "NOTIFICATION_COLORS",
    "NotificationSettings",
    "DEFAULT_NOTIFICATION_SETTINGS",
    "reconcile",
    "PermissionState",
    "ToastItem",
]
