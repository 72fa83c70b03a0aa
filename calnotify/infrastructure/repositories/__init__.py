"""Repository implementations for infrastructure layer."""

from .notification_repository import NotificationRepository
from .notification_settings_repository import NotificationSettingsRepository

__all__ = [
    "NotificationRepository",
    "NotificationSettingsRepository",
]
