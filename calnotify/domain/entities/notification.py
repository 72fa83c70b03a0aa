"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Closed set of notification kinds."""

    NEW_EVENT = "new_event"
    EVENT_UPDATED = "event_updated"
    EVENT_DELETED = "event_deleted"
    EVENT_REMINDER = "event_reminder"
    SYSTEM = "system"
    ADMIN = "admin"

    @classmethod
    def coerce(cls, value: "NotificationType | str | None") -> "NotificationType":
        """Return the matching kind, treating unknown values as ``SYSTEM``."""

        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.SYSTEM


NOTIFICATION_ICONS: dict[NotificationType, str] = {
    NotificationType.NEW_EVENT: "📅",
    NotificationType.EVENT_UPDATED: "✏️",
    NotificationType.EVENT_DELETED: "🗑️",
    NotificationType.EVENT_REMINDER: "⏰",
    NotificationType.SYSTEM: "ℹ️",
    NotificationType.ADMIN: "📢",
}

NOTIFICATION_COLORS: dict[NotificationType, str] = {
    NotificationType.NEW_EVENT: "text-green-500",
    NotificationType.EVENT_UPDATED: "text-blue-500",
    NotificationType.EVENT_DELETED: "text-red-500",
    NotificationType.EVENT_REMINDER: "text-orange-500",
    NotificationType.SYSTEM: "text-gray-500",
    NotificationType.ADMIN: "text-purple-500",
}


@dataclass
class Notification:
    """Information message delivered to a specific user.

    ``event_id`` is a lookup key only; the notification never owns the event.
    """

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    event_id: str | None = None
    is_read: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    scheduled_for: datetime | None = None

    @property
    def icon(self) -> str:
        return NOTIFICATION_ICONS[self.type]

    @property
    def color(self) -> str:
        return NOTIFICATION_COLORS[self.type]

    @property
    def project(self) -> str | None:
        """Project the related event belongs to, when the producer recorded one."""

        value = self.metadata.get("project") if self.metadata else None
        return str(value) if value else None


__all__ = [
    "Notification",
    "NotificationType",
    "NOTIFICATION_ICONS",
    "NOTIFICATION_COLORS",
]
