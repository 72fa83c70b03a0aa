"""Utility helpers to push inserted notifications to live subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from anyio import from_thread

from calnotify.application.ports import INSERT_EVENT, NOTIFICATIONS_TABLE, ChannelEvent
from calnotify.domain.entities import Notification

from .hub import RealtimeHub, realtime_hub

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Wrap notifications in insert events and schedule their delivery."""

    def __init__(self, hub: RealtimeHub) -> None:
        self._hub = hub

    def dispatch(self, notification: Notification) -> None:
        """Schedule ``notification`` to be delivered to its user."""

        event = ChannelEvent(
            table=NOTIFICATIONS_TABLE, event_type=INSERT_EVENT, record=notification
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(
                    self._hub.publish, NOTIFICATIONS_TABLE, notification.user_id, event
                )
            except RuntimeError:
                logger.warning(
                    "No event loop available, notification %s was not broadcast",
                    notification.id,
                )
        else:
            loop.create_task(
                self._hub.publish(NOTIFICATIONS_TABLE, notification.user_id, event)
            )


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the JSON payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "type": notification.type.value,
        "title": notification.title,
        "message": notification.message,
        "event_id": notification.event_id,
        "is_read": notification.is_read,
        "metadata": notification.metadata or {},
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
        "scheduled_for": notification.scheduled_for.isoformat()
        if notification.scheduled_for
        else None,
    }


notification_publisher = NotificationPublisher(realtime_hub)


def dispatch_notification(notification: Notification) -> None:
    """Public helper that delegates to the shared publisher instance."""

    notification_publisher.dispatch(notification)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_notification",
]
