"""Contracts the notification subsystem consumes from its collaborators."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from typing import Protocol

from calnotify.domain.entities import Notification, NotificationSettings, PermissionState

NOTIFICATIONS_TABLE = "notifications"
INSERT_EVENT = "INSERT"


@dataclass(frozen=True)
class ChannelEvent:
    """A change delivered by the live channel."""

    table: str
    event_type: str
    record: Notification


class ChannelSubscription(Protocol):
    """Live channel handle scoped to a single user.

    Iterating yields events in arrival order until ``cancel`` is called or the
    channel drops. ``cancel`` is idempotent and releases the connection.
    """

    def __aiter__(self) -> AsyncIterator[ChannelEvent]:
        ...

    def cancel(self) -> None:
        ...


class NotificationBackend(Protocol):
    """Remote store holding notifications and settings.

    Every method raises :class:`~calnotify.domain.errors.NotificationBackendError`
    on failure.
    """

    async def list_notifications(
        self, user_id: str, *, limit: int = 50
    ) -> Sequence[Notification]:
        ...

    async def update_notification(
        self, notification_id: str, *, user_id: str, is_read: bool
    ) -> None:
        ...

    async def mark_all_read(self, user_id: str) -> None:
        ...

    async def delete_notification(self, notification_id: str, *, user_id: str) -> None:
        ...

    async def get_settings(self, user_id: str) -> NotificationSettings | None:
        """Return the stored settings or ``None`` when the user has none."""
        ...

    async def upsert_settings(
        self, user_id: str, settings: NotificationSettings
    ) -> NotificationSettings:
        ...

    def subscribe(self, user_id: str) -> ChannelSubscription:
        ...


class HostNotifier(Protocol):
    """Platform facility that owns the notification permission and raises alerts."""

    def current_permission(self) -> PermissionState:
        ...

    async def request_permission(self) -> PermissionState:
        """Prompt the user once and return the outcome."""
        ...

    def show(self, title: str, body: str, *, icon: str, tag: str) -> None:
        ...


__all__ = [
    "ChannelEvent",
    "ChannelSubscription",
    "HostNotifier",
    "INSERT_EVENT",
    "NOTIFICATIONS_TABLE",
    "NotificationBackend",
]
