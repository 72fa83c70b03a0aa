"""Producer-side helpers that persist notifications and broadcast them."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.orm import Session

from calnotify.domain.entities import Notification, NotificationType
from calnotify.infrastructure.notifications import dispatch_notification
from calnotify.infrastructure.repositories import NotificationRepository
from calnotify.utils import ensure_app_timezone, now_in_app_timezone


def publish_notification(
    session: Session,
    *,
    user_id: str,
    type: NotificationType | str,
    title: str,
    message: str,
    event_id: str | None = None,
    metadata: dict[str, Any] | None = None,
    scheduled_for: datetime | None = None,
) -> Notification:
    """Store a new notification and push it to the user's live channel."""

    notification = Notification(
        id="",
        user_id=user_id,
        type=NotificationType.coerce(type),
        title=title,
        message=message,
        event_id=event_id,
        is_read=False,
        metadata=metadata or {},
        created_at=now_in_app_timezone(),
        scheduled_for=scheduled_for,
    )
    saved = NotificationRepository(session).create(notification)
    dispatch_notification(saved)
    return saved


def _event_metadata(project: str | None) -> dict[str, Any]:
    return {"project": project} if project else {}


def notify_event_created(
    session: Session,
    *,
    user_id: str,
    event_id: str,
    event_title: str,
    project: str | None = None,
) -> Notification:
    return publish_notification(
        session,
        user_id=user_id,
        type=NotificationType.NEW_EVENT,
        title="New event",
        message=f"'{event_title}' was added to your calendar.",
        event_id=event_id,
        metadata=_event_metadata(project),
    )


def notify_event_updated(
    session: Session,
    *,
    user_id: str,
    event_id: str,
    event_title: str,
    project: str | None = None,
) -> Notification:
    return publish_notification(
        session,
        user_id=user_id,
        type=NotificationType.EVENT_UPDATED,
        title="Event updated",
        message=f"'{event_title}' was changed.",
        event_id=event_id,
        metadata=_event_metadata(project),
    )


def notify_event_deleted(
    session: Session,
    *,
    user_id: str,
    event_id: str,
    event_title: str,
    project: str | None = None,
) -> Notification:
    # The event is gone; keep the id for reference only.
    return publish_notification(
        session,
        user_id=user_id,
        type=NotificationType.EVENT_DELETED,
        title="Event deleted",
        message=f"'{event_title}' was removed from your calendar.",
        event_id=event_id,
        metadata=_event_metadata(project),
    )


def describe_offset(minutes: int) -> str:
    """Return a short human label for a reminder offset."""

    if minutes and minutes % 1440 == 0:
        days = minutes // 1440
        return f"{days} day" if days == 1 else f"{days} days"
    if minutes and minutes % 60 == 0:
        hours = minutes // 60
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"


def notify_event_reminder(
    session: Session,
    *,
    user_id: str,
    event_id: str,
    event_title: str,
    starts_at: datetime,
    minutes: int,
    project: str | None = None,
) -> Notification:
    """Record a reminder due ``minutes`` before ``starts_at``."""

    if minutes < 0:
        raise ValueError("Reminder offset must be non-negative")
    metadata = _event_metadata(project)
    metadata["minutes"] = minutes
    start = ensure_app_timezone(starts_at)
    return publish_notification(
        session,
        user_id=user_id,
        type=NotificationType.EVENT_REMINDER,
        title="Upcoming event",
        message=f"'{event_title}' starts in {describe_offset(minutes)}.",
        event_id=event_id,
        metadata=metadata,
        scheduled_for=start - timedelta(minutes=minutes) if start else None,
    )


__all__ = [
    "describe_offset",
    "notify_event_created",
    "notify_event_deleted",
    "notify_event_reminder",
    "notify_event_updated",
    "publish_notification",
]
