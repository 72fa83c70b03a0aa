"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from calnotify.domain.entities import NotificationType


class NotificationMarkReadRequest(BaseModel):
    """Payload used to acknowledge a batch of notifications."""

    ids: list[str] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[str]:
        """Return the list of identifiers without duplicates preserving order."""

        return list(dict.fromkeys(self.ids))


class NotificationCreate(BaseModel):
    """Producer-side request to record a notification for a user."""

    user_id: str = Field(..., min_length=1)
    type: NotificationType = NotificationType.SYSTEM
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    event_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    scheduled_for: datetime | None = None


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: str
    user_id: str
    type: NotificationType
    title: str
    message: str
    event_id: str | None = None
    is_read: bool
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime
    scheduled_for: datetime | None = None


class MarkAllReadResponse(BaseModel):
    updated: int


__all__ = [
    "MarkAllReadResponse",
    "NotificationCreate",
    "NotificationMarkReadRequest",
    "NotificationRead",
]
