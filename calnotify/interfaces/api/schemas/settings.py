"""Pydantic models describing notification settings payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class NotificationSettingsRead(BaseModel):
    """Complete settings record for the current user."""

    id: str | None = None
    email_notifications: bool
    push_notifications: bool
    reminder_minutes: list[int]
    project_filters: list[str]
    new_event_notifications: bool
    event_update_notifications: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class NotificationSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    email_notifications: bool | None = None
    push_notifications: bool | None = None
    reminder_minutes: list[int] | None = Field(default=None, description="Minutes before start")
    project_filters: list[str] | None = None
    new_event_notifications: bool | None = None
    event_update_notifications: bool | None = None


__all__ = ["NotificationSettingsRead", "NotificationSettingsUpdate"]
