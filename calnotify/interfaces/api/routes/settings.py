"""Endpoints for per-user notification settings."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from calnotify.domain.entities import (
    DEFAULT_NOTIFICATION_SETTINGS,
    NotificationSettings,
    reconcile,
)
from calnotify.infrastructure.database import get_db
from calnotify.infrastructure.repositories import NotificationSettingsRepository
from calnotify.interfaces.api.dependencies import get_current_user_id
from calnotify.interfaces.api.schemas import (
    NotificationSettingsRead,
    NotificationSettingsUpdate,
)

router = APIRouter(prefix="/notifications/settings", tags=["notification-settings"])


def _settings_to_schema(settings: NotificationSettings) -> NotificationSettingsRead:
    return NotificationSettingsRead(
        id=settings.id,
        created_at=settings.created_at,
        updated_at=settings.updated_at,
        **settings.to_record(),
    )


def _get_or_create(repository: NotificationSettingsRepository, user_id: str) -> NotificationSettings:
    stored = repository.get(user_id)
    if stored is None:
        stored = repository.upsert(user_id, DEFAULT_NOTIFICATION_SETTINGS)
    return stored


@router.get("", response_model=NotificationSettingsRead)
def read_settings(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> NotificationSettingsRead:
    """Return the caller's settings, creating the default record on first access."""

    return _settings_to_schema(_get_or_create(NotificationSettingsRepository(db), user_id))


@router.patch("", response_model=NotificationSettingsRead)
def update_settings(
    payload: NotificationSettingsUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> NotificationSettingsRead:
    """Merge the provided fields over the stored settings."""

    repository = NotificationSettingsRepository(db)
    current = _get_or_create(repository, user_id)
    try:
        merged = reconcile(current, payload.model_dump(exclude_none=True))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
        ) from exc
    return _settings_to_schema(repository.upsert(user_id, merged))


@router.post("/reset", response_model=NotificationSettingsRead)
def reset_settings(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
) -> NotificationSettingsRead:
    repository = NotificationSettingsRepository(db)
    return _settings_to_schema(repository.upsert(user_id, DEFAULT_NOTIFICATION_SETTINGS))
