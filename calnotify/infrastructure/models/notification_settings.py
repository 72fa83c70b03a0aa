"""SQLAlchemy model for per-user notification settings."""

from uuid import uuid4

from sqlalchemy import Column, DateTime, JSON, String

from calnotify.infrastructure.database import Base
from calnotify.utils import now_in_app_naive_datetime


def _new_id() -> str:
    return str(uuid4())


class NotificationSettingsModel(Base):
    """One row per user; ``settings`` holds the preference fields as JSON."""

    __tablename__ = "notification_settings"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, unique=True, index=True)
    settings = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationSettingsModel"]
