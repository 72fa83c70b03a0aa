"""SQLAlchemy model for persisted notifications."""

from uuid import uuid4

from sqlalchemy import Boolean, Column, DateTime, Index, JSON, String, Text

from calnotify.infrastructure.database import Base
from calnotify.utils import now_in_app_naive_datetime


def _new_id() -> str:
    return str(uuid4())


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (Index("ix_notification_user_created", "user_id", "created_at"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(64), nullable=False, index=True)
    type = Column(String(32), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    event_id = Column(String(64), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    metadata_ = Column("metadata", JSON, nullable=False, default=dict)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    scheduled_for = Column(DateTime(), nullable=True)


__all__ = ["NotificationModel"]
