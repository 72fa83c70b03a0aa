from .notification import (
    MarkAllReadResponse,
    NotificationCreate,
    NotificationMarkReadRequest,
    NotificationRead,
)
from .settings import NotificationSettingsRead, NotificationSettingsUpdate

__all__ = [
    "MarkAllReadResponse",
    "NotificationCreate",
    "NotificationMarkReadRequest",
    "NotificationRead",
    "NotificationSettingsRead",
    "NotificationSettingsUpdate",
]
