"""Host notification permission states."""

from __future__ import annotations

from enum import Enum


class PermissionState(str, Enum):
    """Permission granted by the user to raise host-level alerts."""

    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


__all__ = ["PermissionState"]
