"""Aggregate application use cases."""

from .permission import PermissionGate
from .settings import SettingsReconciler

__all__ = [
    "PermissionGate",
    "SettingsReconciler",
]
