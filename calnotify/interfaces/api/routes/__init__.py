from fastapi import FastAPI

from .notifications import router as notifications_router
from .settings import router as settings_router


def register_routes(app: FastAPI) -> None:
    """Register every API router on the FastAPI application."""

    # Settings first so "/notifications/settings" is not captured by "/{notification_id}".
    app.include_router(settings_router)
    app.include_router(notifications_router)
