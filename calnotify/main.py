import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from calnotify.config import get_settings
from calnotify.infrastructure.database import engine, initialize_database
from calnotify.infrastructure.notifications import realtime_hub
from calnotify.interfaces.api.routes import register_routes


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the tables on startup and release connections on shutdown."""

    initialize_database()
    yield
    realtime_hub.close_all()
    engine.dispose()


def create_app() -> FastAPI:
    """Build the FastAPI application serving the notification store."""

    configure_logging()
    app = FastAPI(title="calnotify", lifespan=lifespan)

    # Browser clients subscribe from their own origin.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_settings().cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_routes(app)
    return app


app = create_app()
