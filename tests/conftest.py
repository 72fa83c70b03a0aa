"""Shared fixtures for the notification subsystem tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

# Must be set before ``calnotify.infrastructure.database`` builds its engine.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from fakes import FakeBackend, FakeHost  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def db_session():
    """Yield a session bound to freshly created tables."""

    from calnotify.infrastructure.database import Base, SessionLocal, engine, initialize_database

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
