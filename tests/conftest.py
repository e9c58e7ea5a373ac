"""Pytest configuration and shared fixtures for JourneyNav tests."""

from datetime import datetime, timedelta, timezone
from typing import Any

import logging

import pytest

from journeynav.core.config import Settings
from journeynav.engine import JourneyEngine
from journeynav.notifications import NotificationBus
from journeynav.stitcher import JourneyStitcher
from journeynav.stores.memory import InMemoryJourneyStore

BASE_TIME = datetime(2025, 1, 6, 9, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def base_time() -> datetime:
    """Fixed reference time for deterministic timelines."""
    return BASE_TIME


@pytest.fixture
def make_raw():
    """Factory for raw touchpoint payloads."""

    def _make(
        type: str = "page_view",
        channel: str = "web",
        user_id: str | None = "user-1",
        session_id: str = "session-1",
        offset_minutes: float | None = 0,
        **overrides: Any,
    ) -> dict[str, Any]:
        raw: dict[str, Any] = {
            "user_id": user_id,
            "session_id": session_id,
            "type": type,
            "channel": channel,
            "source": "google",
            "medium": "cpc",
        }
        if offset_minutes is not None:
            raw["timestamp"] = BASE_TIME + timedelta(minutes=offset_minutes)
        raw.update(overrides)
        return raw

    return _make


@pytest.fixture
def store() -> InMemoryJourneyStore:
    return InMemoryJourneyStore()


@pytest.fixture
def bus() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def recorded(bus):
    """List that collects every notification published on ``bus``."""
    notifications = []
    bus.subscribe(None, notifications.append)
    return notifications


@pytest.fixture
def stitcher(store, bus) -> JourneyStitcher:
    return JourneyStitcher(store, notifications=bus)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the process environment."""
    return Settings(_env_file=None)


@pytest.fixture
def clock(base_time):
    """Mutable clock; set ``clock.now`` to move time."""

    class _Clock:
        now = base_time

        def __call__(self) -> datetime:
            return self.now

    return _Clock()


@pytest.fixture
def engine(settings, bus, clock) -> JourneyEngine:
    return JourneyEngine(settings, notifications=bus, clock=clock)


@pytest.fixture
def restore_root_logger():
    """Undo handlers and level set by ``configure_logging``."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield root
    for handler in list(root.handlers):
        if getattr(handler, "_journeynav_handler", False):
            root.removeHandler(handler)
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
