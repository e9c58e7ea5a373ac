"""Outbound notifications for dashboards and alerting."""

import logging
import threading
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from pydantic import Field

from journeynav.models.base import BaseJNModel, utc_now

logger = logging.getLogger(__name__)


class EngineEvent(str, Enum):
    """Named events emitted by the journey engine."""

    TOUCHPOINT_TRACKED = "touchpoint_tracked"
    JOURNEY_UPDATED = "journey_updated"
    CONVERSION_PATHS_ANALYZED = "conversion_paths_analyzed"
    DROPOFF_IDENTIFIED = "dropoff_identified"
    OPTIMIZATIONS_GENERATED = "optimizations_generated"
    TRACKING_ERROR = "tracking_error"
    ANALYSIS_ERROR = "analysis_error"
    JOURNEY_ANALYSIS_COMPLETE = "journey_analysis_complete"
    JOURNEY_TRACKING_INITIALIZED = "journey_tracking_initialized"
    JOURNEY_DATA_CLEARED = "journey_data_cleared"


class Notification(BaseJNModel):
    """A single published event."""

    event: EngineEvent
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utc_now)


Listener = Callable[[Notification], None]


class NotificationBus:
    """Callback registry keyed by event name.

    Listeners run synchronously on the publishing thread. A failing listener
    is logged and does not affect other listeners or the publisher. No
    delivery order between listeners is promised.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: Dict[Optional[EngineEvent], List[Listener]] = {}

    def subscribe(self, event: Optional[EngineEvent], listener: Listener) -> None:
        """Register ``listener`` for ``event``; ``None`` subscribes to every event."""
        key = EngineEvent(event) if event is not None else None
        with self._lock:
            self._listeners.setdefault(key, []).append(listener)

    def unsubscribe(self, event: Optional[EngineEvent], listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        key = EngineEvent(event) if event is not None else None
        with self._lock:
            listeners = self._listeners.get(key, [])
            if listener not in listeners:
                return False
            listeners.remove(listener)
            return True

    def publish(self, event: EngineEvent, **payload: Any) -> Notification:
        """Build a notification and deliver it to all matching listeners."""
        notification = Notification(event=event, payload=payload)

        with self._lock:
            listeners = list(self._listeners.get(EngineEvent(event), []))
            listeners.extend(self._listeners.get(None, []))

        for listener in listeners:
            try:
                listener(notification)
            except Exception:
                logger.exception(f"Listener failed while handling {notification.event}")

        return notification
