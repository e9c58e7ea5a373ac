"""In-memory journey store."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timedelta

from journeynav.core.exceptions import StorageError
from journeynav.models.analysis import (
    ConversionPath,
    DropOffAnalysis,
    JourneyOptimization,
)
from journeynav.models.journey import CustomerJourney
from journeynav.models.touchpoint import Touchpoint
from journeynav.stores.base import JourneyStore

logger = logging.getLogger(__name__)


class InMemoryJourneyStore(JourneyStore):
    """Dictionary-backed store guarded by a re-entrant lock.

    Every read and write takes the same lock, and stored journeys are
    replaced rather than mutated, so list snapshots never contain a
    half-applied update.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._touchpoints: dict[str, list[Touchpoint]] = {}
        self._journeys: dict[str, CustomerJourney] = {}
        self._journeys_by_identity: dict[str, list[str]] = {}
        self._conversion_paths: dict[str, ConversionPath] = {}
        self._dropoff_analyses: dict[str, DropOffAnalysis] = {}
        self._optimizations: dict[str, JourneyOptimization] = {}

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    # -- touchpoints -------------------------------------------------------

    def append_touchpoint(self, identity: str, touchpoint: Touchpoint) -> None:
        with self._lock:
            self._touchpoints.setdefault(identity, []).append(touchpoint)

    def list_touchpoints(self, identity: str | None = None) -> list[Touchpoint]:
        with self._lock:
            if identity is not None:
                return list(self._touchpoints.get(identity, []))
            return [tp for tps in self._touchpoints.values() for tp in tps]

    # -- journeys ----------------------------------------------------------

    def get_active_journey(
        self, identity: str, now: datetime, window: timedelta
    ) -> CustomerJourney | None:
        with self._lock:
            journeys = [
                self._journeys[journey_id]
                for journey_id in self._journeys_by_identity.get(identity, [])
            ]
            if not journeys:
                return None

            latest = max(journeys, key=lambda j: j.end_date)
            if now - latest.end_date < window:
                return latest
            return None

    def put_journey(self, journey: CustomerJourney) -> CustomerJourney | None:
        if not journey.journey_id:
            raise StorageError("Cannot store a journey without an id")

        with self._lock:
            previous = self._journeys.get(journey.journey_id)
            if previous is not None and previous.user_id != journey.user_id:
                raise StorageError(
                    f"Journey {journey.journey_id} already belongs to {previous.user_id}"
                )
            self._journeys[journey.journey_id] = journey
            if previous is None:
                self._journeys_by_identity.setdefault(journey.user_id, []).append(
                    journey.journey_id
                )
            return previous

    def restore_journey(
        self, journey_id: str, previous: CustomerJourney | None
    ) -> None:
        with self._lock:
            if previous is not None:
                self._journeys[journey_id] = previous
                return

            removed = self._journeys.pop(journey_id, None)
            if removed is not None:
                ids = self._journeys_by_identity.get(removed.user_id, [])
                if journey_id in ids:
                    ids.remove(journey_id)

    def get_journey(self, journey_id: str) -> CustomerJourney | None:
        with self._lock:
            return self._journeys.get(journey_id)

    def list_journeys(self) -> list[CustomerJourney]:
        with self._lock:
            return list(self._journeys.values())

    def list_journeys_for_identity(self, identity: str) -> list[CustomerJourney]:
        with self._lock:
            return [
                self._journeys[journey_id]
                for journey_id in self._journeys_by_identity.get(identity, [])
            ]

    def journey_count(self) -> int:
        with self._lock:
            return len(self._journeys)

    # -- derived collections -----------------------------------------------

    def replace_conversion_paths(self, paths: dict[str, ConversionPath]) -> None:
        with self._lock:
            self._conversion_paths = dict(paths)

    def list_conversion_paths(self) -> list[ConversionPath]:
        with self._lock:
            return list(self._conversion_paths.values())

    def replace_dropoff_analyses(self, analyses: dict[str, DropOffAnalysis]) -> None:
        with self._lock:
            self._dropoff_analyses = dict(analyses)

    def list_dropoff_analyses(self) -> list[DropOffAnalysis]:
        with self._lock:
            return list(self._dropoff_analyses.values())

    def replace_optimizations(
        self, optimizations: dict[str, JourneyOptimization]
    ) -> None:
        with self._lock:
            self._optimizations = dict(optimizations)

    def list_optimizations(self) -> list[JourneyOptimization]:
        with self._lock:
            return list(self._optimizations.values())

    def clear(self) -> None:
        with self._lock:
            self._touchpoints.clear()
            self._journeys.clear()
            self._journeys_by_identity.clear()
            self._conversion_paths.clear()
            self._dropoff_analyses.clear()
            self._optimizations.clear()
        logger.info("Journey store cleared")
