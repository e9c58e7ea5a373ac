"""Base JourneyStore interface for all journey stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from journeynav.models.analysis import (
        ConversionPath,
        DropOffAnalysis,
        JourneyOptimization,
    )
    from journeynav.models.journey import CustomerJourney
    from journeynav.models.touchpoint import Touchpoint


class JourneyStore(ABC):
    """Owner of all touchpoints, journeys and derived analysis collections.

    Implementations must be safe to call from several threads. Journeys
    handed out by the store must never be mutated by callers; writers commit
    a new object with :meth:`put_journey` instead.
    """

    @abstractmethod
    def transaction(self) -> AbstractContextManager[None]:
        """Exclusive write section spanning several store calls."""
        pass

    @abstractmethod
    def append_touchpoint(self, identity: str, touchpoint: Touchpoint) -> None:
        """Append a touchpoint to the identity's touchpoint list."""
        pass

    @abstractmethod
    def get_active_journey(
        self, identity: str, now: datetime, window: timedelta
    ) -> CustomerJourney | None:
        """Return the identity's latest journey if it ended less than ``window`` ago."""
        pass

    @abstractmethod
    def put_journey(self, journey: CustomerJourney) -> CustomerJourney | None:
        """Insert or replace a journey; returns the replaced journey, if any."""
        pass

    @abstractmethod
    def restore_journey(
        self, journey_id: str, previous: CustomerJourney | None
    ) -> None:
        """Put back ``previous`` for ``journey_id``, or drop the id when None."""
        pass

    @abstractmethod
    def get_journey(self, journey_id: str) -> CustomerJourney | None:
        """Fetch a journey by id."""
        pass

    @abstractmethod
    def list_journeys(self) -> list[CustomerJourney]:
        """Consistent snapshot of all journeys."""
        pass

    @abstractmethod
    def list_journeys_for_identity(self, identity: str) -> list[CustomerJourney]:
        """All journeys, open or closed, owned by ``identity``."""
        pass

    @abstractmethod
    def list_touchpoints(self, identity: str | None = None) -> list[Touchpoint]:
        """Touchpoints of one identity, or of every identity when None."""
        pass

    @abstractmethod
    def replace_conversion_paths(self, paths: dict[str, ConversionPath]) -> None:
        """Swap in a freshly mined conversion path collection."""
        pass

    @abstractmethod
    def list_conversion_paths(self) -> list[ConversionPath]:
        pass

    @abstractmethod
    def replace_dropoff_analyses(self, analyses: dict[str, DropOffAnalysis]) -> None:
        """Swap in a freshly computed drop-off collection."""
        pass

    @abstractmethod
    def list_dropoff_analyses(self) -> list[DropOffAnalysis]:
        pass

    @abstractmethod
    def replace_optimizations(
        self, optimizations: dict[str, JourneyOptimization]
    ) -> None:
        """Swap in a freshly generated optimization collection."""
        pass

    @abstractmethod
    def list_optimizations(self) -> list[JourneyOptimization]:
        pass

    @abstractmethod
    def journey_count(self) -> int:
        pass

    @abstractmethod
    def clear(self) -> None:
        """Drop all stored data."""
        pass
