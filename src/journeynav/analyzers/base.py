"""Base analyzer class for JourneyNav."""

from abc import ABC, abstractmethod
from typing import Any, Sequence
from uuid import uuid4

from journeynav.models.journey import CustomerJourney


class BaseAnalyzer(ABC):
    """Base class for all periodic journey analyzers.

    Analyzers are stateless: each run receives a consistent snapshot of the
    journeys and returns a freshly computed collection. The caller decides
    whether that collection replaces the stored one, so a failed run never
    leaves partial output behind.
    """

    name: str = "analyzer"

    @abstractmethod
    async def analyze(
        self,
        journeys: Sequence[CustomerJourney],
        **kwargs: Any,
    ) -> dict[str, Any]:
        """Perform analysis over a journey snapshot.

        Args:
            journeys: Snapshot of journeys to analyze
            **kwargs: Additional analyzer-specific inputs

        Returns:
            Mapping of collection key to derived record
        """
        pass

    def _generate_id(self, prefix: str) -> str:
        """Create a unique record id such as ``path_3f2a...``."""
        return f"{prefix}_{uuid4().hex}"
