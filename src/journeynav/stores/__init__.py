"""Journey store implementations."""

from journeynav.stores.base import JourneyStore
from journeynav.stores.memory import InMemoryJourneyStore

__all__ = ["JourneyStore", "InMemoryJourneyStore"]
