"""JourneyNav.

Customer journey tracking: touchpoint scoring, journey stitching and
periodic drop-off, conversion path and optimization analysis.
"""

__version__ = "1.0.0"

from journeynav.engine import JourneyEngine, create_engine

__all__ = ["JourneyEngine", "create_engine"]
