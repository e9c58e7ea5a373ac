"""Periodic analyzers that mine journeys for paths, drop-offs and optimizations.

Each analyzer reads a journey snapshot and returns a freshly computed
collection keyed the way the journey store keeps it.
"""

from journeynav.analyzers.base import BaseAnalyzer
from journeynav.analyzers.conversion_paths import ConversionPathAnalyzer
from journeynav.analyzers.dropoff import DropOffAnalyzer
from journeynav.analyzers.optimization import OptimizationAnalyzer

__all__ = [
    "BaseAnalyzer",
    "ConversionPathAnalyzer",
    "DropOffAnalyzer",
    "OptimizationAnalyzer",
]
