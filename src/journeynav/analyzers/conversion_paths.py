"""Conversion Path Analyzer for JourneyNav.

This analyzer groups converted journeys by their exact ordered touchpoint
pattern and keeps frequency and revenue statistics per pattern.
"""

import logging
from typing import Any, Sequence

from journeynav.analyzers.base import BaseAnalyzer
from journeynav.models.analysis import ConversionPath, PathStep
from journeynav.models.base import elapsed_ms, utc_now
from journeynav.models.journey import CustomerJourney

logger = logging.getLogger(__name__)

PATTERN_SEPARATOR = "->"


def path_key(journey: CustomerJourney) -> str:
    """Ordered ``type_channel`` pattern of a journey, joined with ``->``."""
    return PATTERN_SEPARATOR.join(tp.path_signature for tp in journey.path)


class ConversionPathAnalyzer(BaseAnalyzer):
    """Mine converted journeys for recurring conversion paths.

    Matching is exact: order matters and there is no prefix or fuzzy
    matching. Averages are updated as ``(old + new) / 2``.
    """

    name = "conversion_paths"

    async def analyze(
        self,
        journeys: Sequence[CustomerJourney],
        **kwargs: Any,
    ) -> dict[str, ConversionPath]:
        """Build conversion paths keyed by pattern.

        Args:
            journeys: Snapshot of all journeys; non-converted ones are ignored

        Returns:
            Freshly computed conversion paths
        """
        converted = [journey for journey in journeys if journey.converted]
        logger.info(
            f"Starting conversion path analysis over {len(converted)} converted journeys"
        )

        paths: dict[str, ConversionPath] = {}
        for journey in converted:
            key = path_key(journey)
            if key in paths:
                self._update_path(paths[key], journey)
            else:
                paths[key] = self._create_path(journey)

        logger.info(f"Conversion path analysis complete: {len(paths)} distinct paths")
        return paths

    def _create_path(self, journey: CustomerJourney) -> ConversionPath:
        path = journey.path
        steps = []
        for index, touchpoint in enumerate(path):
            to_next = 0
            if index < len(path) - 1:
                to_next = max(0, elapsed_ms(touchpoint.timestamp, path[index + 1].timestamp))
            steps.append(
                PathStep(
                    step=index + 1,
                    type=touchpoint.type,
                    channel=touchpoint.channel,
                    avg_duration_to_next_ms=to_next,
                    drop_off_rate=0.0,
                    value=touchpoint.value,
                )
            )

        return ConversionPath(
            path_id=self._generate_id("path"),
            pattern=[tp.path_signature for tp in path],
            frequency=1,
            conversion_rate=100.0,
            average_duration_ms=journey.duration_ms,
            average_touchpoints=journey.touchpoint_count,
            top_channels=list(journey.channels),
            top_sources=list(journey.sources),
            total_conversions=1,
            total_revenue=journey.conversion_value,
            average_order_value=journey.conversion_value,
            efficiency=journey.efficiency,
            drop_off_rate=0.0,
            satisfaction=journey.satisfaction,
            steps=steps,
        )

    def _update_path(self, path: ConversionPath, journey: CustomerJourney) -> None:
        path.frequency += 1
        path.total_conversions += 1
        path.total_revenue += journey.conversion_value
        path.average_order_value = path.total_revenue / path.total_conversions

        # Mean of the previous value and the new sample, not of all samples
        path.average_duration_ms = (path.average_duration_ms + journey.duration_ms) / 2
        path.average_touchpoints = (path.average_touchpoints + journey.touchpoint_count) / 2
        path.efficiency = (path.efficiency + journey.efficiency) / 2
        path.satisfaction = (path.satisfaction + journey.satisfaction) / 2

        path.last_analyzed = utc_now()
