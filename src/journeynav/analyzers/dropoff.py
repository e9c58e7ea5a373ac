"""Drop-off Analyzer for JourneyNav.

This analyzer finds touchpoint signatures where non-converting journeys
tend to end.
"""

import logging
import math
from collections import Counter
from typing import Any, Sequence

from journeynav.analyzers.base import BaseAnalyzer
from journeynav.models.analysis import (
    DropOffAnalysis,
    DropOffReason,
    DropOffRecommendation,
    Effort,
    Priority,
    RecommendationType,
)
from journeynav.models.journey import CustomerJourney
from journeynav.models.touchpoint import Touchpoint

logger = logging.getLogger(__name__)

# Fixed distributions; device/time/source are not measured per drop-off yet
DEVICE_DISTRIBUTION = {"desktop": 0.4, "mobile": 0.5, "tablet": 0.1}
TIME_DISTRIBUTION = {"morning": 0.2, "afternoon": 0.5, "evening": 0.3}
SOURCE_DISTRIBUTION = {"organic": 0.3, "paid": 0.4, "direct": 0.2, "social": 0.1}

PATTERN_RULES = [
    ("form_submission", "form_abandonment"),
    ("pricing", "price_shock"),
    ("demo", "demo_hesitation"),
]


class DropOffAnalyzer(BaseAnalyzer):
    """Rank the signatures where journeys end without converting.

    A signature is ``type_channel_page``. Its drop-off rate is the number of
    non-converted journeys ending on it divided by every occurrence of it in
    any journey path.
    """

    name = "dropoff"

    def __init__(self, min_dropoff_rate: float = 0.3, critical_dropoff_rate: float = 0.5):
        """Initialize the analyzer.

        Args:
            min_dropoff_rate: Only rates strictly above this are materialized
            critical_dropoff_rate: Rates above this get a critical content fix
        """
        self.min_dropoff_rate = min_dropoff_rate
        self.critical_dropoff_rate = critical_dropoff_rate

    async def analyze(
        self,
        journeys: Sequence[CustomerJourney],
        **kwargs: Any,
    ) -> dict[str, DropOffAnalysis]:
        """Compute drop-off analyses keyed by signature.

        Args:
            journeys: Snapshot of all journeys

        Returns:
            Analyses for every signature above the drop-off threshold
        """
        logger.info(f"Starting drop-off analysis over {len(journeys)} journeys")

        totals: Counter[str] = Counter()
        dropoffs: Counter[str] = Counter()
        latest: dict[str, Touchpoint] = {}

        for journey in journeys:
            last_index = len(journey.path) - 1
            for index, touchpoint in enumerate(journey.path):
                signature = touchpoint.dropoff_signature
                totals[signature] += 1

                current = latest.get(signature)
                if current is None or touchpoint.timestamp >= current.timestamp:
                    latest[signature] = touchpoint

                if index == last_index and not journey.converted:
                    dropoffs[signature] += 1

        analyses: dict[str, DropOffAnalysis] = {}
        for signature, count in dropoffs.items():
            rate = count / totals[signature]
            if rate <= self.min_dropoff_rate:
                continue

            analyses[signature] = self._build_analysis(
                signature, latest[signature], rate, count
            )

        logger.info(
            f"Drop-off analysis complete: {len(analyses)} of {len(totals)} "
            f"signatures above {self.min_dropoff_rate:.0%}"
        )
        return analyses

    def _build_analysis(
        self, signature: str, touchpoint: Touchpoint, rate: float, frequency: int
    ) -> DropOffAnalysis:
        return DropOffAnalysis(
            analysis_id=self._generate_id("dropoff"),
            signature=signature,
            touchpoint=touchpoint,
            drop_off_rate=rate,
            impact_score=self.calculate_impact(rate, frequency),
            frequency=frequency,
            common_patterns=self._identify_patterns(signature),
            device_types=dict(DEVICE_DISTRIBUTION),
            time_patterns=dict(TIME_DISTRIBUTION),
            sources=dict(SOURCE_DISTRIBUTION),
            likely_reasons=self._identify_reasons(signature),
            recommendations=self._generate_recommendations(signature, rate),
        )

    @staticmethod
    def calculate_impact(rate: float, frequency: int) -> float:
        """Business impact: ``min(100, 70 * rate + 10 * ln(frequency))``."""
        return min(100.0, rate * 70 + math.log(frequency) * 10)

    def _identify_patterns(self, signature: str) -> list[str]:
        return [pattern for keyword, pattern in PATTERN_RULES if keyword in signature]

    def _identify_reasons(self, signature: str) -> list[DropOffReason]:
        reasons = []
        if "form" in signature:
            reasons.append(
                DropOffReason(
                    reason="Form complexity or length",
                    confidence=80,
                    evidence=[
                        "High abandonment on form pages",
                        "Common pattern in B2B sites",
                    ],
                )
            )
        if "pricing" in signature:
            reasons.append(
                DropOffReason(
                    reason="Price sensitivity",
                    confidence=75,
                    evidence=[
                        "Drop-off increases on pricing page",
                        "No follow-up engagement",
                    ],
                )
            )
        return reasons

    def _generate_recommendations(
        self, signature: str, rate: float
    ) -> list[DropOffRecommendation]:
        recommendations = []
        if "form" in signature:
            recommendations.append(
                DropOffRecommendation(
                    type=RecommendationType.UX,
                    priority=Priority.HIGH,
                    description=(
                        "Simplify form by reducing required fields and "
                        "implementing progressive disclosure"
                    ),
                    expected_impact=25,
                    effort=Effort.MEDIUM,
                )
            )
        if rate > self.critical_dropoff_rate:
            recommendations.append(
                DropOffRecommendation(
                    type=RecommendationType.CONTENT,
                    priority=Priority.CRITICAL,
                    description="Review and optimize page content and value proposition",
                    expected_impact=35,
                    effort=Effort.HIGH,
                )
            )
        return recommendations
