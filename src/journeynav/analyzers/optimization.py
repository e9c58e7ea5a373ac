"""Optimization Analyzer for JourneyNav.

This analyzer turns the most frequent conversion paths into step-level
improvement opportunities.
"""

import logging
from typing import Any, Optional, Sequence

from journeynav.analyzers.base import BaseAnalyzer
from journeynav.models.analysis import (
    ConversionPath,
    CurrentMetrics,
    Effort,
    JourneyOptimization,
    OpportunityType,
    OptimizationOpportunity,
    ProjectedImpact,
    TieredRecommendations,
)
from journeynav.models.journey import CustomerJourney

logger = logging.getLogger(__name__)

PROJECTED_CONVERSION_INCREASE = 12.0
PROJECTED_REVENUE_FACTOR = 0.12
PROJECTED_SATISFACTION_INCREASE = 8.0
PROJECTED_TIME_TO_CONVERSION_REDUCTION = 15.0


class OptimizationAnalyzer(BaseAnalyzer):
    """Suggest improvements for the top conversion paths by frequency.

    Takes the mined paths through ``conversion_paths``; journeys are not
    read directly.
    """

    name = "optimizations"

    def __init__(
        self,
        top_paths: int = 5,
        friction_threshold_ms: float = 60_000,
        low_value_threshold: float = 30,
    ):
        """Initialize the analyzer.

        Args:
            top_paths: Number of most frequent paths to examine
            friction_threshold_ms: Time-to-next-step above which a step is slow
            low_value_threshold: Step value below which content needs work
        """
        self.top_paths = top_paths
        self.friction_threshold_ms = friction_threshold_ms
        self.low_value_threshold = low_value_threshold

    async def analyze(
        self,
        journeys: Sequence[CustomerJourney],
        conversion_paths: Optional[Sequence[ConversionPath]] = None,
        **kwargs: Any,
    ) -> dict[str, JourneyOptimization]:
        """Generate optimizations keyed by a freshly generated id.

        Args:
            journeys: Unused; accepted for interface compatibility
            conversion_paths: Mined conversion paths to rank

        Returns:
            One optimization per top path that has at least one opportunity
        """
        ranked = sorted(conversion_paths or [], key=lambda p: p.frequency, reverse=True)
        top = ranked[: self.top_paths]
        logger.info(f"Generating optimizations for top {len(top)} conversion paths")

        optimizations: dict[str, JourneyOptimization] = {}
        for path in top:
            optimization = self._analyze_path(path)
            if optimization is not None:
                optimizations[optimization.optimization_id] = optimization

        logger.info(f"Generated {len(optimizations)} journey optimizations")
        return optimizations

    def _find_opportunities(self, path: ConversionPath) -> list[OptimizationOpportunity]:
        opportunities = []
        for step in path.steps:
            if step.avg_duration_to_next_ms > self.friction_threshold_ms:
                opportunities.append(
                    OptimizationOpportunity(
                        type=OpportunityType.REDUCE_FRICTION,
                        touchpoint=step.type,
                        description=f"Users spend too long on {step.type} step",
                        expected_improvement=15,
                        confidence=70,
                        effort=Effort.MEDIUM,
                        priority=7,
                    )
                )
            if step.value < self.low_value_threshold:
                opportunities.append(
                    OptimizationOpportunity(
                        type=OpportunityType.IMPROVE_CONTENT,
                        touchpoint=step.type,
                        description=f"Enhance content quality for {step.type}",
                        expected_improvement=20,
                        confidence=60,
                        effort=Effort.HIGH,
                        priority=5,
                    )
                )
        return opportunities

    def _analyze_path(self, path: ConversionPath) -> Optional[JourneyOptimization]:
        opportunities = self._find_opportunities(path)
        if not opportunities:
            return None

        return JourneyOptimization(
            optimization_id=self._generate_id("opt"),
            journey_pattern=path.pattern_key,
            current_metrics=CurrentMetrics(
                conversion_rate=path.conversion_rate,
                average_duration_ms=path.average_duration_ms,
                satisfaction_score=path.satisfaction,
                drop_off_rate=path.drop_off_rate,
                efficiency=path.efficiency,
            ),
            opportunities=opportunities,
            recommendations=TieredRecommendations(
                immediate=["Focus on high-priority optimizations"],
                short_term=["Implement content improvements"],
                long_term=["Redesign journey flow"],
            ),
            projected_impact=ProjectedImpact(
                conversion_increase=PROJECTED_CONVERSION_INCREASE,
                revenue_increase=path.average_order_value * PROJECTED_REVENUE_FACTOR,
                customer_satisfaction_increase=PROJECTED_SATISFACTION_INCREASE,
                time_to_conversion=PROJECTED_TIME_TO_CONVERSION_REDUCTION,
            ),
        )
