"""Read-only access to journeys and analysis results."""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional

from journeynav.core.exceptions import JourneyNotFoundError
from journeynav.models.analysis import (
    ConversionPath,
    DropOffAnalysis,
    HealthMetrics,
    HealthReport,
    HealthStatus,
    JourneyOptimization,
    JourneyVisualization,
    VisualizationEdge,
    VisualizationNode,
    VisualizationStage,
)
from journeynav.models.base import elapsed_ms, utc_now
from journeynav.models.journey import CustomerJourney
from journeynav.scheduler import JobTracker
from journeynav.stores.base import JourneyStore

logger = logging.getLogger(__name__)


class JourneyQueryService:
    """Query façade over the journey store.

    Intended to sit behind an external transport (GraphQL, REST); nothing
    here mutates state.
    """

    def __init__(
        self,
        store: JourneyStore,
        tracker: JobTracker,
        analysis_overdue: timedelta = timedelta(minutes=30),
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the query service.

        Args:
            store: Journey store to read from
            tracker: Analysis job state used by the health check
            analysis_overdue: Age of the last analysis after which health degrades
            clock: Source of the current time
        """
        self.store = store
        self.tracker = tracker
        self.analysis_overdue = analysis_overdue
        self.clock = clock

    def get_journeys_for_identity(self, identity: str) -> List[CustomerJourney]:
        """All journeys, open or closed, owned by ``identity``."""
        return self.store.list_journeys_for_identity(identity)

    def get_journey_visualization(self, journey_id: str) -> JourneyVisualization:
        """Build the node/edge graph for a journey.

        Raises:
            JourneyNotFoundError: If the journey id is unknown
        """
        journey = self.store.get_journey(journey_id)
        if journey is None:
            raise JourneyNotFoundError(journey_id)

        nodes = [
            VisualizationNode(
                id=tp.touchpoint_id,
                type=tp.type,
                label=f"{tp.type} ({tp.channel})",
                value=tp.value,
            )
            for tp in journey.path
        ]
        edges = [
            VisualizationEdge(
                from_touchpoint=current.touchpoint_id,
                to_touchpoint=following.touchpoint_id,
                duration_ms=elapsed_ms(current.timestamp, following.timestamp),
            )
            for current, following in zip(journey.path, journey.path[1:])
        ]
        stages = [
            VisualizationStage(
                stage=summary.stage,
                touchpoints=len(summary.touchpoints),
                conversion_rate=summary.conversion_rate,
            )
            for summary in journey.stages
        ]

        return JourneyVisualization(journey=journey, nodes=nodes, edges=edges, stages=stages)

    def list_conversion_paths(self, limit: int = 10) -> List[ConversionPath]:
        """Top conversion paths by frequency."""
        paths = sorted(
            self.store.list_conversion_paths(), key=lambda p: p.frequency, reverse=True
        )
        return paths[: max(0, limit)]

    def list_dropoff_analyses(self, limit: int = 10) -> List[DropOffAnalysis]:
        """Top drop-off analyses by impact score."""
        analyses = sorted(
            self.store.list_dropoff_analyses(),
            key=lambda a: a.impact_score,
            reverse=True,
        )
        return analyses[: max(0, limit)]

    def list_optimizations(self, limit: int = 5) -> List[JourneyOptimization]:
        """Top optimizations by projected conversion increase."""
        optimizations = sorted(
            self.store.list_optimizations(),
            key=lambda o: o.projected_impact.conversion_increase,
            reverse=True,
        )
        return optimizations[: max(0, limit)]

    def health_check(self, now: Optional[datetime] = None) -> HealthReport:
        """Summarize engine health.

        Unhealthy when no journeys are tracked; otherwise degraded when the
        last analysis is overdue or an analysis is running; otherwise healthy.
        """
        now = now or self.clock()
        metrics = HealthMetrics(
            journeys_tracked=self.store.journey_count(),
            conversion_paths=len(self.store.list_conversion_paths()),
            dropoff_analyses=len(self.store.list_dropoff_analyses()),
            optimizations=len(self.store.list_optimizations()),
        )

        issues: List[str] = []
        status = HealthStatus.HEALTHY

        running = self.tracker.running_jobs()
        if running:
            issues.append(f"Analysis currently in progress: {', '.join(running)}")
            status = HealthStatus.DEGRADED

        last_analysis = self.tracker.last_completed_at
        if now - last_analysis > self.analysis_overdue:
            issues.append("Analysis overdue")
            status = HealthStatus.DEGRADED

        if metrics.journeys_tracked == 0:
            issues.append("No journeys being tracked")
            status = HealthStatus.UNHEALTHY

        if status != HealthStatus.HEALTHY:
            logger.warning(f"Health check {status.value}: {'; '.join(issues)}")

        return HealthReport(
            status=status,
            metrics=metrics,
            issues=issues,
            last_analysis=last_analysis,
            running_jobs=running,
        )
