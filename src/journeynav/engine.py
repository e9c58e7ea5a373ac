"""Journey engine: wires scoring, stitching, analysis and queries together."""

import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from journeynav.analyzers import (
    ConversionPathAnalyzer,
    DropOffAnalyzer,
    OptimizationAnalyzer,
)
from journeynav.core.config import Settings, get_settings
from journeynav.core.exceptions import AnalysisError, StitchingError, ValidationError
from journeynav.logging.config import configure_logging
from journeynav.logging.context import LogContext
from journeynav.models.base import utc_now
from journeynav.models.journey import CustomerJourney
from journeynav.models.touchpoint import Touchpoint, TouchpointInput
from journeynav.notifications import EngineEvent, NotificationBus
from journeynav.query import JourneyQueryService
from journeynav.scheduler import AnalysisScheduler, JobTracker
from journeynav.scoring import score_touchpoint
from journeynav.stitcher import JourneyStitcher
from journeynav.stores.base import JourneyStore
from journeynav.stores.memory import InMemoryJourneyStore

logger = logging.getLogger(__name__)

DROPOFF_JOB = "dropoff"
CONVERSION_PATH_JOB = "conversion_paths"
OPTIMIZATION_JOB = "optimizations"


class JourneyEngine:
    """Customer journey tracking and analysis engine.

    One instance owns one journey store; create as many isolated engines as
    needed. Touchpoints are stitched synchronously on arrival, while drop-off
    analysis, conversion path mining and optimization generation run on
    their own schedules once :meth:`start` is awaited.
    """

    def __init__(
        self,
        settings: Settings,
        store: Optional[JourneyStore] = None,
        notifications: Optional[NotificationBus] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the engine.

        Args:
            settings: Application settings
            store: Journey store; an in-memory store is used when omitted
            notifications: Outbound notification bus; a private one is created
                when omitted
            clock: Source of the current time for ingestion and health checks
        """
        self.settings = settings
        self.store = store or InMemoryJourneyStore()
        self.notifications = notifications or NotificationBus()
        self.clock = clock

        self.stitcher = JourneyStitcher(
            self.store,
            notifications=self.notifications,
            active_window=settings.engine.active_window,
            anonymous_identity=settings.engine.anonymous_identity,
        )

        thresholds = settings.thresholds
        self.dropoff_analyzer = DropOffAnalyzer(
            min_dropoff_rate=thresholds.min_dropoff_rate,
            critical_dropoff_rate=thresholds.critical_dropoff_rate,
        )
        self.path_analyzer = ConversionPathAnalyzer()
        self.optimization_analyzer = OptimizationAnalyzer(
            top_paths=thresholds.top_paths_for_optimization,
            friction_threshold_ms=thresholds.friction_threshold_ms,
            low_value_threshold=thresholds.low_value_threshold,
        )

        self.tracker = JobTracker(started_at=self.clock())
        self.scheduler = AnalysisScheduler()
        self.query = JourneyQueryService(
            self.store,
            self.tracker,
            analysis_overdue=settings.health.analysis_overdue,
            clock=self.clock,
        )

    # =========================================================================
    # Ingestion
    # =========================================================================

    def track_touchpoint(
        self, raw: Union[TouchpointInput, Mapping[str, Any]]
    ) -> Touchpoint:
        """Score a raw event and stitch it into its identity's journey.

        Args:
            raw: Raw tracking fields

        Returns:
            The scored touchpoint

        Raises:
            ValidationError: If the input is malformed; nothing is stored
            StitchingError: If the journey update failed; nothing is stored
        """
        try:
            touchpoint = score_touchpoint(raw, timestamp=self.clock())
        except ValidationError as e:
            logger.warning(f"Rejected touchpoint: {e}")
            raise

        identity = self.stitcher.resolve_identity(touchpoint)
        with LogContext(user_id=identity, touchpoint_id=touchpoint.touchpoint_id):
            try:
                journey = self.stitcher.ingest(touchpoint)
            except StitchingError as e:
                self.notifications.publish(
                    EngineEvent.TRACKING_ERROR,
                    error="Touchpoint tracking failed",
                    details=str(e),
                    user_id=identity,
                )
                raise

            logger.debug(
                f"Tracked {touchpoint.type} on {touchpoint.channel} "
                f"into journey {journey.journey_id}"
            )

        self.notifications.publish(EngineEvent.TOUCHPOINT_TRACKED, touchpoint=touchpoint)
        return touchpoint

    # =========================================================================
    # Analysis jobs
    # =========================================================================

    async def _run_job(self, name: str, work: Callable[[], Awaitable[None]]) -> bool:
        if not self.tracker.try_begin(name):
            logger.warning(f"Skipping {name} analysis: previous run still in flight")
            return False

        completed_at = None
        try:
            with LogContext(job=name):
                await work()
            completed_at = self.clock()
            return True
        except Exception as e:
            error = AnalysisError(f"{name} analysis failed: {e}", job=name)
            logger.exception(str(error))
            self.notifications.publish(
                EngineEvent.ANALYSIS_ERROR,
                error=str(error),
                details=str(e),
                job=name,
            )
            return False
        finally:
            self.tracker.finish(name, completed_at)

    async def _analyze_dropoffs(self) -> None:
        analyses = await self.dropoff_analyzer.analyze(self.store.list_journeys())
        self.store.replace_dropoff_analyses(analyses)
        for analysis in analyses.values():
            self.notifications.publish(EngineEvent.DROPOFF_IDENTIFIED, analysis=analysis)

    async def _analyze_conversion_paths(self) -> None:
        paths = await self.path_analyzer.analyze(self.store.list_journeys())
        self.store.replace_conversion_paths(paths)
        self.notifications.publish(
            EngineEvent.CONVERSION_PATHS_ANALYZED, path_count=len(paths)
        )

    async def _generate_optimizations(self) -> None:
        optimizations = await self.optimization_analyzer.analyze(
            self.store.list_journeys(),
            conversion_paths=self.store.list_conversion_paths(),
        )
        self.store.replace_optimizations(optimizations)
        self.notifications.publish(
            EngineEvent.OPTIMIZATIONS_GENERATED, count=len(optimizations)
        )

    async def run_dropoff_analysis(self) -> bool:
        """Recompute drop-off analyses; False if skipped or failed."""
        return await self._run_job(DROPOFF_JOB, self._analyze_dropoffs)

    async def run_conversion_path_analysis(self) -> bool:
        """Re-mine conversion paths; False if skipped or failed."""
        return await self._run_job(CONVERSION_PATH_JOB, self._analyze_conversion_paths)

    async def run_optimization_generation(self) -> bool:
        """Regenerate optimizations from current paths; False if skipped or failed."""
        return await self._run_job(OPTIMIZATION_JOB, self._generate_optimizations)

    async def run_journey_analysis(self) -> bool:
        """Run drop-off analysis and path mining back to back."""
        dropoffs_done = await self.run_dropoff_analysis()
        paths_done = await self.run_conversion_path_analysis()
        if not (dropoffs_done and paths_done):
            return False

        self.notifications.publish(
            EngineEvent.JOURNEY_ANALYSIS_COMPLETE,
            journeys_analyzed=self.store.journey_count(),
        )
        return True

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Start periodic analysis according to the scheduler settings."""
        config = self.settings.scheduler
        if config.enabled and not self.scheduler.jobs:
            self.scheduler.add_job(
                DROPOFF_JOB, config.dropoff_interval_seconds, self.run_dropoff_analysis
            )
            self.scheduler.add_job(
                CONVERSION_PATH_JOB,
                config.conversion_path_interval_seconds,
                self.run_conversion_path_analysis,
            )
            self.scheduler.add_job(
                OPTIMIZATION_JOB,
                config.optimization_interval_seconds,
                self.run_optimization_generation,
            )

        if config.enabled:
            await self.scheduler.start()
        else:
            logger.info("Periodic analysis disabled by configuration")

        self.notifications.publish(
            EngineEvent.JOURNEY_TRACKING_INITIALIZED, status="ready"
        )

    async def stop(self) -> None:
        """Stop scheduling; in-memory state is kept as is."""
        await self.scheduler.stop()

    def clear_journey_data(self) -> None:
        """Drop every touchpoint, journey and analysis result."""
        self.store.clear()
        self.notifications.publish(EngineEvent.JOURNEY_DATA_CLEARED)

    # =========================================================================
    # Convenience queries
    # =========================================================================

    def get_journeys_for_identity(self, identity: str) -> list[CustomerJourney]:
        return self.query.get_journeys_for_identity(identity)


def create_engine(
    settings: Optional[Settings] = None,
    store: Optional[JourneyStore] = None,
    notifications: Optional[NotificationBus] = None,
) -> JourneyEngine:
    """Build an isolated engine from settings (loaded from the environment by default).

    The logging section of the settings is applied to the root logger.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    return JourneyEngine(
        settings,
        store=store,
        notifications=notifications,
    )
