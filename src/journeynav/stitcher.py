"""Journey stitching: assigns each touchpoint to an open or new journey."""

import logging
from datetime import timedelta
from typing import Optional
from uuid import uuid4

from journeynav.core.exceptions import StitchingError
from journeynav.models.base import elapsed_ms, utc_now
from journeynav.models.journey import CustomerJourney, JourneyStageSummary
from journeynav.models.touchpoint import Touchpoint
from journeynav.notifications import EngineEvent, NotificationBus
from journeynav.stores.base import JourneyStore

logger = logging.getLogger(__name__)

ANONYMOUS_IDENTITY = "anonymous"
DEFAULT_ACTIVE_WINDOW = timedelta(minutes=30)

MIN_EFFICIENCY = 10.0
MAX_EFFICIENCY = 100.0
EFFICIENCY_STEP_PENALTY = 10.0
SATISFACTION_EFFICIENCY_WEIGHT = 0.4
SATISFACTION_ENGAGEMENT_WEIGHT = 0.6


def calculate_efficiency(touchpoint_count: int, converted: bool) -> float:
    """Directness of a path: 100 at the optimal length, minus 10 per extra step."""
    optimal_length = 2 if converted else 1
    efficiency = MAX_EFFICIENCY - (
        (touchpoint_count - optimal_length) * EFFICIENCY_STEP_PENALTY
    )
    return min(MAX_EFFICIENCY, max(MIN_EFFICIENCY, efficiency))


def recalculate_journey_metrics(journey: CustomerJourney) -> None:
    """Recompute efficiency, engagement, intent and satisfaction in place."""
    journey.efficiency = calculate_efficiency(journey.touchpoint_count, journey.converted)
    journey.engagement = sum(tp.engagement for tp in journey.path) / len(journey.path)
    journey.intent = float(max(tp.intent for tp in journey.path))
    journey.satisfaction = (
        journey.efficiency * SATISFACTION_EFFICIENCY_WEIGHT
        + journey.engagement * SATISFACTION_ENGAGEMENT_WEIGHT
    )


def _stage_conversion_rate(summary: JourneyStageSummary) -> float:
    conversions = sum(1 for tp in summary.touchpoints if tp.is_conversion)
    return conversions / len(summary.touchpoints)


class JourneyStitcher:
    """Extends the identity's active journey or starts a new one.

    A journey is active while the gap between its last touchpoint and the
    incoming one is shorter than ``active_window``. Closed journeys are never
    reopened.
    """

    def __init__(
        self,
        store: JourneyStore,
        notifications: Optional[NotificationBus] = None,
        active_window: timedelta = DEFAULT_ACTIVE_WINDOW,
        anonymous_identity: str = ANONYMOUS_IDENTITY,
    ):
        """Initialize the stitcher.

        Args:
            store: Journey store that owns all journey state
            notifications: Bus for ``journey_updated`` events
            active_window: Inactivity gap after which a journey is closed
            anonymous_identity: Identity used for touchpoints without a user id
        """
        self.store = store
        self.notifications = notifications
        self.active_window = active_window
        self.anonymous_identity = anonymous_identity

    def resolve_identity(self, touchpoint: Touchpoint) -> str:
        return touchpoint.user_id or self.anonymous_identity

    def find_active_journey(self, identity: str, touchpoint: Touchpoint) -> Optional[CustomerJourney]:
        """Latest journey of ``identity`` if still inside the active window."""
        return self.store.get_active_journey(
            identity, touchpoint.timestamp, self.active_window
        )

    def ingest(self, touchpoint: Touchpoint) -> CustomerJourney:
        """Stitch a scored touchpoint into a journey and commit it.

        Args:
            touchpoint: Fully scored touchpoint

        Returns:
            The committed journey containing ``touchpoint``

        Raises:
            StitchingError: If the journey could not be updated; the store is
                left exactly as it was
        """
        identity = self.resolve_identity(touchpoint)

        try:
            with self.store.transaction():
                active = self.find_active_journey(identity, touchpoint)
                if active is None:
                    journey = self.create_journey(identity, touchpoint)
                    logger.debug(f"Started journey {journey.journey_id} for {identity}")
                else:
                    journey = active.model_copy(deep=True)
                    self.update_journey(journey, touchpoint)

                self._commit(identity, touchpoint, journey)
        except StitchingError:
            raise
        except Exception as e:
            logger.error(f"Failed to stitch touchpoint {touchpoint.touchpoint_id}: {e}")
            raise StitchingError(f"Journey update failed: {e}", identity=identity) from e

        if self.notifications is not None:
            self.notifications.publish(
                EngineEvent.JOURNEY_UPDATED,
                journey_id=journey.journey_id,
                user_id=identity,
                touchpoint=touchpoint,
            )
        return journey

    def _commit(self, identity: str, touchpoint: Touchpoint, journey: CustomerJourney) -> None:
        previous = self.store.put_journey(journey)
        try:
            self.store.append_touchpoint(identity, touchpoint)
        except Exception:
            self.store.restore_journey(journey.journey_id, previous)
            raise

    def create_journey(self, identity: str, touchpoint: Touchpoint) -> CustomerJourney:
        """Open a new journey seeded with a single touchpoint."""
        journey = CustomerJourney(
            journey_id=f"journey_{uuid4().hex}",
            user_id=identity,
            session_ids=[touchpoint.session_id],
            start_date=touchpoint.timestamp,
            end_date=touchpoint.timestamp,
            duration_ms=0,
            touchpoint_count=1,
            stages=[
                JourneyStageSummary(
                    stage=touchpoint.journey_stage,
                    touchpoints=[touchpoint],
                    conversion_rate=1.0 if touchpoint.is_conversion else 0.0,
                )
            ],
            path=[touchpoint],
            channels=[touchpoint.channel],
            sources=[touchpoint.source],
            converted=touchpoint.is_conversion,
            conversion_type=touchpoint.conversion_type,
            conversion_value=touchpoint.conversion_value or 0.0,
            journey_value=touchpoint.value,
            first_touch=touchpoint,
            last_touch=touchpoint,
            assisting_touchpoints=[],
        )
        recalculate_journey_metrics(journey)
        return journey

    def update_journey(self, journey: CustomerJourney, touchpoint: Touchpoint) -> None:
        """Append ``touchpoint`` to ``journey`` and refresh every aggregate."""
        journey.end_date = max(journey.end_date, touchpoint.timestamp)
        journey.duration_ms = max(0, elapsed_ms(journey.start_date, journey.end_date))
        journey.touchpoint_count += 1
        journey.last_updated = utc_now()

        journey.path.append(touchpoint)

        if touchpoint.channel not in journey.channels:
            journey.channels.append(touchpoint.channel)
        if touchpoint.source not in journey.sources:
            journey.sources.append(touchpoint.source)
        if touchpoint.session_id not in journey.session_ids:
            journey.session_ids.append(touchpoint.session_id)

        summary = journey.stage_summary(touchpoint.journey_stage)
        if summary is None:
            journey.stages.append(
                JourneyStageSummary(
                    stage=touchpoint.journey_stage,
                    touchpoints=[touchpoint],
                    conversion_rate=1.0 if touchpoint.is_conversion else 0.0,
                )
            )
        else:
            summary.touchpoints.append(touchpoint)
            summary.duration_ms = max(
                0,
                elapsed_ms(summary.touchpoints[0].timestamp, touchpoint.timestamp),
            )
            summary.conversion_rate = _stage_conversion_rate(summary)

        # Conversion is sticky: a later non-converting touchpoint never resets it
        if touchpoint.is_conversion:
            journey.converted = True
            journey.conversion_type = touchpoint.conversion_type
            journey.conversion_value += touchpoint.conversion_value or 0.0

        journey.journey_value += touchpoint.value

        journey.assisting_touchpoints = journey.path[1:-1]
        journey.last_touch = touchpoint

        recalculate_journey_metrics(journey)
