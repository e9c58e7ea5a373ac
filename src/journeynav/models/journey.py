"""Customer journey aggregate models."""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from journeynav.models.base import BaseJNModel, utc_now
from journeynav.models.touchpoint import ConversionType, JourneyStage, Touchpoint


class JourneyStageSummary(BaseJNModel):
    """Touchpoints of one journey that fall into a single funnel stage."""

    stage: JourneyStage
    touchpoints: List[Touchpoint] = Field(default_factory=list)
    duration_ms: int = Field(default=0, ge=0)
    conversion_rate: float = Field(default=0.0, ge=0.0, le=1.0)


class CustomerJourney(BaseJNModel):
    """Ordered touchpoints from one identity, bounded by the activity window.

    Stored journeys are treated as immutable: the stitcher works on a deep
    copy and commits the copy back to the store.
    """

    journey_id: str
    user_id: str = Field(..., description="Owning identity")
    session_ids: List[str] = Field(default_factory=list)

    # Journey timeline
    start_date: datetime
    end_date: datetime
    duration_ms: int = Field(default=0, ge=0)
    touchpoint_count: int = Field(default=0, ge=0)

    # Journey path
    stages: List[JourneyStageSummary] = Field(default_factory=list)
    path: List[Touchpoint] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)
    sources: List[str] = Field(default_factory=list)

    # Outcome
    converted: bool = False
    conversion_type: Optional[ConversionType] = None
    conversion_value: float = Field(default=0.0, ge=0.0)
    journey_value: float = Field(default=0.0, ge=0.0)

    # Quality scores
    efficiency: float = Field(default=100.0, ge=10.0, le=100.0)
    engagement: float = Field(default=0.0, ge=0.0, le=100.0)
    intent: float = Field(default=0.0, ge=0.0, le=100.0)
    satisfaction: float = Field(default=0.0, ge=0.0, le=100.0)

    # Attribution
    first_touch: Touchpoint
    last_touch: Touchpoint
    assisting_touchpoints: List[Touchpoint] = Field(default_factory=list)

    last_updated: datetime = Field(default_factory=utc_now)

    def stage_summary(self, stage: JourneyStage) -> Optional[JourneyStageSummary]:
        """Return the summary for ``stage`` if the journey has reached it."""
        for summary in self.stages:
            if summary.stage == stage:
                return summary
        return None
