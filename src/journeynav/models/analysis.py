"""Models produced by the analysis jobs and served by the query layer."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import Field

from journeynav.models.base import BaseJNModel, utc_now
from journeynav.models.journey import CustomerJourney
from journeynav.models.touchpoint import Touchpoint


class Effort(str, Enum):
    """Implementation effort estimate."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(str, Enum):
    """Recommendation priority."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class RecommendationType(str, Enum):
    """Area a drop-off recommendation addresses."""

    CONTENT = "content"
    UX = "ux"
    TECHNICAL = "technical"
    TARGETING = "targeting"
    TIMING = "timing"


class OpportunityType(str, Enum):
    """Kind of journey optimization opportunity."""

    REDUCE_FRICTION = "reduce_friction"
    IMPROVE_CONTENT = "improve_content"
    OPTIMIZE_TIMING = "optimize_timing"
    ENHANCE_PERSONALIZATION = "enhance_personalization"
    STREAMLINE_PROCESS = "streamline_process"


class HealthStatus(str, Enum):
    """Overall engine health."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


# ---------------------------------------------------------------------------
# Conversion paths
# ---------------------------------------------------------------------------


class PathStep(BaseJNModel):
    """One step of a mined conversion path."""

    step: int = Field(..., ge=1)
    type: str
    channel: str
    avg_duration_to_next_ms: float = Field(default=0.0, ge=0.0)
    drop_off_rate: float = 0.0
    value: float = Field(default=0.0, ge=0.0)


class ConversionPath(BaseJNModel):
    """Frequency and revenue statistics for one ordered touchpoint pattern."""

    path_id: str
    pattern: List[str]
    frequency: int = Field(default=1, ge=1)
    conversion_rate: float = 100.0

    average_duration_ms: float = Field(default=0.0, ge=0.0)
    average_touchpoints: float = Field(default=0.0, ge=0.0)
    top_channels: List[str] = Field(default_factory=list)
    top_sources: List[str] = Field(default_factory=list)

    total_conversions: int = Field(default=1, ge=0)
    total_revenue: float = Field(default=0.0, ge=0.0)
    average_order_value: float = Field(default=0.0, ge=0.0)

    efficiency: float = 0.0
    drop_off_rate: float = 0.0
    satisfaction: float = 0.0

    steps: List[PathStep] = Field(default_factory=list)
    last_analyzed: datetime = Field(default_factory=utc_now)

    @property
    def pattern_key(self) -> str:
        """Pattern joined the way it is keyed in the store."""
        return "->".join(self.pattern)


# ---------------------------------------------------------------------------
# Drop-offs
# ---------------------------------------------------------------------------


class DropOffReason(BaseJNModel):
    """Rule-based explanation for a drop-off."""

    reason: str
    confidence: int = Field(..., ge=0, le=100)
    evidence: List[str] = Field(default_factory=list)


class DropOffRecommendation(BaseJNModel):
    """Suggested fix for a drop-off hotspot."""

    type: RecommendationType
    priority: Priority
    description: str
    expected_impact: int = Field(..., ge=0, le=100)
    effort: Effort


class DropOffAnalysis(BaseJNModel):
    """A terminal, non-converting touchpoint signature with a high drop-off rate."""

    analysis_id: str
    signature: str = Field(..., description="type_channel_page key")
    touchpoint: Touchpoint = Field(..., description="Most recent matching touchpoint")

    drop_off_rate: float = Field(..., ge=0.0, le=1.0)
    impact_score: float = Field(..., le=100.0)
    frequency: int = Field(..., ge=1, description="Journeys that ended here")

    common_patterns: List[str] = Field(default_factory=list)
    device_types: Dict[str, float] = Field(default_factory=dict)
    time_patterns: Dict[str, float] = Field(default_factory=dict)
    sources: Dict[str, float] = Field(default_factory=dict)

    likely_reasons: List[DropOffReason] = Field(default_factory=list)
    recommendations: List[DropOffRecommendation] = Field(default_factory=list)

    timestamp: datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Optimizations
# ---------------------------------------------------------------------------


class CurrentMetrics(BaseJNModel):
    """Snapshot of the path an optimization was derived from."""

    conversion_rate: float
    average_duration_ms: float
    satisfaction_score: float
    drop_off_rate: float
    efficiency: float


class OptimizationOpportunity(BaseJNModel):
    """A single improvement suggested for one path step."""

    type: OpportunityType
    touchpoint: str
    description: str
    expected_improvement: float = Field(..., description="% improvement")
    confidence: int = Field(..., ge=0, le=100)
    effort: Effort
    priority: int = Field(..., ge=1, le=10)


class TieredRecommendations(BaseJNModel):
    """Recommendation buckets by time horizon."""

    immediate: List[str] = Field(default_factory=list)
    short_term: List[str] = Field(default_factory=list)
    long_term: List[str] = Field(default_factory=list)


class ProjectedImpact(BaseJNModel):
    """Expected effect of applying an optimization."""

    conversion_increase: float = Field(..., description="% increase")
    revenue_increase: float = Field(..., description="Absolute revenue increase")
    customer_satisfaction_increase: float = Field(..., description="% increase")
    time_to_conversion: float = Field(..., description="% reduction")


class JourneyOptimization(BaseJNModel):
    """Improvement opportunities derived from a top conversion path."""

    optimization_id: str
    journey_pattern: str
    current_metrics: CurrentMetrics
    opportunities: List[OptimizationOpportunity]
    recommendations: TieredRecommendations
    projected_impact: ProjectedImpact
    generated_at: datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------


class VisualizationNode(BaseJNModel):
    id: str
    type: str
    label: str
    value: float


class VisualizationEdge(BaseJNModel):
    from_touchpoint: str
    to_touchpoint: str
    duration_ms: int


class VisualizationStage(BaseJNModel):
    stage: str
    touchpoints: int
    conversion_rate: float


class JourneyVisualization(BaseJNModel):
    """Node/edge graph of a journey plus per-stage counts."""

    journey: CustomerJourney
    nodes: List[VisualizationNode] = Field(default_factory=list)
    edges: List[VisualizationEdge] = Field(default_factory=list)
    stages: List[VisualizationStage] = Field(default_factory=list)


class HealthMetrics(BaseJNModel):
    journeys_tracked: int = 0
    conversion_paths: int = 0
    dropoff_analyses: int = 0
    optimizations: int = 0


class HealthReport(BaseJNModel):
    """Result of the engine health check."""

    status: HealthStatus
    metrics: HealthMetrics
    issues: List[str] = Field(default_factory=list)
    last_analysis: Optional[datetime] = None
    running_jobs: List[str] = Field(default_factory=list)
