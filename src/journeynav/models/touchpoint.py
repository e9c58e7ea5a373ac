"""Touchpoint data models."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from journeynav.models.base import BaseJNModel, ensure_utc


class TouchpointType(str, Enum):
    """Kinds of customer interaction the engine can track."""

    PAGE_VIEW = "page_view"
    CLICK = "click"
    FORM_SUBMISSION = "form_submission"
    DOWNLOAD = "download"
    VIDEO_PLAY = "video_play"
    SCROLL = "scroll"
    EMAIL_OPEN = "email_open"
    EMAIL_CLICK = "email_click"
    SOCIAL_SHARE = "social_share"
    CHAT_START = "chat_start"
    CALL_REQUEST = "call_request"
    DEMO_REQUEST = "demo_request"


class Channel(str, Enum):
    """Acquisition channel of a touchpoint."""

    WEB = "web"
    EMAIL = "email"
    SOCIAL = "social"
    PAID_ADS = "paid_ads"
    ORGANIC = "organic"
    DIRECT = "direct"
    REFERRAL = "referral"
    CHAT = "chat"
    PHONE = "phone"


class DeviceType(str, Enum):
    """Device the interaction happened on."""

    DESKTOP = "desktop"
    MOBILE = "mobile"
    TABLET = "tablet"


class ContentCategory(str, Enum):
    """Content category derived from page/content keywords."""

    BLOG = "blog"
    DEMO = "demo"
    PRICING = "pricing"
    FEATURES = "features"
    CASE_STUDY = "case_study"
    DOCUMENTATION = "documentation"
    SUPPORT = "support"
    COMPANY = "company"
    OTHER = "other"


class JourneyStage(str, Enum):
    """Funnel stage a touchpoint belongs to."""

    AWARENESS = "awareness"
    CONSIDERATION = "consideration"
    EVALUATION = "evaluation"
    PURCHASE = "purchase"


class ConversionType(str, Enum):
    """Types of conversions a touchpoint can trigger."""

    LEAD = "lead"
    TRIAL = "trial"
    PURCHASE = "purchase"


class TouchpointInput(BaseJNModel):
    """Raw touchpoint-creation request as delivered by a tracking layer.

    Enumerated fields are kept as plain strings here; the scorer validates
    them so that unknown values surface as ``InvalidTouchpointError``.
    """

    user_id: Optional[str] = Field(None, description="Known user identifier")
    session_id: str = Field(..., min_length=1, description="Session identifier")
    type: str = Field(..., description="Interaction type")
    channel: str = Field(..., description="Acquisition channel")
    source: str = Field(default="", description="Traffic source")
    medium: str = Field(default="", description="Traffic medium")
    campaign: Optional[str] = Field(None, description="Campaign name")

    page: Optional[str] = Field(None, description="Page path or URL")
    content: Optional[str] = Field(None, description="Content label")
    element: Optional[str] = Field(None, description="UI element interacted with")

    device_type: str = Field(default="desktop", description="Device category")
    location: Optional[str] = Field(None, description="Visitor location")
    referrer: Optional[str] = Field(None, description="HTTP referrer")

    conversion_value: Optional[float] = Field(None, ge=0.0)
    timestamp: Optional[datetime] = Field(
        None, description="Event time; ingestion time is used when omitted"
    )

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Store event times as timezone-aware UTC."""
        return ensure_utc(v) if v is not None else None


class Touchpoint(BaseJNModel):
    """A single scored customer interaction. Never mutated after creation."""

    model_config = {**BaseJNModel.model_config, "frozen": True}

    touchpoint_id: str
    timestamp: datetime
    user_id: Optional[str] = None
    session_id: str

    type: TouchpointType
    channel: Channel
    source: str = ""
    medium: str = ""
    campaign: Optional[str] = None

    page: Optional[str] = None
    content: Optional[str] = None
    element: Optional[str] = None
    category: ContentCategory = ContentCategory.OTHER

    device_type: DeviceType = DeviceType.DESKTOP
    location: Optional[str] = None
    referrer: Optional[str] = None

    value: int = Field(..., ge=0, le=100, description="Business value score")
    engagement: int = Field(..., ge=0, le=100, description="Engagement score")
    intent: int = Field(..., ge=0, le=100, description="Purchase intent score")

    journey_stage: JourneyStage
    is_conversion: bool = False
    conversion_type: Optional[ConversionType] = None
    conversion_value: Optional[float] = Field(None, ge=0.0)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def path_signature(self) -> str:
        """``type_channel`` key used by conversion path mining."""
        return f"{self.type}_{self.channel}"

    @property
    def dropoff_signature(self) -> str:
        """``type_channel_page`` key used by drop-off analysis."""
        return f"{self.type}_{self.channel}_{self.page or 'unknown'}"
