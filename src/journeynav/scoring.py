"""Touchpoint scoring.

Pure functions that turn a raw tracking event into a fully populated
:class:`~journeynav.models.touchpoint.Touchpoint`. The weights are simple
heuristics; every score is capped at 100.
"""

import logging
from datetime import datetime
from typing import Any, Mapping, Optional, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from journeynav.core.exceptions import InvalidTouchpointError, ValidationError
from journeynav.models.base import utc_now
from journeynav.models.touchpoint import (
    Channel,
    ContentCategory,
    ConversionType,
    DeviceType,
    JourneyStage,
    Touchpoint,
    TouchpointInput,
    TouchpointType,
)

logger = logging.getLogger(__name__)

MAX_SCORE = 100

# First matching rule wins
CATEGORY_RULES: list[tuple[tuple[str, ...], ContentCategory]] = [
    (("blog", "article"), ContentCategory.BLOG),
    (("demo", "trial"), ContentCategory.DEMO),
    (("pricing", "plans"), ContentCategory.PRICING),
    (("feature", "product"), ContentCategory.FEATURES),
    (("case-study", "success"), ContentCategory.CASE_STUDY),
    (("doc", "guide"), ContentCategory.DOCUMENTATION),
    (("contact", "support"), ContentCategory.SUPPORT),
    (("about", "company"), ContentCategory.COMPANY),
]

VALUE_BASE = 10
VALUE_TYPE_BONUS = {
    TouchpointType.FORM_SUBMISSION: 40,
    TouchpointType.DEMO_REQUEST: 50,
    TouchpointType.DOWNLOAD: 30,
    TouchpointType.VIDEO_PLAY: 20,
    TouchpointType.PAGE_VIEW: 5,
    TouchpointType.CLICK: 10,
}
VALUE_TYPE_DEFAULT = 5
VALUE_CHANNEL_BONUS = {
    Channel.DIRECT: 20,
    Channel.ORGANIC: 15,
    Channel.EMAIL: 25,
    Channel.SOCIAL: 10,
    Channel.PAID_ADS: 5,
}
VALUE_PAGE_BONUS = {"pricing": 30, "demo": 25, "trial": 35, "contact": 20}

ENGAGEMENT_BASE = 20
ENGAGEMENT_TYPE_BONUS = {
    TouchpointType.SCROLL: 10,
    TouchpointType.VIDEO_PLAY: 20,
    TouchpointType.FORM_SUBMISSION: 40,
    TouchpointType.DOWNLOAD: 30,
}
# Stand-in for time-on-session, which is not measured at ingestion time
ENGAGEMENT_SESSION_BONUS = 20

INTENT_BASE = 10
INTENT_TYPE_BONUS = {
    TouchpointType.DEMO_REQUEST: 50,
    TouchpointType.FORM_SUBMISSION: 30,
    TouchpointType.CALL_REQUEST: 45,
}
INTENT_PAGE_BONUS = {"pricing": 40, "trial": 35, "demo": 30, "contact": 25}

PURCHASE_KEYWORDS = ("trial", "purchase")
EVALUATION_KEYWORDS = ("pricing", "comparison", "case-study")
CONSIDERATION_KEYWORDS = ("features", "product", "guide")

# Shorthand channel names accepted on input
CHANNEL_ALIASES = {"paid": Channel.PAID_ADS}

CONVERSION_TYPES = frozenset(
    {
        TouchpointType.FORM_SUBMISSION,
        TouchpointType.DEMO_REQUEST,
        TouchpointType.CALL_REQUEST,
    }
)


def _lower(text: Optional[str]) -> str:
    return (text or "").lower()


def _page_bonus(page: Optional[str], bonuses: Mapping[str, int]) -> int:
    lowered = _lower(page)
    return sum(bonus for keyword, bonus in bonuses.items() if keyword in lowered)


def categorize_content(text: Optional[str]) -> ContentCategory:
    """Classify content or page text by keyword.

    Args:
        text: Content label or page path

    Returns:
        The category of the first matching rule, or ``other``
    """
    lowered = _lower(text)
    if not lowered:
        return ContentCategory.OTHER

    for keywords, category in CATEGORY_RULES:
        if any(keyword in lowered for keyword in keywords):
            return category
    return ContentCategory.OTHER


def calculate_value(
    touchpoint_type: TouchpointType, channel: Channel, page: Optional[str]
) -> int:
    """Business value score (0-100)."""
    value = VALUE_BASE
    value += VALUE_TYPE_BONUS.get(touchpoint_type, VALUE_TYPE_DEFAULT)
    value += VALUE_CHANNEL_BONUS.get(channel, 0)
    value += _page_bonus(page, VALUE_PAGE_BONUS)
    return min(MAX_SCORE, value)


def calculate_engagement(touchpoint_type: TouchpointType) -> int:
    """Engagement score (0-100)."""
    score = ENGAGEMENT_BASE + ENGAGEMENT_TYPE_BONUS.get(touchpoint_type, 0)
    score += ENGAGEMENT_SESSION_BONUS
    return min(MAX_SCORE, score)


def calculate_intent(touchpoint_type: TouchpointType, page: Optional[str]) -> int:
    """Purchase intent score (0-100)."""
    score = INTENT_BASE + INTENT_TYPE_BONUS.get(touchpoint_type, 0)
    score += _page_bonus(page, INTENT_PAGE_BONUS)
    return min(MAX_SCORE, score)


def determine_journey_stage(
    touchpoint_type: TouchpointType, page: Optional[str], content: Optional[str]
) -> JourneyStage:
    """Pick the funnel stage, checking purchase, evaluation, then consideration."""
    text = f"{_lower(page)} {_lower(content)}"

    if touchpoint_type == TouchpointType.DEMO_REQUEST or any(
        keyword in text for keyword in PURCHASE_KEYWORDS
    ):
        return JourneyStage.PURCHASE
    if any(keyword in text for keyword in EVALUATION_KEYWORDS):
        return JourneyStage.EVALUATION
    if any(keyword in text for keyword in CONSIDERATION_KEYWORDS):
        return JourneyStage.CONSIDERATION
    return JourneyStage.AWARENESS


def is_conversion(
    touchpoint_type: TouchpointType, conversion_value: Optional[float]
) -> bool:
    """Whether the interaction counts as a conversion."""
    return touchpoint_type in CONVERSION_TYPES or bool(
        conversion_value is not None and conversion_value > 0
    )


def conversion_type_for(
    touchpoint_type: TouchpointType, conversion_value: Optional[float]
) -> Optional[ConversionType]:
    """Conversion type, or None when the touchpoint is not a conversion."""
    if not is_conversion(touchpoint_type, conversion_value):
        return None
    if touchpoint_type == TouchpointType.DEMO_REQUEST:
        return ConversionType.TRIAL
    if touchpoint_type == TouchpointType.FORM_SUBMISSION:
        return ConversionType.LEAD
    if conversion_value is not None and conversion_value > 0:
        return ConversionType.PURCHASE
    return ConversionType.LEAD


def _parse_enum(enum_cls, field: str, raw: Any):
    try:
        return enum_cls(raw)
    except ValueError:
        raise InvalidTouchpointError(field=field, value=raw) from None


def _coerce_input(raw: Union[TouchpointInput, Mapping[str, Any]]) -> TouchpointInput:
    if isinstance(raw, TouchpointInput):
        return raw
    try:
        return TouchpointInput.model_validate(raw)
    except PydanticValidationError as e:
        raise ValidationError(f"Malformed touchpoint: {e}") from e


def score_touchpoint(
    raw: Union[TouchpointInput, Mapping[str, Any]],
    timestamp: Optional[datetime] = None,
    touchpoint_id: Optional[str] = None,
) -> Touchpoint:
    """Validate a raw event and compute all derived touchpoint fields.

    Args:
        raw: Raw tracking fields, either as a ``TouchpointInput`` or a mapping
        timestamp: Fallback event time for inputs that carry none; defaults to now
        touchpoint_id: Explicit id; a fresh one is generated when omitted

    Returns:
        A frozen, fully scored Touchpoint

    Raises:
        InvalidTouchpointError: If type, channel or device type is unknown
        ValidationError: If required fields are missing or malformed
    """
    data = _coerce_input(raw)

    touchpoint_type = _parse_enum(TouchpointType, "type", data.type)
    channel = _parse_enum(
        Channel, "channel", CHANNEL_ALIASES.get(data.channel, data.channel)
    )
    device_type = _parse_enum(DeviceType, "device_type", data.device_type)

    return Touchpoint(
        touchpoint_id=touchpoint_id or f"touchpoint_{uuid4().hex}",
        timestamp=data.timestamp or timestamp or utc_now(),
        user_id=data.user_id,
        session_id=data.session_id,
        type=touchpoint_type,
        channel=channel,
        source=data.source,
        medium=data.medium,
        campaign=data.campaign,
        page=data.page,
        content=data.content,
        element=data.element,
        category=categorize_content(data.content or data.page),
        device_type=device_type,
        location=data.location,
        referrer=data.referrer,
        value=calculate_value(touchpoint_type, channel, data.page),
        engagement=calculate_engagement(touchpoint_type),
        intent=calculate_intent(touchpoint_type, data.page),
        journey_stage=determine_journey_stage(
            touchpoint_type, data.page, data.content
        ),
        is_conversion=is_conversion(touchpoint_type, data.conversion_value),
        conversion_type=conversion_type_for(touchpoint_type, data.conversion_value),
        conversion_value=data.conversion_value,
    )
