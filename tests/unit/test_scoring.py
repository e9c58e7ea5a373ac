"""Tests for touchpoint scoring."""

from datetime import datetime, timedelta, timezone

import pytest

from journeynav.core.exceptions import InvalidTouchpointError, ValidationError
from journeynav.models.touchpoint import (
    Channel,
    ContentCategory,
    ConversionType,
    JourneyStage,
    TouchpointType,
)
from journeynav.scoring import (
    calculate_engagement,
    calculate_intent,
    calculate_value,
    categorize_content,
    conversion_type_for,
    determine_journey_stage,
    is_conversion,
    score_touchpoint,
)


class TestCategorizeContent:
    """Test keyword content categorization."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("/blog/how-to", ContentCategory.BLOG),
            ("/pricing", ContentCategory.PRICING),
            ("Product Tour", ContentCategory.FEATURES),
            ("Case-Study: Acme", ContentCategory.CASE_STUDY),
            ("/docs/setup", ContentCategory.DOCUMENTATION),
            ("/about-us", ContentCategory.COMPANY),
            ("/random", ContentCategory.OTHER),
        ],
    )
    def test_keyword_categories(self, text, expected) -> None:
        """Test that keywords map to their category."""
        assert categorize_content(text) == expected

    def test_first_rule_wins(self) -> None:
        """Test that the earliest matching rule is used."""
        assert categorize_content("/blog/product-launch") == ContentCategory.BLOG

    @pytest.mark.parametrize("text", [None, ""])
    def test_missing_text(self, text) -> None:
        """Test that missing text is categorized as other."""
        assert categorize_content(text) == ContentCategory.OTHER


class TestScores:
    """Test value, engagement and intent scores."""

    def test_value_for_pricing_page_view(self) -> None:
        """Test value of a web page view on the pricing page."""
        assert calculate_value(TouchpointType.PAGE_VIEW, Channel.WEB, "/pricing") == 45

    def test_value_channel_bonus(self) -> None:
        """Test the email channel bonus."""
        assert calculate_value(TouchpointType.CLICK, Channel.EMAIL, None) == 45

    def test_value_is_capped(self) -> None:
        """Test that value never exceeds 100."""
        assert calculate_value(TouchpointType.DEMO_REQUEST, Channel.EMAIL, "/demo") == 100

    def test_value_unlisted_type_gets_default(self) -> None:
        """Test the default type bonus for unlisted touchpoint types."""
        assert calculate_value(TouchpointType.SCROLL, Channel.REFERRAL, None) == 15

    def test_engagement(self) -> None:
        """Test engagement includes the session bonus."""
        assert calculate_engagement(TouchpointType.PAGE_VIEW) == 40
        assert calculate_engagement(TouchpointType.FORM_SUBMISSION) == 80

    def test_intent(self) -> None:
        """Test intent type and page bonuses."""
        assert calculate_intent(TouchpointType.PAGE_VIEW, "/pricing") == 50
        assert calculate_intent(TouchpointType.DEMO_REQUEST, "/demo") == 90
        assert calculate_intent(TouchpointType.CALL_REQUEST, "/pricing-trial") == 100


class TestJourneyStage:
    """Test funnel stage detection."""

    def test_demo_request_is_purchase(self) -> None:
        """Test that demo requests are always purchase stage."""
        assert (
            determine_journey_stage(TouchpointType.DEMO_REQUEST, "/blog", None)
            == JourneyStage.PURCHASE
        )

    def test_purchase_before_evaluation(self) -> None:
        """Test that purchase keywords win over evaluation keywords."""
        assert (
            determine_journey_stage(TouchpointType.PAGE_VIEW, "/pricing/trial", None)
            == JourneyStage.PURCHASE
        )

    def test_evaluation(self) -> None:
        """Test evaluation keywords."""
        assert (
            determine_journey_stage(TouchpointType.PAGE_VIEW, "/pricing", None)
            == JourneyStage.EVALUATION
        )

    def test_consideration_from_content(self) -> None:
        """Test that content text is checked as well as page."""
        assert (
            determine_journey_stage(TouchpointType.CLICK, "/home", "features tour")
            == JourneyStage.CONSIDERATION
        )

    def test_awareness_default(self) -> None:
        """Test the fallback stage."""
        assert (
            determine_journey_stage(TouchpointType.PAGE_VIEW, None, None)
            == JourneyStage.AWARENESS
        )


class TestConversion:
    """Test conversion detection."""

    @pytest.mark.parametrize(
        "touchpoint_type,value,expected",
        [
            (TouchpointType.FORM_SUBMISSION, None, ConversionType.LEAD),
            (TouchpointType.DEMO_REQUEST, None, ConversionType.TRIAL),
            (TouchpointType.CALL_REQUEST, None, ConversionType.LEAD),
            (TouchpointType.DOWNLOAD, 99.0, ConversionType.PURCHASE),
            (TouchpointType.PAGE_VIEW, None, None),
            (TouchpointType.PAGE_VIEW, 0.0, None),
        ],
    )
    def test_conversion_type(self, touchpoint_type, value, expected) -> None:
        """Test conversion type by touchpoint type and value."""
        assert conversion_type_for(touchpoint_type, value) == expected
        assert is_conversion(touchpoint_type, value) is (expected is not None)


class TestScoreTouchpoint:
    """Test full touchpoint scoring."""

    def test_scores_all_fields(self, make_raw, base_time) -> None:
        """Test that a raw payload becomes a fully scored touchpoint."""
        touchpoint = score_touchpoint(make_raw(page="/pricing"))

        assert touchpoint.touchpoint_id.startswith("touchpoint_")
        assert touchpoint.timestamp == base_time
        assert touchpoint.value == 45
        assert touchpoint.engagement == 40
        assert touchpoint.intent == 50
        assert touchpoint.category == ContentCategory.PRICING
        assert touchpoint.journey_stage == JourneyStage.EVALUATION
        assert touchpoint.is_conversion is False
        assert touchpoint.conversion_type is None

    def test_scores_are_bounded(self, make_raw) -> None:
        """Test that every score stays within 0-100."""
        for touchpoint_type in TouchpointType:
            touchpoint = score_touchpoint(
                make_raw(type=touchpoint_type.value, channel="email", page="/pricing-trial-demo-contact")
            )
            for score in (touchpoint.value, touchpoint.engagement, touchpoint.intent):
                assert 0 <= score <= 100

    def test_fallback_timestamp(self, make_raw, base_time) -> None:
        """Test that the fallback timestamp is used only when input has none."""
        fallback = base_time + timedelta(hours=1)

        without = score_touchpoint(make_raw(offset_minutes=None), timestamp=fallback)
        with_own = score_touchpoint(make_raw(offset_minutes=5), timestamp=fallback)

        assert without.timestamp == fallback
        assert with_own.timestamp == base_time + timedelta(minutes=5)

    def test_naive_timestamp_is_utc(self, make_raw, base_time) -> None:
        """Test that a timestamp without a zone is read as UTC."""
        touchpoint = score_touchpoint(
            make_raw(offset_minutes=None, timestamp=datetime(2025, 1, 6, 9, 0))
        )

        assert touchpoint.timestamp.tzinfo is not None
        assert touchpoint.timestamp == base_time

    def test_offset_timestamp_converted_to_utc(self, make_raw, base_time) -> None:
        """Test that zoned timestamps are stored in UTC."""
        plus_two = timezone(timedelta(hours=2))
        touchpoint = score_touchpoint(
            make_raw(offset_minutes=None, timestamp=datetime(2025, 1, 6, 11, 0, tzinfo=plus_two))
        )

        assert touchpoint.timestamp == base_time
        assert touchpoint.timestamp.utcoffset() == timedelta(0)

    def test_scoring_is_idempotent(self, make_raw) -> None:
        """Test that scoring the same event twice derives the same fields."""
        raw = make_raw(type="form_submission", channel="email", page="/pricing", conversion_value=250)

        first = score_touchpoint(raw)
        second = score_touchpoint(raw)

        derived = (
            "timestamp",
            "value",
            "engagement",
            "intent",
            "journey_stage",
            "category",
            "is_conversion",
            "conversion_type",
            "conversion_value",
        )
        assert first.model_dump(include=set(derived)) == second.model_dump(include=set(derived))
        assert first.touchpoint_id != second.touchpoint_id

    def test_paid_channel_shorthand(self, make_raw) -> None:
        """Test that "paid" is accepted for the paid ads channel."""
        touchpoint = score_touchpoint(make_raw(type="click", channel="paid"))

        assert touchpoint.channel == Channel.PAID_ADS
        assert touchpoint.path_signature == "click_paid_ads"

    def test_explicit_id(self, make_raw) -> None:
        """Test that an explicit touchpoint id is kept."""
        assert score_touchpoint(make_raw(), touchpoint_id="tp-1").touchpoint_id == "tp-1"

    def test_signatures(self, make_raw) -> None:
        """Test path and drop-off signatures."""
        touchpoint = score_touchpoint(make_raw(type="click", channel="paid_ads"))
        assert touchpoint.path_signature == "click_paid_ads"
        assert touchpoint.dropoff_signature == "click_paid_ads_unknown"

    @pytest.mark.parametrize(
        "field,value",
        [("type", "teleport"), ("channel", "carrier_pigeon"), ("device_type", "watch")],
    )
    def test_unknown_enum_value(self, make_raw, field, value) -> None:
        """Test that unknown enumerated values are rejected."""
        with pytest.raises(InvalidTouchpointError) as exc_info:
            score_touchpoint(make_raw(**{field: value}))
        assert exc_info.value.field == field
        assert exc_info.value.value == value

    def test_missing_session(self, make_raw) -> None:
        """Test that a missing session id is a validation error."""
        raw = make_raw()
        del raw["session_id"]
        with pytest.raises(ValidationError):
            score_touchpoint(raw)

    def test_negative_conversion_value(self, make_raw) -> None:
        """Test that negative conversion values are rejected."""
        with pytest.raises(ValidationError):
            score_touchpoint(make_raw(conversion_value=-1))

    def test_touchpoint_is_frozen(self, make_raw) -> None:
        """Test that scored touchpoints cannot be mutated."""
        touchpoint = score_touchpoint(make_raw())
        with pytest.raises(Exception):
            touchpoint.value = 1
