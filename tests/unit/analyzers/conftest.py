"""Fixtures for analyzer tests."""

import itertools

import pytest

from journeynav.scoring import score_touchpoint
from journeynav.stitcher import JourneyStitcher
from journeynav.stores.memory import InMemoryJourneyStore


@pytest.fixture
def build_journey(make_raw):
    """Build a standalone journey from ``(type, channel, page)`` steps.

    Steps are one minute apart unless ``gaps`` (minutes between steps) is
    given. ``converted`` overrides the scored conversion outcome.
    """
    stitcher = JourneyStitcher(InMemoryJourneyStore())
    users = itertools.count(1)

    def _build(steps, converted=None, gaps=None, conversion_value=None):
        user_id = f"user-{next(users)}"
        gaps = gaps or [1] * (len(steps) - 1)
        offsets = [0, *itertools.accumulate(gaps)]

        touchpoints = []
        for (touchpoint_type, channel, page), offset in zip(steps, offsets):
            extra = {}
            if conversion_value is not None and touchpoint_type == steps[-1][0]:
                extra["conversion_value"] = conversion_value
            touchpoints.append(
                score_touchpoint(
                    make_raw(
                        type=touchpoint_type,
                        channel=channel,
                        page=page,
                        user_id=user_id,
                        offset_minutes=offset,
                        **extra,
                    )
                )
            )

        journey = stitcher.create_journey(user_id, touchpoints[0])
        for touchpoint in touchpoints[1:]:
            stitcher.update_journey(journey, touchpoint)
        if converted is not None:
            journey.converted = converted
        return journey

    return _build
