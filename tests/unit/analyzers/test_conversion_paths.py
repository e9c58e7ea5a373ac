"""Tests for the conversion path analyzer."""

import pytest

from journeynav.analyzers.conversion_paths import ConversionPathAnalyzer, path_key

ORGANIC_VIEW = ("page_view", "organic", "/blog")
DIRECT_DEMO = ("demo_request", "direct", "/demo")
PRICING_VIEW = ("page_view", "web", "/pricing")

DEMO_PATTERN = "page_view_organic->demo_request_direct"


@pytest.fixture
def analyzer():
    return ConversionPathAnalyzer()


class TestPathKey:
    """Test path_key."""

    def test_ordered_signatures(self, build_journey) -> None:
        """Test that the key joins signatures in order."""
        journey = build_journey([ORGANIC_VIEW, DIRECT_DEMO])
        assert path_key(journey) == DEMO_PATTERN

    def test_order_matters(self, build_journey) -> None:
        """Test that reversed paths produce different keys."""
        forward = build_journey([ORGANIC_VIEW, DIRECT_DEMO])
        reverse = build_journey([DIRECT_DEMO, ORGANIC_VIEW])
        assert path_key(forward) != path_key(reverse)


class TestConversionPathAnalyzer:
    """Test ConversionPathAnalyzer."""

    @pytest.mark.asyncio
    async def test_identical_journeys_share_a_path(self, analyzer, build_journey) -> None:
        """Test that ten identical conversions collapse into one path."""
        journeys = [build_journey([ORGANIC_VIEW, DIRECT_DEMO]) for _ in range(10)]

        paths = await analyzer.analyze(journeys)

        assert list(paths) == [DEMO_PATTERN]
        path = paths[DEMO_PATTERN]
        assert path.frequency == 10
        assert path.total_conversions == 10
        assert path.conversion_rate == 100.0
        assert path.pattern == ["page_view_organic", "demo_request_direct"]
        assert path.pattern_key == DEMO_PATTERN
        assert path.path_id.startswith("path_")

    @pytest.mark.asyncio
    async def test_unconverted_journeys_ignored(self, analyzer, build_journey) -> None:
        """Test that only converted journeys are mined."""
        journeys = [build_journey([ORGANIC_VIEW, PRICING_VIEW]) for _ in range(3)]

        assert await analyzer.analyze(journeys) == {}

    @pytest.mark.asyncio
    async def test_distinct_patterns(self, analyzer, build_journey) -> None:
        """Test that different patterns are kept apart."""
        journeys = [
            build_journey([ORGANIC_VIEW, DIRECT_DEMO]),
            build_journey([PRICING_VIEW, DIRECT_DEMO]),
            build_journey([DIRECT_DEMO]),
        ]

        paths = await analyzer.analyze(journeys)

        assert len(paths) == 3
        assert all(path.frequency == 1 for path in paths.values())

    @pytest.mark.asyncio
    async def test_steps(self, analyzer, build_journey) -> None:
        """Test per-step time to next and value."""
        journey = build_journey([ORGANIC_VIEW, PRICING_VIEW, DIRECT_DEMO], gaps=[2, 3])

        path = (await analyzer.analyze([journey]))[path_key(journey)]

        assert [step.step for step in path.steps] == [1, 2, 3]
        assert [step.avg_duration_to_next_ms for step in path.steps] == [
            120_000,
            180_000,
            0,
        ]
        assert [step.value for step in path.steps] == [tp.value for tp in journey.path]
        assert path.steps[0].type == "page_view"
        assert path.steps[0].channel == "organic"

    @pytest.mark.asyncio
    async def test_running_averages(self, analyzer, build_journey) -> None:
        """Test that averages blend the previous value with each new sample."""
        journeys = [
            build_journey([ORGANIC_VIEW, DIRECT_DEMO], gaps=[1]),
            build_journey([ORGANIC_VIEW, DIRECT_DEMO], gaps=[2]),
            build_journey([ORGANIC_VIEW, DIRECT_DEMO], gaps=[4]),
        ]

        path = (await analyzer.analyze(journeys))[DEMO_PATTERN]

        # ((60s + 120s) / 2 + 240s) / 2
        assert path.average_duration_ms == 165_000
        assert path.average_touchpoints == 2

    @pytest.mark.asyncio
    async def test_revenue(self, analyzer, build_journey) -> None:
        """Test revenue totals and average order value."""
        journeys = [
            build_journey([ORGANIC_VIEW, DIRECT_DEMO], conversion_value=100),
            build_journey([ORGANIC_VIEW, DIRECT_DEMO], conversion_value=300),
        ]

        path = (await analyzer.analyze(journeys))[DEMO_PATTERN]

        assert path.total_revenue == 400
        assert path.average_order_value == 200

    @pytest.mark.asyncio
    async def test_recompute_from_scratch(self, analyzer, build_journey) -> None:
        """Test that each run starts from an empty collection."""
        journeys = [build_journey([ORGANIC_VIEW, DIRECT_DEMO]) for _ in range(2)]

        await analyzer.analyze(journeys)
        paths = await analyzer.analyze(journeys)

        assert paths[DEMO_PATTERN].frequency == 2
