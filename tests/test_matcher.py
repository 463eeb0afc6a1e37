"""Tests for timestamp matching and interpolation."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta

import pytest

from conftest import at, make_track, point
from geotagger.core.matcher import interpolate, locate
from geotagger.core.models.geotag_models import (
    MatchQuality,
    Matched,
    NoCoverage,
    NoCoverageReason,
)
from geotagger.core.timeline import Timeline

FIFTEEN_MINUTES = timedelta(minutes=15)


@pytest.fixture
def timeline(simple_track) -> Timeline:
    return Timeline.build([simple_track])


class TestCoverage:
    """Queries outside the recorded extent never extrapolate."""

    def test_empty_timeline(self):
        result = locate(Timeline(), at(0), FIFTEEN_MINUTES)
        assert result == NoCoverage(NoCoverageReason.EMPTY_TIMELINE)

    def test_before_first_point(self, timeline):
        result = locate(timeline, at(-0.5), FIFTEEN_MINUTES)
        assert result == NoCoverage(NoCoverageReason.BEFORE_FIRST_POINT)

    def test_after_last_point(self, timeline):
        result = locate(timeline, at(20), FIFTEEN_MINUTES)
        assert result == NoCoverage(NoCoverageReason.AFTER_LAST_POINT)

    def test_gap_too_large(self, timeline):
        result = locate(timeline, at(5), timedelta(minutes=5))
        assert isinstance(result, NoCoverage)
        assert result.reason == NoCoverageReason.GAP_TOO_LARGE
        assert result.gap_seconds == 600.0

    def test_gap_equal_to_max_gap_is_interpolated(self, timeline):
        result = locate(timeline, at(5), timedelta(minutes=10))
        assert isinstance(result, Matched)

    def test_naive_query_rejected(self, timeline):
        with pytest.raises(ValueError):
            locate(timeline, datetime(2024, 6, 1, 12, 5), FIFTEEN_MINUTES)


class TestExactMatch:
    """Identity on stored points."""

    def test_exact_returns_stored_coordinate(self, timeline, simple_track):
        for stored in simple_track.points:
            result = locate(timeline, stored.timestamp, FIFTEEN_MINUTES)
            assert result == Matched(stored.coordinate, MatchQuality.EXACT)

    def test_single_point_timeline(self):
        single = Timeline.build([make_track("one", point(0, 45.0, 5.0, 300.0))])
        result = locate(single, at(0), FIFTEEN_MINUTES)
        assert result.quality == MatchQuality.EXACT
        assert result.coordinate.elevation == 300.0

    def test_exact_ignores_max_gap(self):
        sparse = Timeline.build([make_track("sparse", point(0, 1, 1), point(600, 2, 2))])
        result = locate(sparse, at(600), timedelta(seconds=1))
        assert result == Matched(sparse.points[1].coordinate, MatchQuality.EXACT)


class TestInterpolation:
    """Linear blending between bracketing points."""

    def test_midpoint_example(self, timeline):
        result = locate(timeline, at(5), FIFTEEN_MINUTES)
        assert isinstance(result, Matched)
        assert result.quality == MatchQuality.INTERPOLATED
        assert result.gap_seconds == 600.0
        assert result.coordinate.latitude == pytest.approx(10.0)
        assert result.coordinate.longitude == pytest.approx(20.1)

    def test_quarter_position(self):
        tl = Timeline.build([make_track("t", point(0, 0.0, 0.0), point(4, 4.0, -8.0))])
        result = locate(tl, at(1), FIFTEEN_MINUTES)
        assert result.coordinate.latitude == pytest.approx(1.0)
        assert result.coordinate.longitude == pytest.approx(-2.0)

    def test_result_lies_on_segment(self):
        tl = Timeline.build([make_track("t", point(0, 48.0, 2.0), point(1, 48.5, 2.6))])
        for seconds in range(1, 60, 7):
            coord = locate(tl, at(seconds=seconds), FIFTEEN_MINUTES).coordinate
            t = seconds / 60
            assert coord.latitude == pytest.approx(48.0 + 0.5 * t)
            assert coord.longitude == pytest.approx(2.0 + 0.6 * t)

    def test_elevation_interpolated_when_both_present(self):
        tl = Timeline.build([make_track("t", point(0, 1, 1, 100.0), point(10, 1, 1, 200.0))])
        assert locate(tl, at(5), FIFTEEN_MINUTES).coordinate.elevation == pytest.approx(150.0)

    def test_elevation_dropped_when_one_missing(self):
        tl = Timeline.build([make_track("t", point(0, 1, 1, 100.0), point(10, 1, 1))])
        assert locate(tl, at(5), FIFTEEN_MINUTES).coordinate.elevation is None

    def test_sub_second_precision(self):
        tl = Timeline.build([make_track("t", point(0, 0.0, 0.0), point(1 / 60, 1.0, 1.0))])
        coord = locate(tl, at(seconds=0.25), FIFTEEN_MINUTES).coordinate
        assert coord.latitude == pytest.approx(0.25)


class TestAntimeridian:
    """Longitude follows the shortest angular path."""

    def test_east_to_west_crossing(self):
        tl = Timeline.build([make_track("dateline", point(0, -17.0, 179.9), point(10, -17.0, -179.9))])
        lon = locate(tl, at(5), FIFTEEN_MINUTES).coordinate.longitude
        assert abs(abs(lon) - 180.0) < 0.01

    def test_west_to_east_crossing(self):
        tl = Timeline.build([make_track("dateline", point(0, 0.0, -179.0), point(10, 0.0, 179.0))])
        lon = locate(tl, at(2.5), FIFTEEN_MINUTES).coordinate.longitude
        assert lon == pytest.approx(-179.5)

    def test_crossing_result_stays_in_range(self):
        tl = Timeline.build([make_track("dateline", point(0, 0.0, 179.0), point(10, 0.0, -179.0))])
        for minutes in (1, 4, 5, 6, 9):
            lon = locate(tl, at(minutes), FIFTEEN_MINUTES).coordinate.longitude
            assert -180.0 <= lon <= 180.0
            assert abs(lon) >= 179.0


class TestInterpolateHelper:
    def test_boundaries_reproduce_endpoints(self):
        a = point(0, 10.0, 20.0, 5.0)
        b = point(10, 11.0, 21.0, 15.0)
        assert interpolate(a, b, a.timestamp) == a.coordinate
        end = interpolate(a, b, b.timestamp)
        assert end.latitude == pytest.approx(11.0)
        assert end.longitude == pytest.approx(21.0)
        assert end.elevation == pytest.approx(15.0)


class TestConcurrentReads:
    def test_parallel_lookups_agree(self, timeline):
        queries = [at(seconds=s) for s in range(0, 600, 3)]
        expected = [locate(timeline, q, FIFTEEN_MINUTES) for q in queries]
        with ThreadPoolExecutor(max_workers=8) as executor:
            actual = list(executor.map(lambda q: locate(timeline, q, FIFTEEN_MINUTES), queries))
        assert actual == expected
