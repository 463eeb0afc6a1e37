"""Tests for Timeline construction and lookups."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from conftest import at, make_track, point
from geotagger.core.timeline import Timeline, validate_track
from geotagger.domain.errors import InvalidTrackError
from geotagger.domain.gps_types import Coordinate, Track, TrackPoint


class TestValidateTrack:
    """Per-track input checks."""

    def test_empty_track_rejected(self):
        with pytest.raises(InvalidTrackError, match="vide"):
            validate_track(Track(name="empty"))

    def test_backwards_step_rejected(self):
        track = make_track("backwards", point(0, 1, 1), point(5, 1, 1), point(3, 1, 1))
        with pytest.raises(InvalidTrackError) as excinfo:
            validate_track(track)
        assert excinfo.value.track_name == "backwards"

    def test_backstep_within_tolerance_accepted(self):
        track = make_track("jitter", point(0, 1, 1), point(1, 1, 1), point(0.99, 1, 1))
        validate_track(track, backstep_tolerance=timedelta(seconds=1))

    def test_naive_timestamp_rejected(self):
        naive = TrackPoint(datetime(2024, 6, 1, 12, 0), Coordinate(1, 1))
        with pytest.raises(InvalidTrackError, match="fuseau"):
            validate_track(Track(name="naive", points=(naive,)))

    def test_repeated_timestamps_accepted(self):
        validate_track(make_track("ties", point(0, 1, 1), point(0, 2, 2), point(1, 3, 3)))


class TestTimelineBuild:
    """Merge, sort and deduplicate."""

    def test_preserves_every_distinct_timestamp(self):
        track = make_track("t", *(point(m, 10.0, 20.0 + m / 100) for m in range(10)))
        timeline = Timeline.build([track])
        assert [p.timestamp for p in timeline.points] == [at(m) for m in range(10)]

    def test_overlapping_tracks_merge_sorted(self):
        first = make_track("first", point(0, 1, 1), point(10, 1, 1), point(20, 1, 1))
        second = make_track("second", point(5, 2, 2), point(15, 2, 2), point(25, 2, 2))
        timeline = Timeline.build([first, second])

        timestamps = [p.timestamp for p in timeline.points]
        assert timestamps == sorted(set(timestamps))
        assert len(timeline) == 6
        assert timeline.start_time == at(0)
        assert timeline.end_time == at(25)

    def test_duplicate_timestamp_across_tracks_keeps_first_track(self):
        first = make_track("first", point(0, 1, 1), point(10, 1, 1))
        second = make_track("second", point(10, 9, 9), point(20, 9, 9))
        timeline = Timeline.build([first, second])

        assert len(timeline) == 3
        assert timeline.points[1].coordinate == Coordinate(1, 1)

        swapped = Timeline.build([second, first])
        assert swapped.points[1].coordinate == Coordinate(9, 9)

    def test_duplicate_within_track_keeps_first_occurrence(self):
        track = make_track("ties", point(0, 1, 1), point(0, 2, 2), point(1, 3, 3))
        timeline = Timeline.build([track])
        assert [p.coordinate.latitude for p in timeline.points] == [1, 3]

    def test_disjoint_tracks_leave_gap(self):
        morning = make_track("morning", point(0, 1, 1), point(10, 1, 1))
        evening = make_track("evening", point(300, 2, 2), point(310, 2, 2))
        timeline = Timeline.build([evening, morning])
        assert [p.timestamp for p in timeline.points] == [at(0), at(10), at(300), at(310)]

    def test_invalid_track_fails_whole_build(self):
        good = make_track("good", point(0, 1, 1))
        with pytest.raises(InvalidTrackError):
            Timeline.build([good, Track(name="empty")])

    def test_no_tracks_gives_empty_timeline(self):
        timeline = Timeline.build([])
        assert timeline.is_empty()
        assert timeline.start_time is None


class TestSurrounding:
    """Bracketing point lookup."""

    def test_between_points(self):
        timeline = Timeline.build([make_track("t", point(0, 1, 1), point(10, 2, 2))])
        before, after = timeline.surrounding(at(5))
        assert before.timestamp == at(0)
        assert after.timestamp == at(10)

    def test_outside_extent(self):
        timeline = Timeline.build([make_track("t", point(0, 1, 1), point(10, 2, 2))])
        assert timeline.surrounding(at(-1))[0] is None
        assert timeline.surrounding(at(11))[1] is None

    def test_stored_point_is_the_lower_bracket(self):
        timeline = Timeline.build([make_track("t", point(0, 1, 1), point(10, 2, 2))])
        before, after = timeline.surrounding(at(10))
        assert before.timestamp == at(10)
        assert after is None
