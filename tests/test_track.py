import pytest

from ridetrack.geometry import RecordedPoint
from ridetrack.map_area import MapArea
from ridetrack.track import Track


def point(lat, lon, timestamp=None, elevation=None):
    return RecordedPoint(lat, lon, elevation=elevation, timestamp=timestamp)


class TestTrackModel:
    def test_segments_are_stored_in_order_as_tuples(self):
        first = [point(0.0, 0.0), point(0.0, 0.1)]
        second = [point(1.0, 1.0)]
        track = Track([first, second])

        assert track.segments == (tuple(first), tuple(second))
        assert len(track) == 2
        assert track.point_count == 3
        assert list(track) == first + second

    def test_track_is_a_value(self):
        a = Track([[point(0.0, 0.0)]])
        b = Track(((point(0.0, 0.0),),))
        assert a == b
        assert hash(a) == hash(b)

    def test_input_lists_are_copied(self):
        segment = [point(0.0, 0.0)]
        track = Track([segment])
        segment.append(point(1.0, 1.0))
        assert track.point_count == 1

    def test_empty_track(self):
        track = Track()
        assert len(track) == 0
        assert track.distance == 0.0
        assert track.duration is None
        assert track.bounds is None


class TestDistance:
    def test_two_point_track_equals_point_distance(self):
        p1 = point(47.3769, 8.5417)
        p2 = point(47.3780, 8.5500)
        assert Track([[p1, p2]]).distance == p1.distance_to(p2)

    def test_segments_are_not_connected(self):
        a1, a2 = point(0.0, 0.0), point(0.0, 0.01)
        b1, b2 = point(10.0, 10.0), point(10.0, 10.01)
        track = Track([[a1, a2], [b1, b2]])

        expected = a1.distance_to(a2) + b1.distance_to(b2)
        assert track.distance == pytest.approx(expected)
        assert track.distance < expected + a2.distance_to(b1)

    def test_single_point_segments_have_no_distance(self):
        assert Track([[point(0.0, 0.0)], [point(1.0, 1.0)]]).distance == 0.0

    def test_distance_is_memoized(self):
        track = Track([[point(0.0, 0.0), point(0.0, 1.0)]])
        assert track.distance is track.distance


class TestDuration:
    def test_only_first_and_last_point_have_timestamps(self):
        track = Track(
            [[point(0.0, 0.0, timestamp=1000), point(0.0, 0.1), point(0.0, 0.2, timestamp=61000)]]
        )
        assert track.duration == 60000

    def test_uses_min_and_max_over_all_segments(self):
        track = Track(
            [
                [point(0.0, 0.0, timestamp=5000), point(0.0, 0.1, timestamp=1000)],
                [point(0.0, 0.2, timestamp=9000)],
            ]
        )
        assert track.duration == 8000

    def test_not_the_sum_of_segment_spans(self):
        track = Track(
            [
                [point(0.0, 0.0, timestamp=0), point(0.0, 0.1, timestamp=1000)],
                [point(0.0, 0.2, timestamp=500), point(0.0, 0.3, timestamp=1500)],
            ]
        )
        assert track.duration == 1500

    def test_no_timestamps(self):
        assert Track([[point(0.0, 0.0), point(0.0, 1.0)]]).duration is None

    def test_single_timestamp(self):
        assert Track([[point(0.0, 0.0, timestamp=42)]]).duration == 0


def test_bounds():
    track = Track([[point(1.0, 5.0), point(-2.0, 7.0)], [point(3.0, 6.0)]])
    assert track.bounds == MapArea(-2.0, 5.0, 3.0, 7.0)


class TestRestrictTo:
    segment = [point(0.0, float(lon)) for lon in range(6)]

    def test_without_area_keeps_everything(self):
        track = Track([self.segment, self.segment[:2]])
        runs = track.restrict_to()

        assert runs == [(0.0, tuple(self.segment)), (0.0, tuple(self.segment[:2]))]

    def test_keeps_neighbours_of_visible_points(self):
        track = Track([self.segment])
        area = MapArea(-0.5, 1.5, 0.5, 2.5)

        runs = track.restrict_to(area)

        # lon 2 is inside, lon 1 and 3 connect to it
        assert runs == [(0.0, tuple(self.segment[1:4]))]

    def test_splits_into_runs(self):
        zigzag = [
            point(0.0, 0.0),
            point(5.0, 0.0),
            point(5.0, 1.0),
            point(5.0, 2.0),
            point(0.0, 2.0),
        ]
        area = MapArea(-1.0, -1.0, 1.0, 3.0)

        runs = Track([zigzag]).restrict_to(area)

        assert [points for _, points in runs] == [tuple(zigzag[:2]), tuple(zigzag[3:])]

    def test_computes_progress(self):
        track = Track([self.segment])
        area = MapArea(-0.5, 2.5, 0.5, 3.5)

        (progress, points), = track.restrict_to(area, compute_progress=True)

        assert points == tuple(self.segment[2:5])
        expected = self.segment[0].distance_to(self.segment[1]) + self.segment[
            1
        ].distance_to(self.segment[2])
        assert progress == pytest.approx(expected)

    def test_progress_continues_across_segments(self):
        second = [point(0.0, 10.0), point(0.0, 11.0)]
        track = Track([self.segment[:2], second])

        runs = track.restrict_to(compute_progress=True)

        assert runs[1][0] == pytest.approx(self.segment[0].distance_to(self.segment[1]))
