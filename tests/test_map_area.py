from decimal import Decimal

import pytest

from ridetrack.geometry import GeoPoint
from ridetrack.map_area import MapArea


def test_bounds_are_stored_as_decimals():
    area = MapArea(0.1, 0.2, 0.3, 0.4)
    assert area.min_lat == Decimal("0.1")
    assert area.max_lon == Decimal("0.4")
    assert area.min_lat_deg == 0.1


def test_decimal_and_string_bounds():
    area = MapArea(Decimal("47.37"), "8.54", 47.38, 9)
    assert area == MapArea(47.37, 8.54, 47.38, 9.0)


def test_equality_and_hash_are_structural():
    a = MapArea(1.0, 2.0, 3.0, 4.0)
    b = MapArea(Decimal("1.00"), Decimal("2"), Decimal("3.0"), Decimal("4.000"))
    assert a == b
    assert hash(a) == hash(b)
    assert len({a, b}) == 1
    assert a != MapArea(1.0, 2.0, 3.0, 5.0)


def test_inverted_bounds_are_rejected():
    with pytest.raises(ValueError):
        MapArea(3.0, 2.0, 1.0, 4.0)
    with pytest.raises(ValueError):
        MapArea(1.0, 4.0, 3.0, 2.0)


def test_single_point_area_is_allowed():
    area = MapArea(1.0, 2.0, 1.0, 2.0)
    assert GeoPoint(1.0, 2.0) in area


def test_corners():
    area = MapArea(1.0, 2.0, 3.0, 4.0)
    assert area.min == GeoPoint(1.0, 2.0)
    assert area.max == GeoPoint(3.0, 4.0)


def test_str():
    assert str(MapArea(Decimal("1.5"), Decimal("2"), Decimal("3"), Decimal("4.25"))) == (
        "[1.5/2 - 3/4.25]"
    )


def test_contains_point():
    area = MapArea(1.0, 2.0, 3.0, 4.0)
    assert area.contains_point(GeoPoint(2.0, 3.0))
    assert GeoPoint(3.0, 4.0) in area
    assert GeoPoint(3.5, 3.0) not in area


def test_contains_area():
    outer = MapArea(0.0, 0.0, 10.0, 10.0)
    assert outer.contains(MapArea(1.0, 1.0, 9.0, 9.0))
    assert outer.contains(outer)
    assert not outer.contains(MapArea(1.0, 1.0, 11.0, 9.0))
    assert not MapArea(1.0, 1.0, 9.0, 9.0).contains(outer)


class TestDoesSegmentIntersect:
    area = MapArea(0.0, 0.0, 1.0, 1.0)

    def test_segment_inside(self):
        assert self.area.does_segment_intersect(GeoPoint(0.2, 0.2), GeoPoint(0.8, 0.8))

    def test_segment_crossing_the_area(self):
        assert self.area.does_segment_intersect(GeoPoint(-1.0, 0.5), GeoPoint(2.0, 0.5))

    def test_segment_south_of_the_area(self):
        assert not self.area.does_segment_intersect(
            GeoPoint(-1.0, -1.0), GeoPoint(-1.0, 2.0)
        )

    def test_segment_passing_a_corner(self):
        assert not self.area.does_segment_intersect(
            GeoPoint(1.5, -0.5), GeoPoint(2.5, 0.5)
        )

    def test_segment_touching_the_boundary(self):
        assert self.area.does_segment_intersect(GeoPoint(1.0, -1.0), GeoPoint(1.0, 2.0))

    def test_zero_length_segment(self):
        assert self.area.does_segment_intersect(GeoPoint(0.5, 0.5), GeoPoint(0.5, 0.5))
        assert not self.area.does_segment_intersect(
            GeoPoint(5.0, 5.0), GeoPoint(5.0, 5.0)
        )


def test_to_bbox():
    assert MapArea(1.0, 2.0, 3.0, 4.0).to_bbox() == (1.0, 2.0, 3.0, 4.0)
