"""
Rectangular latitude/longitude areas, used to query external data providers.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Tuple, Union

from shapely.geometry import LineString, box

from .geometry import GeoPoint

Bound = Union[Decimal, float, int, str]


def _to_decimal(value: Bound) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # Go through the text form so 0.1 stays 0.1 instead of its binary expansion
    return Decimal(str(value))


@dataclass(frozen=True)
class MapArea:
    """A square area of a map, bounds in decimal degrees."""

    min_lat: Decimal
    min_lon: Decimal
    max_lat: Decimal
    max_lon: Decimal

    def __post_init__(self):
        for field_name in ("min_lat", "min_lon", "max_lat", "max_lon"):
            object.__setattr__(
                self, field_name, _to_decimal(getattr(self, field_name))
            )

        if self.min_lat > self.max_lat:
            raise ValueError(f"min_lat {self.min_lat} is north of max_lat {self.max_lat}")
        if self.min_lon > self.max_lon:
            raise ValueError(f"min_lon {self.min_lon} is east of max_lon {self.max_lon}")

    @property
    def min_lat_deg(self) -> float:
        return float(self.min_lat)

    @property
    def min_lon_deg(self) -> float:
        return float(self.min_lon)

    @property
    def max_lat_deg(self) -> float:
        return float(self.max_lat)

    @property
    def max_lon_deg(self) -> float:
        return float(self.max_lon)

    @property
    def min(self) -> GeoPoint:
        return GeoPoint(self.min_lat_deg, self.min_lon_deg)

    @property
    def max(self) -> GeoPoint:
        return GeoPoint(self.max_lat_deg, self.max_lon_deg)

    def __str__(self) -> str:
        return f"[{self.min_lat}/{self.min_lon} - {self.max_lat}/{self.max_lon}]"

    def __contains__(self, point: GeoPoint) -> bool:
        return self.contains_point(point)

    def contains_point(self, point: GeoPoint) -> bool:
        return point.is_inside(self)

    def contains(self, other: "MapArea") -> bool:
        """Check if this area fully covers the other area."""
        return (
            self.min_lat <= other.min_lat
            and self.min_lon <= other.min_lon
            and self.max_lat >= other.max_lat
            and self.max_lon >= other.max_lon
        )

    def does_segment_intersect(self, a: GeoPoint, b: GeoPoint) -> bool:
        """
        Check if the straight line between a and b touches this area.

        Lat/lon are treated as planar coordinates, which is fine for the short
        segments between consecutive track points.
        """
        if (a.latitude, a.longitude) == (b.latitude, b.longitude):
            return a.is_inside(self)

        area = box(self.min_lon_deg, self.min_lat_deg, self.max_lon_deg, self.max_lat_deg)
        segment = LineString([(a.longitude, a.latitude), (b.longitude, b.latitude)])
        return area.intersects(segment)

    def to_bbox(self) -> Tuple[float, float, float, float]:
        """
        Bounds for external data provider queries.

        Returns:
            Tuple of (south, west, north, east) in decimal degrees
        """
        return (self.min_lat_deg, self.min_lon_deg, self.max_lat_deg, self.max_lon_deg)
