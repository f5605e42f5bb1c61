"""
Geographic value types with spherical geometry operations.

All calculations assume a spherical earth. Coordinates are not validated,
callers are responsible for passing latitudes in [-90, 90] and longitudes
in [-180, 180].
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, TYPE_CHECKING

from .geometry_utils import (
    calculate_bearing,
    haversine_distance,
    to_unit_sphere_vector,
)
from .constants import VECTOR_EPSILON

if TYPE_CHECKING:
    from .map_area import MapArea


@dataclass(frozen=True)
class GeoPoint:
    """A basic location, i.e. a latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __str__(self) -> str:
        return f"{self.latitude},{self.longitude}"

    def is_inside(self, map_area: "MapArea") -> bool:
        """Check if this location is inside the (closed) bounds of the map area."""
        return (
            map_area.min_lat_deg <= self.latitude <= map_area.max_lat_deg
            and map_area.min_lon_deg <= self.longitude <= map_area.max_lon_deg
        )

    def distance_to(self, other: "GeoPoint") -> float:
        """Great circle distance to the other location in meters."""
        return haversine_distance(
            self.latitude, self.longitude, other.latitude, other.longitude
        )

    def bearing_to(self, other: "GeoPoint") -> float:
        """Initial bearing towards the other location, in the range (-180, 180]."""
        return calculate_bearing(
            self.latitude, self.longitude, other.latitude, other.longitude
        )

    def _closest_location_on_great_circle(
        self, a: "GeoPoint", b: "GeoPoint"
    ) -> Optional["GeoPoint"]:
        """
        Closest location on the great circle through a and b to this location.

        If there are multiple correct solutions this prefers self over a over
        any other location.

        Returns:
            The closest location, or None if a and b are the same location and
            hence don't describe a great circle
        """
        a_vec = to_unit_sphere_vector(a.latitude, a.longitude)
        b_vec = to_unit_sphere_vector(b.latitude, b.longitude)

        if a_vec.is_close(b_vec):
            return None
        if a_vec.is_close(-b_vec):
            # All paths between antipodal points have the same length,
            # including the one through this location
            return self

        dest_vec = to_unit_sphere_vector(self.latitude, self.longitude)
        gc_normal_vec = a_vec.cross(b_vec).as_unit_vec()

        if dest_vec.is_close(gc_normal_vec) or dest_vec.is_close(-gc_normal_vec):
            # This location is a pole of the great circle, every location on
            # the circle is equally close
            return a

        if abs(gc_normal_vec.dot(dest_vec)) <= VECTOR_EPSILON:
            # Already on the great circle
            return self

        gc_dest_normal_vec = gc_normal_vec.cross(dest_vec)
        int_vec = gc_dest_normal_vec.cross(gc_normal_vec).as_unit_vec()

        int1 = GeoPoint(*int_vec.to_lat_lon())
        int2 = GeoPoint(*(-int_vec).to_lat_lon())

        if self.distance_to(int1) <= self.distance_to(int2):
            return int1
        return int2

    def closest_node_on(
        self, segment_start: "GeoPoint", segment_end: "GeoPoint"
    ) -> "GeoPoint":
        """
        Closest location to this one on the segment between two locations.

        The segment is the shorter great circle arc between its endpoints.

        Args:
            segment_start: First endpoint of the segment
            segment_end: Second endpoint of the segment

        Returns:
            The location on the segment nearest to this location
        """
        gc_point = self._closest_location_on_great_circle(segment_start, segment_end)
        if gc_point is None:
            return segment_start

        segment_len = segment_start.distance_to(segment_end)

        if (
            gc_point.distance_to(segment_start) < segment_len
            and gc_point.distance_to(segment_end) < segment_len
        ):
            return gc_point

        # The great circle point is outside of the segment, one of the
        # endpoints is closest, segment_end on a tie
        if self.distance_to(segment_start) < self.distance_to(segment_end):
            return segment_start
        return segment_end

    def closest_node_on_est(
        self, segment_start: "GeoPoint", segment_end: "GeoPoint"
    ) -> "GeoPoint":
        """
        Estimate the closest location on a segment treating lat/lon as a plane.

        Usually good enough for short segments away from the poles and the
        antimeridian.
        """
        lat_diff = segment_end.latitude - segment_start.latitude
        lon_diff = segment_end.longitude - segment_start.longitude

        if lat_diff == 0.0 and lon_diff == 0.0:
            return segment_start

        segment_progress = (
            (self.latitude - segment_start.latitude) * lat_diff
            + (self.longitude - segment_start.longitude) * lon_diff
        ) / (lat_diff * lat_diff + lon_diff * lon_diff)

        if segment_progress < 0:
            return segment_start
        if segment_progress > 1:
            return segment_end

        # TODO: confirm with map view owners whether the swapped latitude and
        # longitude below should be fixed; existing callers see this order.
        return GeoPoint(
            segment_start.longitude + segment_progress * lon_diff,
            segment_start.latitude + segment_progress * lat_diff,
        )


@dataclass(frozen=True)
class RecordedPoint(GeoPoint):
    """A recorded location, either by a recorder or read from a GPX file."""

    elevation: Optional[float] = None
    # UTC time of this recording, in milliseconds since January 1, 1970
    timestamp: Optional[int] = None

    @property
    def recorded_at(self) -> Optional[datetime]:
        if self.timestamp is None:
            return None
        return datetime.fromtimestamp(self.timestamp / 1000, tz=timezone.utc)
