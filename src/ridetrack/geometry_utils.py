#!/usr/bin/env python3
"""
Spherical geometry helpers: distance, bearing and unit-sphere vectors.
"""

from typing import NamedTuple, Tuple
import math

from .constants import EARTH_RADIUS_METERS, VECTOR_EPSILON


class Vector3D(NamedTuple):
    """3d vector, used when making spherical calculations."""

    x: float
    y: float
    z: float

    def cross(self, other: "Vector3D") -> "Vector3D":
        """Cross product of this vector with the other vector."""
        return Vector3D(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def dot(self, other: "Vector3D") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def length(self) -> float:
        return math.sqrt(self.x * self.x + self.y * self.y + self.z * self.z)

    def as_unit_vec(self) -> "Vector3D":
        length = self.length()
        return Vector3D(self.x / length, self.y / length, self.z / length)

    def __neg__(self) -> "Vector3D":
        return Vector3D(-self.x, -self.y, -self.z)

    def is_close(self, other: "Vector3D", eps: float = VECTOR_EPSILON) -> bool:
        return (
            abs(self.x - other.x) <= eps
            and abs(self.y - other.y) <= eps
            and abs(self.z - other.z) <= eps
        )

    def to_lat_lon(self) -> Tuple[float, float]:
        """
        Convert back to spherical coordinates.

        Returns:
            Tuple of (latitude, longitude) in decimal degrees
        """
        cos_polar = max(-1.0, min(1.0, self.z / self.length()))
        polar_deg = math.degrees(math.acos(cos_polar))
        lon_deg = math.degrees(math.atan2(self.y, self.x))

        return 90.0 - polar_deg, lon_deg


def to_unit_sphere_vector(latitude: float, longitude: float) -> Vector3D:
    """
    Convert a location (in spherical coordinates) into a Vector3D on the unit sphere.

    Args:
        latitude: Latitude in decimal degrees
        longitude: Longitude in decimal degrees

    Returns:
        Vector3D of length 1
    """
    polar = math.radians(90.0 - latitude)
    lon = math.radians(longitude)
    return Vector3D(
        math.cos(lon) * math.sin(polar),
        math.sin(lon) * math.sin(polar),
        math.cos(polar),
    )


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate Haversine distance between two coordinates.

    Args:
        lat1, lon1: First coordinate in decimal degrees
        lat2, lon2: Second coordinate in decimal degrees

    Returns:
        Great circle distance in meters
    """
    phi1, lambda1 = math.radians(lat1), math.radians(lon1)
    phi2, lambda2 = math.radians(lat2), math.radians(lon2)

    dphi = phi2 - phi1
    dlambda = lambda2 - lambda1

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    # Rounding can push a slightly above 1 for antipodal points
    a = min(1.0, a)

    return 2 * EARTH_RADIUS_METERS * math.asin(math.sqrt(a))


def calculate_bearing(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate the initial great circle bearing from the first to the second coordinate.

    Args:
        lat1, lon1: Start coordinate in decimal degrees
        lat2, lon2: Destination coordinate in decimal degrees

    Returns:
        Bearing in degrees, in the range (-180, 180] with 0 being north
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    dlambda = math.radians(lon2 - lon1)

    y = math.sin(dlambda) * math.cos(phi2)
    x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(
        dlambda
    )

    bearing = math.degrees(math.atan2(y, x))

    # atan2 reports due south as -180 when y is -0.0
    return 180.0 if bearing == -180.0 else bearing
