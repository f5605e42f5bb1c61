#!/usr/bin/env python3
"""
Track data model: ordered segments of recorded points.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Iterator, List, Optional, Tuple
import logging

from .geometry import RecordedPoint
from .map_area import MapArea

logger = logging.getLogger(__name__)

Segment = Tuple[RecordedPoint, ...]


@dataclass(frozen=True)
class Track:
    """
    A recorded gps track.

    Each segment is an unbroken chronological run of points, e.g. one
    continuous recording interval. Segments are not connected to each other.
    """

    segments: Tuple[Segment, ...] = ()

    def __post_init__(self):
        object.__setattr__(
            self, "segments", tuple(tuple(segment) for segment in self.segments)
        )

    def __len__(self) -> int:
        """Return number of segments in the track."""
        return len(self.segments)

    def __iter__(self) -> Iterator[RecordedPoint]:
        """Iterate over all points of all segments."""
        for segment in self.segments:
            yield from segment

    @property
    def point_count(self) -> int:
        return sum(len(segment) for segment in self.segments)

    @cached_property
    def distance(self) -> float:
        """Total distance ridden in meters."""
        total = 0.0
        for segment in self.segments:
            segment_distance = 0.0
            for previous, current in zip(segment, segment[1:]):
                segment_distance += previous.distance_to(current)
            total += segment_distance
        return total

    @cached_property
    def duration(self) -> Optional[int]:
        """Total time covered by the track in milliseconds, None without any timestamps."""
        timestamps = [point.timestamp for point in self if point.timestamp is not None]
        if not timestamps:
            return None
        return max(timestamps) - min(timestamps)

    @cached_property
    def bounds(self) -> Optional[MapArea]:
        """Smallest area covering all points of the track."""
        points = list(self)
        if not points:
            return None

        latitudes = [point.latitude for point in points]
        longitudes = [point.longitude for point in points]
        return MapArea(min(latitudes), min(longitudes), max(latitudes), max(longitudes))

    def restrict_to(
        self, area: Optional[MapArea] = None, compute_progress: bool = False
    ) -> List[Tuple[float, Segment]]:
        """
        Split the track into the runs of points that are visible in an area.

        A point is visible if it is inside the area or if the segment towards its
        predecessor or successor intersects the area.

        Args:
            area: Area to restrict to, None keeps the whole track
            compute_progress: Whether to compute the distance along the track at
                the start of each run

        Returns:
            List of (progress, points) tuples, progress is 0.0 unless computed
        """
        progress = 0.0
        runs: List[Tuple[float, List[RecordedPoint]]] = []

        for segment in self.segments:
            current_run: Optional[List[RecordedPoint]] = None

            for i, point in enumerate(segment):
                if i > 0 and compute_progress:
                    progress += segment[i - 1].distance_to(point)

                if self._is_visible(segment, i, area):
                    if current_run is None:
                        current_run = []
                        runs.append((progress, current_run))
                    current_run.append(point)
                else:
                    current_run = None

        logger.debug(f"Restricted track to {len(runs)} runs inside {area}")
        return [(start, tuple(points)) for start, points in runs]

    @staticmethod
    def _is_visible(segment: Segment, i: int, area: Optional[MapArea]) -> bool:
        if area is None:
            return True

        point = segment[i]
        if point.is_inside(area):
            return True
        if i > 0 and area.does_segment_intersect(point, segment[i - 1]):
            return True
        return i < len(segment) - 1 and area.does_segment_intersect(
            point, segment[i + 1]
        )
