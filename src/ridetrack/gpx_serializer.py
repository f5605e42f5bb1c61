"""
Serialize ride data to GPX 1.1 documents.
"""

from datetime import datetime, timezone
from typing import BinaryIO, Optional, Union
import logging
import time as time_module

import gpxpy.gpx

from .constants import ENCODING, GPX_SCHEMA_VERSION
from .geometry import RecordedPoint
from .track import Track

logger = logging.getLogger(__name__)

CREATOR = "ridetrack"

# Marker for "use the current time"
_NOW = object()


def _to_datetime(millis: int) -> datetime:
    # The GPX time pattern has no fractional seconds
    return datetime.fromtimestamp(millis // 1000, tz=timezone.utc)


def _now_millis() -> int:
    return int(time_module.time() * 1000)


class GpxSerializer:
    """
    Collect the points of a ride and render them as a GPX document.

    Points are added to the current segment, new_segment() starts the next one
    (e.g. after the location was lost for a long time).
    """

    def __init__(self, name: Optional[str] = None, time: Union[int, None, object] = _NOW):
        """
        Args:
            name: Name of the ride
            time: Recording time in epoch milliseconds, defaults to now, None
                omits the metadata time
        """
        self._gpx = gpxpy.gpx.GPX()
        self._gpx.creator = CREATOR
        if time is _NOW:
            time = _now_millis()
        if time is not None:
            self._gpx.time = _to_datetime(time)

        self._track = gpxpy.gpx.GPXTrack(name=name)
        self._gpx.tracks.append(self._track)
        self._segment = gpxpy.gpx.GPXTrackSegment()
        self._track.segments.append(self._segment)

    @classmethod
    def from_track(
        cls, track: Track, name: Optional[str] = None, time: Optional[int] = None
    ) -> "GpxSerializer":
        serializer = cls(name=name, time=time)
        for i, segment in enumerate(track.segments):
            if i > 0:
                serializer.new_segment()
            for point in segment:
                serializer.add_point(point)
        return serializer

    def add_point(self, point: RecordedPoint) -> None:
        """Add a new location to the ride."""
        self._segment.points.append(
            gpxpy.gpx.GPXTrackPoint(
                latitude=round(point.latitude, 6),
                longitude=round(point.longitude, 6),
                elevation=None if point.elevation is None else round(point.elevation, 2),
                time=None if point.timestamp is None else _to_datetime(point.timestamp),
            )
        )

    def new_segment(self) -> None:
        """Start a new sub-track inside the ride."""
        self._segment = gpxpy.gpx.GPXTrackSegment()
        self._track.segments.append(self._segment)

    def to_xml(self) -> str:
        return self._gpx.to_xml(version=GPX_SCHEMA_VERSION)

    def write(self, stream: BinaryIO) -> None:
        xml = self.to_xml()
        stream.write(xml.encode(ENCODING))
        logger.debug(
            f"Wrote GPX document with {self._gpx.get_track_points_no()} track points"
        )
