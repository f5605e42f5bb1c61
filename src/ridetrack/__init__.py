#!/usr/bin/env python3
"""
Ridetrack - spherical geometry and GPX track parsing for recorded rides.

This package turns recorded rides (GPX documents, optionally zipped) into
immutable tracks with derived distance and duration, and provides the
geographic value types used to work with them.
"""
import importlib.metadata

__version__ = importlib.metadata.version("ridetrack")

# Import main classes for public API
from .geometry import GeoPoint, RecordedPoint
from .map_area import MapArea
from .track import Track
from .gpx_parser import GpxParser, TrackDocument
from .gpx_serializer import GpxSerializer
from .track_file import load_track, load_track_document, parse_in_background, save_track
from .errors import ContainerError, MissingTrackError, ParseCancelledError

__all__ = [
    "GeoPoint",
    "RecordedPoint",
    "MapArea",
    "Track",
    "GpxParser",
    "TrackDocument",
    "GpxSerializer",
    "load_track",
    "load_track_document",
    "parse_in_background",
    "save_track",
    "ContainerError",
    "MissingTrackError",
    "ParseCancelledError",
]
