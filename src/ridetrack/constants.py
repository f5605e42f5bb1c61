"""
Constants shared by the GPX parser, serializer and geometry helpers.
"""

GPX_MIME_TYPE = "application/gpx+xml"
GPX_FILE_EXTENSION = ".gpx"
GPX_ZIP_FILE_EXTENSION = ".gpx.zip"

# Name of the single document entry inside a zipped track file
TRACK_ZIP_ENTRY = "track.gpx"

GPX_NS = "http://www.topografix.com/GPX/1/1"
GPX_SCHEMA_VERSION = "1.1"

GPX_TAG = "gpx"
METADATA_TAG = "metadata"
TIME_TAG = "time"
TRK_TAG = "trk"
NAME_TAG = "name"
TRKSEG_TAG = "trkseg"
TRKPT_TAG = "trkpt"
LAT_ATTR = "lat"
LON_ATTR = "lon"
ELE_TAG = "ele"

# All times are UTC
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
ENCODING = "utf-8"

# Mean earth radius, every calculation assumes a sphere
EARTH_RADIUS_METERS = 6371000.0

VECTOR_EPSILON = 1e-12
