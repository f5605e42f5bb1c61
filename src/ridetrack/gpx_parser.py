#!/usr/bin/env python3
"""
Streaming GPX parser.

The document is read in chunks and fed into an XML pull parser. Every element
is handled by the same recursive primitive, which consumes the children of the
current element until its close event (or the end of input) and hands known
child tags to a per-tag handler. Malformed numbers, malformed times and a
truncated document never fail the parse, the affected field, point or subtree
is treated as absent instead.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import BinaryIO, Callable, Dict, Generator, List, NamedTuple, Optional, Tuple
import codecs
import logging
import threading
import xml.etree.ElementTree as ET

from .constants import (
    DATE_FORMAT,
    ELE_TAG,
    ENCODING,
    GPX_TAG,
    LAT_ATTR,
    LON_ATTR,
    METADATA_TAG,
    NAME_TAG,
    TIME_TAG,
    TRK_TAG,
    TRKPT_TAG,
    TRKSEG_TAG,
)
from .errors import ParseCancelledError
from .geometry import RecordedPoint
from .track import Track

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024

Event = Tuple[str, ET.Element]
Events = Generator[Event, None, None]
Handler = Callable[[ET.Element, Events], None]


class TrackDocument(NamedTuple):
    """Everything read from a GPX document."""

    track: Optional[Track]
    name: Optional[str]
    time: Optional[int]


@dataclass
class _ParseState:
    """Data accumulated while parsing, only published once parsing completed."""

    name: Optional[str] = None
    time: Optional[int] = None
    has_track: bool = False
    segments: List[List[RecordedPoint]] = field(default_factory=list)


def _local_name(tag: str) -> str:
    """Strip the namespace from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


def parse_time(text: Optional[str]) -> Optional[int]:
    """
    Parse a GPX time field.

    Args:
        text: Text content of the time element

    Returns:
        Milliseconds since the epoch, or None if the text cannot be parsed
    """
    if text is None:
        return None

    try:
        parsed = datetime.strptime(text.strip(), DATE_FORMAT)
    except ValueError as e:
        logger.warning(f"Cannot parse time '{text}': {e}")
        return None

    return int(parsed.replace(tzinfo=timezone.utc).timestamp()) * 1000


class GpxParser:
    """Parse GPX documents into Tracks."""

    def __init__(self, stream: BinaryIO, chunk_size: int = DEFAULT_CHUNK_SIZE):
        """
        Args:
            stream: Binary stream containing the GPX document, exclusively owned
                by this parser while parsing
            chunk_size: Number of bytes read from the stream at once
        """
        self._stream = stream
        self._chunk_size = chunk_size
        self._cancel_event: Optional[threading.Event] = None

        # Locations of the ride
        self.track: Optional[Track] = None
        # Name of the ride
        self.name: Optional[str] = None
        # Date the ride claims to have been recorded, in epoch milliseconds
        self.time: Optional[int] = None

    def parse(self, cancel_event: Optional[threading.Event] = None) -> TrackDocument:
        """
        Parse the whole stream.

        Args:
            cancel_event: Checked once per track point, parsing stops as soon
                as it is set

        Returns:
            TrackDocument with the parsed track, name and time

        Raises:
            ParseCancelledError: If cancel_event was set while parsing. The
                parser's results are left untouched.
            OSError: If reading the stream fails.
        """
        self._cancel_event = cancel_event
        state = _ParseState()
        events = self._read_events()

        try:
            for event, elem in events:
                if event != "start":
                    continue
                if _local_name(elem.tag) == GPX_TAG:
                    self._parse_gpx(events, state)
                else:
                    logger.debug(f"Skipping unexpected root element '{elem.tag}'")
                    self._skip_tag(events)
        finally:
            events.close()
            self._cancel_event = None

        self.track = Track(state.segments) if state.has_track else None
        self.name = state.name
        self.time = state.time

        logger.debug(
            f"Parsed GPX document: {len(state.segments)} segments, "
            f"{sum(len(s) for s in state.segments)} track points"
        )
        return TrackDocument(self.track, self.name, self.time)

    def _read_events(self) -> Events:
        """Feed the stream into a pull parser and yield (event, element) tuples."""
        pull_parser = ET.XMLPullParser(events=("start", "end"))
        decoder = codecs.getincrementaldecoder(ENCODING)(errors="replace")

        try:
            while True:
                chunk = self._stream.read(self._chunk_size)
                if not chunk:
                    break
                pull_parser.feed(decoder.decode(chunk))
                yield from pull_parser.read_events()

            pull_parser.feed(decoder.decode(b"", final=True))
            pull_parser.close()
            yield from pull_parser.read_events()
        except ET.ParseError as e:
            logger.warning(f"Unexpected end of GPX document, keeping data parsed so far: {e}")

    def _parse_tag(self, events: Events, handlers: Optional[Dict[str, Handler]] = None) -> None:
        """
        Consume the children of the current element.

        Returns on the close event of the current element or at the end of
        input. Children without a handler are skipped including their subtree.
        """
        handlers = handlers or {}

        for event, elem in events:
            if event == "end":
                return

            handler = handlers.get(_local_name(elem.tag))
            if handler is None:
                self._skip_tag(events)
            else:
                handler(elem, events)

    @staticmethod
    def _skip_tag(events: Events) -> None:
        """Consume the rest of the current element, however deeply it is nested."""
        depth = 0

        for event, _ in events:
            if event == "start":
                depth += 1
            elif depth == 0:
                return
            else:
                depth -= 1

    def _parse_text(self, elem: ET.Element, events: Events) -> Optional[str]:
        self._skip_tag(events)
        return elem.text

    def _parse_gpx(self, events: Events, state: _ParseState) -> None:
        def on_time(time: Optional[int]) -> None:
            if state.time is None:
                state.time = time

        def on_track(elem: ET.Element, events: Events) -> None:
            state.has_track = True
            name = self._parse_track(events, state.segments)
            if state.name is None:
                state.name = name

        self._parse_tag(
            events,
            {
                METADATA_TAG: lambda elem, events: on_time(self._parse_metadata(events)),
                # Not standard compliant, but used by some recorders
                TIME_TAG: lambda elem, events: on_time(
                    parse_time(self._parse_text(elem, events))
                ),
                TRK_TAG: on_track,
            },
        )

    def _parse_metadata(self, events: Events) -> Optional[int]:
        times: List[Optional[int]] = []

        self._parse_tag(
            events,
            {
                TIME_TAG: lambda elem, events: times.append(
                    parse_time(self._parse_text(elem, events))
                )
            },
        )

        return next((time for time in times if time is not None), None)

    def _parse_track(
        self, events: Events, segments: List[List[RecordedPoint]]
    ) -> Optional[str]:
        names: List[str] = []

        def on_segment(elem: ET.Element, events: Events) -> None:
            segment: List[RecordedPoint] = []
            # Added before parsing so a truncated segment is still kept
            segments.append(segment)
            self._parse_track_segment(elem, events, segment)

        def on_name(elem: ET.Element, events: Events) -> None:
            text = self._parse_text(elem, events)
            if text is not None:
                names.append(text)

        self._parse_tag(events, {NAME_TAG: on_name, TRKSEG_TAG: on_segment})

        return names[0] if names else None

    def _parse_track_segment(
        self, segment_elem: ET.Element, events: Events, segment: List[RecordedPoint]
    ) -> None:
        def on_track_point(elem: ET.Element, events: Events) -> None:
            self._ensure_active()
            point = self._parse_track_point(elem, events)
            if point is not None:
                segment.append(point)
            # Finished points are not needed in the tree anymore
            elem.clear()
            segment_elem.clear()

        self._parse_tag(events, {TRKPT_TAG: on_track_point})

    def _parse_track_point(self, elem: ET.Element, events: Events) -> Optional[RecordedPoint]:
        try:
            latitude = float(elem.attrib[LAT_ATTR])
            longitude = float(elem.attrib[LON_ATTR])
        except (KeyError, ValueError) as e:
            logger.error(f"Cannot parse number in '{TRKPT_TAG}' {elem.attrib}: {e!r}")
            self._skip_tag(events)
            return None

        elevation: Optional[float] = None
        timestamp: Optional[int] = None

        def on_elevation(elem: ET.Element, events: Events) -> None:
            nonlocal elevation
            elevation = self._parse_elevation(self._parse_text(elem, events))

        def on_time(elem: ET.Element, events: Events) -> None:
            nonlocal timestamp
            timestamp = parse_time(self._parse_text(elem, events))

        self._parse_tag(events, {ELE_TAG: on_elevation, TIME_TAG: on_time})

        return RecordedPoint(
            latitude,
            longitude,
            elevation=elevation,
            timestamp=timestamp,
        )

    @staticmethod
    def _parse_elevation(text: Optional[str]) -> Optional[float]:
        if text is None:
            return None

        try:
            return float(text)
        except ValueError as e:
            logger.error(f"Cannot parse '{ELE_TAG}' as float: {e}")
            return None

    def _ensure_active(self) -> None:
        if self._cancel_event is not None and self._cancel_event.is_set():
            logger.info("GPX parsing cancelled")
            raise ParseCancelledError("GPX parsing was cancelled")
