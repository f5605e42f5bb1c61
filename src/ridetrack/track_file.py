#!/usr/bin/env python3
"""
Reading and writing track files, optionally wrapped in a zip container.
"""

from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from contextlib import contextmanager
from typing import BinaryIO, Iterator, Optional, Tuple, Union
import io
import logging
import os
import struct
import threading
import zipfile
import zlib

from .config import RideTrackConfig
from .constants import ENCODING, GPX_ZIP_FILE_EXTENSION, TRACK_ZIP_ENTRY
from .errors import ContainerError, MissingTrackError, ParseCancelledError
from .gpx_parser import GpxParser, TrackDocument
from .gpx_serializer import GpxSerializer
from .track import Track

logger = logging.getLogger(__name__)

Source = Union[str, os.PathLike, BinaryIO]

# Local file header signature of a zip archive
ZIP_SIGNATURE = b"PK\x03\x04"

# signature, version, flags, method, mod time, mod date, crc-32,
# compressed size, uncompressed size, name length, extra field length
_LOCAL_HEADER = struct.Struct("<4s5H3L2H")
_FLAG_DATA_DESCRIPTOR = 0x08
_FLAG_UTF8_NAME = 0x800
_ZIP64_SIZE = 0xFFFFFFFF
_INFLATE_CHUNK_SIZE = 64 * 1024


def _peek(stream: BinaryIO, size: int) -> Tuple[bytes, BinaryIO]:
    """
    Read the first bytes of a stream without consuming them.

    Returns:
        Tuple of (head, stream), the returned stream still starts at head
    """
    if stream.seekable():
        position = stream.tell()
        head = stream.read(size)
        stream.seek(position)
        return head, stream

    # Zip files need random access anyway, so buffer non-seekable streams
    buffered = io.BytesIO(stream.read())
    return buffered.getvalue()[:size], buffered


@contextmanager
def open_track_document(
    stream: BinaryIO, entry_name: str = TRACK_ZIP_ENTRY
) -> Iterator[BinaryIO]:
    """
    Open the GPX document inside a track file.

    Args:
        stream: Binary stream of either a zip container or a plain document
        entry_name: Name of the document entry inside a zip container

    Yields:
        Binary stream of the GPX document

    Raises:
        ContainerError: If the zip container is corrupt or lacks the entry.
    """
    head, stream = _peek(stream, len(ZIP_SIGNATURE))

    if head != ZIP_SIGNATURE:
        yield stream
        return

    position = stream.tell()
    try:
        archive = zipfile.ZipFile(stream)
    except zipfile.BadZipFile as e:
        stream.seek(position)
        partial_entry = _open_local_entry(stream, entry_name)
        if partial_entry is None:
            raise ContainerError(f"Corrupt track container: {e}") from e
    else:
        with archive:
            try:
                entry = archive.open(entry_name)
            except KeyError as e:
                raise ContainerError(
                    f"Track container has no '{entry_name}' entry"
                ) from e
            except zipfile.BadZipFile as e:
                raise ContainerError(f"Corrupt track container: {e}") from e

            logger.debug(f"Reading '{entry_name}' from zipped track file")
            with entry:
                try:
                    yield entry
                except (zipfile.BadZipFile, zlib.error) as e:
                    # e.g. CRC mismatch noticed while reading the entry
                    raise ContainerError(f"Corrupt track container: {e}") from e
        return

    logger.warning(
        f"Track container has no central directory, reading '{entry_name}' up to "
        "the end of the data"
    )
    with partial_entry:
        yield partial_entry


class _LocalEntryReader(io.RawIOBase):
    """
    Read a zip entry directly after its local file header.

    The entry ends where its compressed size says or, if that is unknown or
    the data was cut off, where the stream ends.
    """

    def __init__(self, stream: BinaryIO, method: int, compressed_size: Optional[int]):
        self._stream = stream
        self._remaining = compressed_size
        self._inflater = (
            zlib.decompressobj(-zlib.MAX_WBITS) if method == zipfile.ZIP_DEFLATED else None
        )
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self._inflater is None:
            data = self._read_compressed(len(buffer))
        else:
            data = self._inflate(len(buffer))
        buffer[: len(data)] = data
        return len(data)

    def _read_compressed(self, size: int) -> bytes:
        if self._remaining is not None:
            size = min(size, self._remaining)
        data = self._stream.read(size)
        if self._remaining is not None:
            self._remaining -= len(data)
        return data

    def _inflate(self, size: int) -> bytes:
        while not self._pending and not self._inflater.eof:
            compressed = self._read_compressed(_INFLATE_CHUNK_SIZE)
            if not compressed:
                break
            try:
                self._pending = self._inflater.decompress(compressed)
            except zlib.error as e:
                raise ContainerError(f"Corrupt track container: {e}") from e

        data, self._pending = self._pending[:size], self._pending[size:]
        return data


def _open_local_entry(stream: BinaryIO, entry_name: str) -> Optional[BinaryIO]:
    """
    Open the first entry of a zip container from its local file header.

    Returns:
        Stream of the entry, or None if the data does not start with a
        readable local header for entry_name
    """
    header = stream.read(_LOCAL_HEADER.size)
    if len(header) < _LOCAL_HEADER.size:
        return None

    (signature, _, flags, method, _, _, _, compressed_size, _, name_length,
     extra_length) = _LOCAL_HEADER.unpack(header)
    if signature != ZIP_SIGNATURE or method not in (zipfile.ZIP_STORED, zipfile.ZIP_DEFLATED):
        return None

    name_encoding = ENCODING if flags & _FLAG_UTF8_NAME else "cp437"
    name = stream.read(name_length).decode(name_encoding, errors="replace")
    if name != entry_name:
        logger.debug(f"First entry of track container is '{name}', not '{entry_name}'")
        return None
    stream.read(extra_length)

    if flags & _FLAG_DATA_DESCRIPTOR or compressed_size == _ZIP64_SIZE:
        return _LocalEntryReader(stream, method, None)
    return _LocalEntryReader(stream, method, compressed_size)


def _parse_stream(
    stream: BinaryIO,
    cancel_event: Optional[threading.Event],
    config: RideTrackConfig,
) -> TrackDocument:
    with open_track_document(stream, config.track_zip_entry) as document:
        parser = GpxParser(document, chunk_size=config.read_chunk_size)
        return parser.parse(cancel_event)


def load_track_document(
    source: Source,
    cancel_event: Optional[threading.Event] = None,
    config: Optional[RideTrackConfig] = None,
) -> TrackDocument:
    """
    Load a track file.

    Args:
        source: Path of the track file or a binary stream owned by the parser
        cancel_event: Set to abort parsing
        config: Loading configuration, defaults to RideTrackConfig()

    Returns:
        TrackDocument with the parsed track, name and time

    Raises:
        FileNotFoundError: If the file doesn't exist.
        ContainerError: If the zip container cannot be read.
        ParseCancelledError: If cancel_event was set while parsing.
    """
    config = config or RideTrackConfig()

    if isinstance(source, (str, os.PathLike)):
        logger.debug(f"Reading track file: {source}")
        with open(source, "rb") as f:
            return _parse_stream(f, cancel_event, config)

    return _parse_stream(source, cancel_event, config)


def load_track(
    source: Source,
    cancel_event: Optional[threading.Event] = None,
    config: Optional[RideTrackConfig] = None,
) -> Track:
    """
    Load the track of a track file.

    Raises:
        MissingTrackError: If the document contains no track.
    """
    document = load_track_document(source, cancel_event, config)
    if document.track is None:
        raise MissingTrackError(f"No track in {source}")
    return document.track


def save_track(
    path: Union[str, os.PathLike],
    track: Track,
    name: Optional[str] = None,
    time: Optional[int] = None,
    compress: Optional[bool] = None,
) -> None:
    """
    Write a track to a GPX file.

    Args:
        path: Destination path
        track: Track to write
        name: Name of the ride
        time: Recording time in epoch milliseconds
        compress: Whether to wrap the document in a zip container, by default
            only for paths ending in .gpx.zip
    """
    if compress is None:
        compress = os.fspath(path).lower().endswith(GPX_ZIP_FILE_EXTENSION)

    serializer = GpxSerializer.from_track(track, name=name, time=time)

    if compress:
        with zipfile.ZipFile(path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            with archive.open(TRACK_ZIP_ENTRY, "w") as entry:
                serializer.write(entry)
    else:
        with open(path, "wb") as f:
            serializer.write(f)

    logger.debug(f"Saved track with {track.point_count} points to {path}")


class ParseTask:
    """
    A track file being parsed on a worker thread.

    Cancellation is cooperative: cancel() sets an event the parser checks once
    per track point. A cancelled task never delivers a partial result.
    """

    def __init__(self, future: "Future[TrackDocument]", cancel_event: threading.Event):
        self._future = future
        self._cancel_event = cancel_event

    def cancel(self) -> None:
        self._cancel_event.set()
        self._future.cancel()

    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def done(self) -> bool:
        return self._future.done()

    def result(self, timeout: Optional[float] = None) -> TrackDocument:
        """
        Wait for the parse to finish.

        Raises:
            ParseCancelledError: If the task was cancelled.
            concurrent.futures.TimeoutError: If the timeout expired.
        """
        try:
            return self._future.result(timeout)
        except CancelledError as e:
            # Cancelled before the worker picked it up
            raise ParseCancelledError("GPX parsing was cancelled") from e


def parse_in_background(
    source: Source,
    executor: Optional[ThreadPoolExecutor] = None,
    config: Optional[RideTrackConfig] = None,
) -> ParseTask:
    """
    Start loading a track file off the calling thread.

    Args:
        source: Path of the track file or a binary stream owned by the task
        executor: Executor to run on, a single-use worker thread by default
        config: Loading configuration

    Returns:
        ParseTask to wait for or cancel the parse
    """
    cancel_event = threading.Event()

    if executor is not None:
        future = executor.submit(load_track_document, source, cancel_event, config)
        return ParseTask(future, cancel_event)

    own_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="ridetrack-parse")
    future = own_executor.submit(load_track_document, source, cancel_event, config)
    own_executor.shutdown(wait=False)
    return ParseTask(future, cancel_event)
