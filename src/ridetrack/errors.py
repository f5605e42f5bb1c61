"""Central error types used across the package."""


class TrackFileError(RuntimeError):
    """Base error for track files that cannot be read at all."""


class ContainerError(TrackFileError):
    """Raised when a zipped track file is corrupt or lacks the document entry."""


class MissingTrackError(TrackFileError):
    """Raised when a document was read but holds no track."""


class ParseCancelledError(RuntimeError):
    """Raised when a parse observed its cancellation signal."""


__all__ = [
    "TrackFileError",
    "ContainerError",
    "MissingTrackError",
    "ParseCancelledError",
]
