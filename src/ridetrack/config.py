from dataclasses import dataclass

from .constants import TRACK_ZIP_ENTRY


@dataclass
class RideTrackConfig:
    """Configuration for loading track files and the ridetrack CLI."""

    read_chunk_size: int = 64 * 1024
    log_level: str = "WARNING"
    track_zip_entry: str = TRACK_ZIP_ENTRY
