#!/usr/bin/env python3
"""
Track file summary tool.

Loads a GPX track file (plain or zipped) and prints what was recorded: name,
recording time, segments, points, distance and duration.
"""

from datetime import datetime, timezone
from typing import List, Optional
import argparse
import logging
import sys

from . import __version__
from .config import RideTrackConfig
from .errors import ContainerError, ParseCancelledError
from .gpx_parser import TrackDocument
from .track_file import parse_in_background

# Configure logging
logger = logging.getLogger("ridetrack")


def create_argument_parser() -> argparse.ArgumentParser:
    """
    Create and configure the command-line argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        description="Summarize a recorded ride from a GPX track file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "filename",
        type=str,
        nargs="?",
        help="GPX or zipped GPX track file to read",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ridetrack {__version__}",
    )
    return parser


def setup_logging(config: RideTrackConfig) -> None:
    """Setup logging configuration."""
    level = getattr(logging, config.log_level)

    # Create formatter
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    # Create console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)

    # Configure the root logger so all modules inherit the configuration
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)


def format_duration(millis: int) -> str:
    """Format a duration as H:MM."""
    total_minutes = millis // 60000
    return f"{total_minutes // 60}:{total_minutes % 60:02d}"


def format_summary(document: TrackDocument) -> List[str]:
    """
    Build the lines printed for a parsed track file.

    Args:
        document: Parsed track file

    Returns:
        List of output lines
    """
    lines = [f"Name: {document.name or '-'}"]

    if document.time is not None:
        recorded = datetime.fromtimestamp(document.time / 1000, tz=timezone.utc)
        lines.append(f"Recorded: {recorded:%Y-%m-%d %H:%M} UTC")

    track = document.track
    if track is None:
        lines.append("No track")
        return lines

    lines.append(f"Segments: {len(track)}")
    lines.append(f"Points: {track.point_count}")
    lines.append(f"Distance: {track.distance / 1000:.2f} km")
    duration = track.duration
    lines.append(
        f"Duration: {format_duration(duration) if duration is not None else '-'}"
    )
    return lines


def main(argv: Optional[List[str]] = None) -> None:
    """
    Parses command-line arguments, loads the track file and prints a summary.
    """
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.filename:
        parser.print_help()
        sys.exit(1)

    config = RideTrackConfig(log_level=args.log_level)
    setup_logging(config)

    task = parse_in_background(args.filename, config=config)
    try:
        document = task.result()
    except KeyboardInterrupt:
        task.cancel()
        logger.warning("Interrupted, cancelling")
        sys.exit(1)
    except FileNotFoundError:
        logger.error(f"Track file not found: {args.filename}")
        sys.exit(1)
    except PermissionError:
        logger.error(f"Cannot read track file (permission denied): {args.filename}")
        sys.exit(1)
    except OSError as e:
        logger.error(f"Cannot read track file {args.filename}: {e}")
        sys.exit(1)
    except ContainerError as e:
        logger.error(f"Invalid track file: {e}")
        sys.exit(1)
    except ParseCancelledError:
        sys.exit(1)

    for line in format_summary(document):
        print(line)

    if document.track is None:
        sys.exit(1)


if __name__ == "__main__":
    main()
