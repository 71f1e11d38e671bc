"""GPX track parsing for gpx-viewer.

Turns GPX XML text into a CoordinateTimeline. Every track-point element that
carries both ``lat`` and ``lon`` attributes becomes one entry; points missing
either are dropped without leaving a hole in the output.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path

from gpx_viewer.errors import ParseError
from gpx_viewer.models.track import CoordinateTimeline, TrackPoint

logger = logging.getLogger("gpx_viewer.gpx")

TRACK_POINT_TAG = "trkpt"
ELEVATION_TAG = "ele"
TIME_TAG = "time"

# fromisoformat on Python 3.10 only accepts 3 or 6 fractional digits
FRACTION_PATTERN = re.compile(r"\.(\d+)")


def _local_name(tag: str) -> str:
    """Strip the ``{namespace}`` prefix ElementTree puts on tags."""
    return tag.rsplit("}", 1)[-1]


def _find_child_text(element: ET.Element, name: str) -> str | None:
    for child in element:
        if _local_name(child.tag) == name:
            return (child.text or "").strip()
    return None


def _parse_float(value: str | None) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _normalize_fraction(match: re.Match[str]) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_gpx_time(value: str | None) -> datetime | None:
    """Parse a GPX ``<time>`` value.

    Args:
        value: ISO 8601 date-time text, e.g. ``2024-05-01T09:30:00Z``.

    Returns:
        Parsed datetime, or None when absent or unparseable.
    """
    if not value:
        return None
    try:
        text = FRACTION_PATTERN.sub(_normalize_fraction, value.strip(), count=1)
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Ignoring unparseable track point time: %r", value)
        return None


def _parse_track_point(element: ET.Element) -> TrackPoint | None:
    lat = _parse_float(element.get("lat"))
    lon = _parse_float(element.get("lon"))
    if lat is None or lon is None:
        return None

    return TrackPoint(
        lat=lat,
        lon=lon,
        elevation=_parse_float(_find_child_text(element, ELEVATION_TAG)),
        time=parse_gpx_time(_find_child_text(element, TIME_TAG)),
    )


def parse_gpx(xml_text: str) -> CoordinateTimeline:
    """Parse GPX text into a coordinate timeline.

    Args:
        xml_text: GPX document as text.

    Returns:
        CoordinateTimeline (empty when the document has no qualifying points).

    Raises:
        ParseError: If the document is not well-formed XML.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise ParseError(f"Malformed GPX document: {e}") from e

    points: list[TrackPoint] = []
    skipped = 0
    for element in root.iter():
        if not isinstance(element.tag, str) or _local_name(element.tag) != TRACK_POINT_TAG:
            continue
        point = _parse_track_point(element)
        if point is None:
            skipped += 1
            continue
        points.append(point)

    if skipped:
        logger.debug("Skipped %d track points without lat/lon", skipped)
    logger.info("Parsed %d track points", len(points))

    return CoordinateTimeline.from_points(points)


def load_gpx(path: Path) -> CoordinateTimeline:
    """Read a GPX file as UTF-8 and parse it.

    Args:
        path: Path to the GPX file.

    Returns:
        CoordinateTimeline instance.

    Raises:
        ParseError: If the file is not valid UTF-8 or not well-formed XML.
    """
    logger.debug("Loading GPX file %s", path)
    try:
        xml_text = path.read_bytes().decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"GPX file is not valid UTF-8: {path}") from e
    return parse_gpx(xml_text)
