"""Geotag extraction from photo EXIF metadata.

Reads the GPS coordinate triplets, altitude, and capture time from an
image's EXIF block and turns them into a GeoPhoto.
"""

from __future__ import annotations

import logging
import re
import struct
from collections.abc import Iterable
from datetime import datetime
from pathlib import Path
from typing import Any

import piexif

from gpx_viewer.errors import MetadataReadError, MissingGeoTagError
from gpx_viewer.models.photo import GeoCoordinate, GeoPhoto

logger = logging.getLogger("gpx_viewer.photos")

# YYYY[:/]MM[:/]DD[T ]HH:MM:SS
CAPTURE_TIME_PATTERN = re.compile(
    r"(\d{4})[:/](\d{2})[:/](\d{2})[T ](\d{2}):(\d{2}):(\d{2})"
)


def _rational_to_float(value: Any) -> float:
    """Convert an EXIF rational ``(numerator, denominator)`` to float."""
    if isinstance(value, (int, float)):
        return float(value)
    numerator, denominator = value
    if denominator == 0:
        raise ValueError("zero denominator")
    return numerator / denominator


def dms_to_decimal(dms: Any, ref: bytes | str | None = None) -> float:
    """Convert a degree/minute/second triplet to decimal degrees.

    Args:
        dms: Three EXIF rationals (degrees, minutes, seconds).
        ref: Hemisphere reference; ``S`` and ``W`` give negative values.

    Returns:
        Decimal degrees.
    """
    degrees, minutes, seconds = (_rational_to_float(v) for v in dms)
    decimal = degrees + minutes / 60 + seconds / 3600

    if isinstance(ref, bytes):
        ref = ref.decode("ascii", errors="replace")
    if ref and ref.strip().upper() in ("S", "W"):
        decimal = -decimal
    return decimal


def parse_capture_time(value: bytes | str | None) -> datetime | None:
    """Parse an EXIF date-time string as a local (naive) datetime.

    Args:
        value: Raw EXIF value, e.g. ``b"2024:05:01 09:30:00"``.

    Returns:
        Parsed datetime, or None when the value does not match.
    """
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")

    match = CAPTURE_TIME_PATTERN.search(value)
    if match is None:
        return None

    try:
        return datetime(*(int(group) for group in match.groups()))
    except ValueError:
        logger.debug("Capture time out of range: %r", value)
        return None


def _read_exif(image_bytes: bytes) -> dict[str, Any]:
    try:
        return piexif.load(image_bytes)
    except (
        piexif.InvalidImageDataError,
        OSError,
        ValueError,
        IndexError,
        KeyError,
        struct.error,
    ) as e:
        raise MetadataReadError(f"Could not read image metadata: {e}") from e


def _capture_time(exif: dict[str, Any]) -> datetime | None:
    """Pick the first matching capture time: original, digitized, modified."""
    exif_ifd = exif.get("Exif") or {}
    zeroth_ifd = exif.get("0th") or {}
    candidates = (
        exif_ifd.get(piexif.ExifIFD.DateTimeOriginal),
        exif_ifd.get(piexif.ExifIFD.DateTimeDigitized),
        zeroth_ifd.get(piexif.ImageIFD.DateTime),
    )
    for candidate in candidates:
        timestamp = parse_capture_time(candidate)
        if timestamp is not None:
            return timestamp
    return None


def has_geotag(image_bytes: bytes) -> bool:
    """Check whether an image carries GPS latitude and longitude tags.

    Args:
        image_bytes: Raw image content.

    Returns:
        True if both coordinate tags are present.

    Raises:
        MetadataReadError: If the metadata block cannot be decoded.
    """
    gps = _read_exif(image_bytes).get("GPS") or {}
    return piexif.GPSIFD.GPSLatitude in gps and piexif.GPSIFD.GPSLongitude in gps


def extract_geophoto(image_bytes: bytes, comment: str = "", image_ref: Any = None) -> GeoPhoto:
    """Build a GeoPhoto from an image's embedded geotag.

    Args:
        image_bytes: Raw image content (JPEG or TIFF).
        comment: Free-text comment shown with the marker.
        image_ref: Opaque reference to the image (path, URL, key).

    Returns:
        GeoPhoto instance. The timestamp is None when no date-time field
        matches the capture time pattern.

    Raises:
        MetadataReadError: If the metadata block cannot be decoded.
        MissingGeoTagError: If the GPS coordinate tags are absent or invalid.
    """
    exif = _read_exif(image_bytes)
    gps = exif.get("GPS") or {}

    if piexif.GPSIFD.GPSLatitude not in gps or piexif.GPSIFD.GPSLongitude not in gps:
        raise MissingGeoTagError("Image has no GPS latitude/longitude tags")

    try:
        lat = dms_to_decimal(
            gps[piexif.GPSIFD.GPSLatitude], gps.get(piexif.GPSIFD.GPSLatitudeRef)
        )
        lon = dms_to_decimal(
            gps[piexif.GPSIFD.GPSLongitude], gps.get(piexif.GPSIFD.GPSLongitudeRef)
        )
    except (TypeError, ValueError) as e:
        raise MissingGeoTagError(f"Invalid GPS coordinate tags: {e}") from e

    alt = 0.0
    if piexif.GPSIFD.GPSAltitude in gps:
        try:
            alt = _rational_to_float(gps[piexif.GPSIFD.GPSAltitude])
        except (TypeError, ValueError):
            logger.debug("Ignoring invalid GPS altitude: %r", gps[piexif.GPSIFD.GPSAltitude])
        # Altitude reference 1 means below sea level
        if gps.get(piexif.GPSIFD.GPSAltitudeRef) == 1:
            alt = -alt

    return GeoPhoto(
        coordinate=GeoCoordinate(lat=lat, lon=lon, alt=alt),
        timestamp=_capture_time(exif),
        comment=comment,
        image_ref=image_ref,
    )


def extract_geophotos(items: Iterable[tuple[bytes, str, Any]]) -> list[GeoPhoto]:
    """Extract geotags for a batch of photos.

    Photos that cannot be geolocated are logged and skipped; the rest of the
    batch is processed normally.

    Args:
        items: ``(image_bytes, comment, image_ref)`` tuples.

    Returns:
        GeoPhotos for every image that could be geolocated, in input order.
    """
    photos: list[GeoPhoto] = []
    for image_bytes, comment, image_ref in items:
        try:
            photos.append(extract_geophoto(image_bytes, comment, image_ref))
        except (MetadataReadError, MissingGeoTagError) as e:
            logger.warning("Skipping photo %s: %s", image_ref, e)
    logger.info("Geolocated %d photos", len(photos))
    return photos


def load_photos(paths: Iterable[Path], comment: str = "") -> list[GeoPhoto]:
    """Read image files and extract their geotags, skipping failures.

    Args:
        paths: Image file paths.
        comment: Comment attached to every photo.

    Returns:
        List of GeoPhotos.
    """
    return extract_geophotos((path.read_bytes(), comment, path) for path in paths)
