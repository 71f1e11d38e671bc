"""Unit tests for photo geotag extraction."""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import pytest

from gpx_viewer.errors import MetadataReadError, MissingGeoTagError
from gpx_viewer.services.photos import (
    dms_to_decimal,
    extract_geophoto,
    extract_geophotos,
    has_geotag,
    load_photos,
    parse_capture_time,
)


@pytest.mark.ai_generated
class TestExtractGeophoto:
    """Tests for extract_geophoto."""

    def test_coordinates_from_dms_triplets(self, make_jpeg: Callable[..., bytes]) -> None:
        """Test GPSLatitude=[35,30,0], GPSLongitude=[139,45,0] convert to decimals."""
        photo = extract_geophoto(make_jpeg(), comment="Summit", image_ref="summit.jpg")

        assert photo.coordinate.lat == pytest.approx(35.5)
        assert photo.coordinate.lon == pytest.approx(139.75)
        assert photo.coordinate.alt == pytest.approx(12.5)
        assert photo.timestamp == datetime(2024, 5, 1, 9, 30, 0)
        assert photo.comment == "Summit"
        assert photo.image_ref == "summit.jpg"

    def test_southern_and_western_hemispheres(self, make_jpeg: Callable[..., bytes]) -> None:
        photo = extract_geophoto(make_jpeg(lat_ref=b"S", lon_ref=b"W"))

        assert photo.coordinate.lat == pytest.approx(-35.5)
        assert photo.coordinate.lon == pytest.approx(-139.75)

    def test_below_sea_level(self, make_jpeg: Callable[..., bytes]) -> None:
        photo = extract_geophoto(make_jpeg(altitude=(30, 1), altitude_ref=1))

        assert photo.coordinate.alt == pytest.approx(-30.0)

    def test_missing_altitude_defaults_to_zero(self, make_jpeg: Callable[..., bytes]) -> None:
        photo = extract_geophoto(make_jpeg(altitude=None))

        assert photo.coordinate.alt == 0.0

    def test_digitized_time_used_when_original_missing(self, make_jpeg: Callable[..., bytes]) -> None:
        photo = extract_geophoto(
            make_jpeg(original=None, digitized=b"2024:05:02 10:00:00", modified=b"2024:05:03 11:00:00")
        )

        assert photo.timestamp == datetime(2024, 5, 2, 10, 0, 0)

    def test_modified_time_is_last_resort(self, make_jpeg: Callable[..., bytes]) -> None:
        photo = extract_geophoto(make_jpeg(original=None, modified=b"2024/05/03 11:00:00"))

        assert photo.timestamp == datetime(2024, 5, 3, 11, 0, 0)

    def test_non_matching_time_yields_none(self, make_jpeg: Callable[..., bytes]) -> None:
        """Test an unmatched date pattern is a valid null timestamp, not an error."""
        photo = extract_geophoto(make_jpeg(original=b"unknown"))

        assert photo.timestamp is None

    def test_missing_gps_raises(self, make_jpeg: Callable[..., bytes]) -> None:
        with pytest.raises(MissingGeoTagError):
            extract_geophoto(make_jpeg(lat=None, lon=None))

    def test_corrupt_image_raises_metadata_error(self) -> None:
        with pytest.raises(MetadataReadError):
            extract_geophoto(b"\xff\xd8\xff\xe1\x00\x10Exif\x00\x00garbage")

    def test_unsupported_data_raises_metadata_error(self) -> None:
        with pytest.raises(MetadataReadError):
            extract_geophoto(b"definitely not an image")


@pytest.mark.ai_generated
class TestExtractGeophotos:
    """Tests for batch extraction."""

    def test_failures_are_skipped(self, make_jpeg: Callable[..., bytes]) -> None:
        """Test one bad photo does not abort the batch."""
        photos = extract_geophotos(
            [
                (make_jpeg(), "first", "a.jpg"),
                (make_jpeg(lat=None, lon=None), "no gps", "b.jpg"),
                (b"garbage", "corrupt", "c.jpg"),
                (make_jpeg(lat=(36, 0, 0)), "last", "d.jpg"),
            ]
        )

        assert [p.image_ref for p in photos] == ["a.jpg", "d.jpg"]
        assert photos[1].coordinate.lat == pytest.approx(36.0)

    def test_skips_are_logged(
        self, make_jpeg: Callable[..., bytes], caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("WARNING", logger="gpx_viewer.photos"):
            extract_geophotos([(make_jpeg(lat=None, lon=None), "", "nogps.jpg")])

        assert "nogps.jpg" in caplog.text

    def test_load_photos_from_disk(self, tmp_path: Path, make_jpeg: Callable[..., bytes]) -> None:
        good = tmp_path / "good.jpg"
        good.write_bytes(make_jpeg())
        bad = tmp_path / "bad.jpg"
        bad.write_bytes(make_jpeg(lat=None, lon=None))

        photos = load_photos([good, bad], comment="trip")

        assert len(photos) == 1
        assert photos[0].image_ref == good
        assert photos[0].comment == "trip"


@pytest.mark.ai_generated
class TestHelpers:
    """Tests for conversion helpers."""

    def test_dms_to_decimal(self) -> None:
        assert dms_to_decimal(((35, 1), (30, 1), (0, 1))) == pytest.approx(35.5)
        assert dms_to_decimal(((139, 1), (45, 1), (3600, 100)), "W") == pytest.approx(-139.76)

    def test_capture_time_patterns(self) -> None:
        assert parse_capture_time(b"2024:05:01 09:30:00") == datetime(2024, 5, 1, 9, 30)
        assert parse_capture_time("2024/05/01T09:30:00") == datetime(2024, 5, 1, 9, 30)
        assert parse_capture_time("2024-05-01 09:30:00") is None
        assert parse_capture_time("    :  :     :  :  ") is None
        assert parse_capture_time(None) is None

    def test_has_geotag(self, make_jpeg: Callable[..., bytes]) -> None:
        assert has_geotag(make_jpeg()) is True
        assert has_geotag(make_jpeg(lat=None, lon=None)) is False
