"""Shared pytest fixtures for gpx-viewer tests."""

from __future__ import annotations

import io
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import piexif
import pytest
from click.testing import CliRunner
from PIL import Image

SAMPLE_GPX = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="gpx-viewer tests" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Morning Walk</name>
    <trkseg>
      <trkpt lat="35.000000" lon="139.000000"><ele>10.0</ele><time>2024-05-01T09:00:00Z</time></trkpt>
      <trkpt lat="35.001000" lon="139.001000"><ele>12.5</ele><time>2024-05-01T09:00:10Z</time></trkpt>
      <trkpt lat="35.002000" lon="139.002000"><ele>15.0</ele><time>2024-05-01T09:00:20Z</time></trkpt>
      <trkpt lat="35.003000" lon="139.003000"><time>2024-05-01T09:00:30Z</time></trkpt>
      <trkpt lat="35.004000" lon="139.004000"><ele>20.0</ele></trkpt>
    </trkseg>
  </trk>
</gpx>
"""


class ManualTimer:
    """Handle returned by ManualScheduler.call_later."""

    def __init__(self, when: float, seq: int, callback: Callable[..., Any], args: tuple[Any, ...]) -> None:
        self.when = when
        self.seq = seq
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic clock with the ``call_later`` interface of an event loop."""

    def __init__(self) -> None:
        self.now = 0.0
        self._timers: list[ManualTimer] = []
        self._seq = 0

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> ManualTimer:
        timer = ManualTimer(self.now + delay, self._seq, callback, args)
        self._seq += 1
        self._timers.append(timer)
        return timer

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t.cancelled)

    def _pop_due(self, deadline: float) -> ManualTimer | None:
        due = [t for t in self._timers if not t.cancelled and t.when <= deadline + 1e-9]
        if not due:
            return None
        timer = min(due, key=lambda t: (t.when, t.seq))
        self._timers.remove(timer)
        return timer

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        deadline = self.now + seconds
        while (timer := self._pop_due(deadline)) is not None:
            self.now = max(self.now, timer.when)
            timer.callback(*timer.args)
        self.now = deadline

    def run_all(self, max_callbacks: int = 10_000) -> None:
        """Fire timers until none are pending."""
        for _ in range(max_callbacks):
            live = [t for t in self._timers if not t.cancelled]
            if not live:
                return
            self.advance(min(t.when for t in live) - self.now)
        raise AssertionError("scheduler did not settle")


@pytest.fixture
def scheduler() -> ManualScheduler:
    """Manual clock for driving playback timers."""
    return ManualScheduler()


@pytest.fixture
def sample_gpx() -> str:
    """Five-point GPX track."""
    return SAMPLE_GPX


@pytest.fixture
def gpx_file(tmp_path: Path) -> Path:
    """Five-point GPX track written to disk."""
    path = tmp_path / "walk.gpx"
    path.write_text(SAMPLE_GPX, encoding="utf-8")
    return path


def _rational_dms(degrees: int, minutes: int, seconds: float) -> tuple[tuple[int, int], ...]:
    return ((degrees, 1), (minutes, 1), (int(seconds * 100), 100))


@pytest.fixture
def make_jpeg() -> Callable[..., bytes]:
    """Factory for small JPEGs carrying the given EXIF tags."""

    def _make(
        lat: tuple[int, int, float] | None = (35, 30, 0),
        lon: tuple[int, int, float] | None = (139, 45, 0),
        lat_ref: bytes = b"N",
        lon_ref: bytes = b"E",
        altitude: tuple[int, int] | None = (125, 10),
        altitude_ref: int = 0,
        original: bytes | None = b"2024:05:01 09:30:00",
        digitized: bytes | None = None,
        modified: bytes | None = None,
    ) -> bytes:
        exif_dict: dict[str, Any] = {"0th": {}, "Exif": {}, "GPS": {}, "1st": {}, "thumbnail": None}
        if lat is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSLatitude] = _rational_dms(*lat)
            exif_dict["GPS"][piexif.GPSIFD.GPSLatitudeRef] = lat_ref
        if lon is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSLongitude] = _rational_dms(*lon)
            exif_dict["GPS"][piexif.GPSIFD.GPSLongitudeRef] = lon_ref
        if altitude is not None:
            exif_dict["GPS"][piexif.GPSIFD.GPSAltitude] = altitude
            exif_dict["GPS"][piexif.GPSIFD.GPSAltitudeRef] = altitude_ref
        if original is not None:
            exif_dict["Exif"][piexif.ExifIFD.DateTimeOriginal] = original
        if digitized is not None:
            exif_dict["Exif"][piexif.ExifIFD.DateTimeDigitized] = digitized
        if modified is not None:
            exif_dict["0th"][piexif.ImageIFD.DateTime] = modified

        buffer = io.BytesIO()
        Image.new("RGB", (8, 8), "white").save(buffer, format="JPEG", exif=piexif.dump(exif_dict))
        return buffer.getvalue()

    return _make


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path) -> dict[str, str]:
    """Environment isolating the CLI from any user configuration."""
    return {
        "GPX_VIEWER_CONFIG": str(tmp_path / "missing-config.toml"),
        "GPX_VIEWER_LOG_DIR": "",
        "GPX_VIEWER_REPEAT_INTERVAL_MS": "",
        "GPX_VIEWER_FRAME_RATE": "",
    }


@pytest.fixture(autouse=True)
def _reset_logging() -> Any:
    """Drop handlers installed by setup_logging during a test."""
    yield
    logger = logging.getLogger("gpx_viewer")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
