"""Playback state and events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from gpx_viewer.models.track import Coordinate


class PlaybackMode(str, Enum):
    """Which driver, if any, is currently advancing the playhead."""

    IDLE = "idle"
    REPEATING = "repeating"
    PLAYING = "playing"


@dataclass
class PlaybackState:
    """Mutable playhead state of one viewer session."""

    playhead: int = 0
    is_playing: bool = False


@dataclass(frozen=True)
class PositionChanged:
    """Emitted once for every net change of the playhead."""

    index: int
    coordinate: Coordinate
    timestamp: datetime | None
    is_playing: bool


@dataclass
class CancellationToken:
    """Cooperative cancellation flag for one auto-play run."""

    cancelled: bool = False

    def cancel(self) -> None:
        self.cancelled = True
