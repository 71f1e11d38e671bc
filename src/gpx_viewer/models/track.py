"""Track point and coordinate timeline models.

A parsed track is held as two index-aligned sequences: GeoJSON-ordered
coordinates (``[lon, lat]`` or ``[lon, lat, elevation]``) and optional
timestamps. The timeline is an immutable value; loading a new track replaces
it wholesale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

DEFAULT_TIME_FORMAT = "%Y/%m/%d %H:%M:%S"

Coordinate = tuple[float, ...]


@dataclass(frozen=True)
class TrackPoint:
    """One recorded sample along a GPS track."""

    lat: float
    lon: float
    elevation: float | None = None
    time: datetime | None = None

    @property
    def coordinate(self) -> Coordinate:
        """GeoJSON coordinate, with elevation appended only when known."""
        if self.elevation is None:
            return (self.lon, self.lat)
        return (self.lon, self.lat, self.elevation)


@dataclass(frozen=True)
class CoordinateTimeline:
    """Parallel, index-aligned coordinates and timestamps of a track."""

    coordinates: tuple[Coordinate, ...] = ()
    timestamps: tuple[datetime | None, ...] = ()
    points: tuple[TrackPoint, ...] = field(default=(), repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.coordinates) != len(self.timestamps):
            raise ValueError(
                f"coordinates ({len(self.coordinates)}) and timestamps "
                f"({len(self.timestamps)}) must have the same length"
            )

    @classmethod
    def from_points(cls, points: list[TrackPoint] | tuple[TrackPoint, ...]) -> CoordinateTimeline:
        """Build a timeline from track points, preserving their order.

        Args:
            points: Parsed track points.

        Returns:
            CoordinateTimeline instance.
        """
        points = tuple(points)
        return cls(
            coordinates=tuple(p.coordinate for p in points),
            timestamps=tuple(p.time for p in points),
            points=points,
        )

    def __len__(self) -> int:
        return len(self.coordinates)

    @property
    def is_empty(self) -> bool:
        return not self.coordinates

    @property
    def last_index(self) -> int:
        """Index of the final point (0 for an empty timeline)."""
        return max(len(self.coordinates) - 1, 0)

    def clamp(self, index: int) -> int:
        """Clamp an index into ``[0, len - 1]``."""
        return min(max(index, 0), self.last_index)

    def coordinate_at(self, index: int) -> Coordinate:
        return self.coordinates[index]

    def timestamp_at(self, index: int) -> datetime | None:
        return self.timestamps[index]

    def to_feature_collection(self) -> dict[str, Any]:
        """Convert to a GeoJSON FeatureCollection holding one LineString.

        Timestamps are stored in the feature properties, index-aligned with
        the coordinates, as ISO 8601 strings (``None`` where unknown).

        Returns:
            GeoJSON-shaped dictionary.
        """
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {
                        "type": "LineString",
                        "coordinates": [list(c) for c in self.coordinates],
                    },
                    "properties": {
                        "timestamps": [
                            t.isoformat() if t else None for t in self.timestamps
                        ],
                    },
                }
            ],
        }

    def row(self, index: int, time_format: str = DEFAULT_TIME_FORMAT) -> dict[str, Any]:
        """Build the point-list row for one index.

        Args:
            index: Point index.
            time_format: strftime format for the timestamp column.

        Returns:
            Row dictionary with display-formatted values.
        """
        coordinate = self.coordinates[index]
        timestamp = self.timestamps[index]
        return {
            "index": index,
            "lat": f"{coordinate[1]:.6f}",
            "lon": f"{coordinate[0]:.6f}",
            "alt": f"{coordinate[2]:.1f}" if len(coordinate) > 2 else "",
            "timestamp": timestamp.strftime(time_format) if timestamp else "",
        }

    def rows(self, time_format: str = DEFAULT_TIME_FORMAT) -> list[dict[str, Any]]:
        """Build point-list rows for the whole timeline."""
        return [self.row(i, time_format) for i in range(len(self.coordinates))]
