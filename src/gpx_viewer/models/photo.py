"""Geotagged photo model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class GeoCoordinate:
    """Decimal-degree location with altitude in metres."""

    lat: float
    lon: float
    alt: float = 0.0


@dataclass(frozen=True)
class GeoPhoto:
    """A photo placed on the map as a static marker.

    Photos are independent of the track timeline and never move the playhead.
    """

    coordinate: GeoCoordinate
    timestamp: datetime | None
    comment: str = ""
    image_ref: Any = None

    def to_feature(self) -> dict[str, Any]:
        """Convert to a GeoJSON Point feature.

        Returns:
            GeoJSON-shaped dictionary.
        """
        return {
            "type": "Feature",
            "geometry": {
                "type": "Point",
                "coordinates": [self.coordinate.lon, self.coordinate.lat, self.coordinate.alt],
            },
            "properties": {
                "comment": self.comment,
                "timestamp": self.timestamp.isoformat() if self.timestamp else None,
                "image": str(self.image_ref) if self.image_ref is not None else None,
            },
        }
