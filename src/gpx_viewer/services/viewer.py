"""Viewer session orchestration for gpx-viewer.

A session is one mounted viewer: it owns a playback engine, the current
track timeline, the photo markers, and the views attached to them. Loading
a new track replaces the timeline wholesale and resets playback.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from gpx_viewer.config import Config
from gpx_viewer.errors import ParseError
from gpx_viewer.models.photo import GeoPhoto
from gpx_viewer.models.track import CoordinateTimeline
from gpx_viewer.services.gpx import parse_gpx
from gpx_viewer.services.photos import extract_geophotos
from gpx_viewer.services.playback import PlaybackEngine, Scheduler
from gpx_viewer.views.sync import ListSink, MapSink, ViewSync
from gpx_viewer.views.transport import TransportControls

logger = logging.getLogger("gpx_viewer.viewer")


class ViewerSession:
    """One viewer instance with its own playback state."""

    def __init__(self, scheduler: Scheduler, config: Config | None = None) -> None:
        """Initialize the session.

        Args:
            scheduler: Timer source shared by the engine's drivers.
            config: Application configuration (defaults when omitted).
        """
        self.config = config or Config()
        self.engine = PlaybackEngine(
            scheduler,
            repeat_interval=self.config.playback.repeat_interval,
            frame_interval=self.config.playback.frame_interval,
        )
        self.controls = TransportControls(self.engine)
        self.photos: list[GeoPhoto] = []
        self._views: list[ViewSync] = []

    @property
    def timeline(self) -> CoordinateTimeline:
        return self.engine.timeline

    def load(
        self,
        gpx_text: str,
        photos: Iterable[tuple[bytes, str, Any]] = (),
    ) -> CoordinateTimeline:
        """Load a track and its photos, replacing whatever was shown.

        Args:
            gpx_text: GPX document as text.
            photos: ``(image_bytes, comment, image_ref)`` tuples.

        Returns:
            The new timeline.

        Raises:
            ParseError: If the GPX document is malformed. The session is
                left with an empty timeline and no photos.
        """
        try:
            timeline = parse_gpx(gpx_text)
        except ParseError:
            logger.warning("Track load failed; clearing viewer")
            self.photos = []
            self.engine.bind(CoordinateTimeline())
            raise

        self.photos = extract_geophotos(photos)
        self.engine.bind(timeline)
        logger.info(
            "Loaded track with %d points and %d photos", len(timeline), len(self.photos)
        )
        return timeline

    def attach_view(self, map_sink: MapSink, list_sink: ListSink) -> ViewSync:
        """Connect a map/list pair to this session's engine."""
        view = ViewSync(self.engine, map_sink, list_sink)
        view.attach()
        self._views.append(view)
        return view

    def rows(self) -> list[dict[str, Any]]:
        return self.timeline.rows(self.config.display.time_format)

    def feature_collection(self) -> dict[str, Any]:
        """Track line plus one point feature per photo."""
        collection = self.timeline.to_feature_collection()
        collection["features"].extend(photo.to_feature() for photo in self.photos)
        return collection

    def close(self) -> None:
        """Unmount: detach views and cancel all pending timers."""
        for view in self._views:
            view.detach()
        self._views.clear()
        self.engine.close()
