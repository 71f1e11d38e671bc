"""View synchronization for gpx-viewer.

Forwards playback position changes to the map and point-list renderers.
The dependency is one-directional: views never write engine state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Protocol

from gpx_viewer.models.playback import PositionChanged
from gpx_viewer.models.track import Coordinate
from gpx_viewer.services.playback import PlaybackEngine

logger = logging.getLogger("gpx_viewer.views")


class MapSink(Protocol):
    """Map renderer collaborator."""

    def set_center(self, coordinate: Coordinate) -> None: ...

    def set_point(self, coordinate: Coordinate) -> None: ...


class ListSink(Protocol):
    """Point-list renderer collaborator."""

    def highlight_row(self, index: int) -> None: ...

    def scroll_to_row(self, index: int) -> None: ...


class ViewSync:
    """Drives map and list sinks from an engine's position-changed events."""

    def __init__(self, engine: PlaybackEngine, map_sink: MapSink, list_sink: ListSink) -> None:
        self.engine = engine
        self.map_sink = map_sink
        self.list_sink = list_sink
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        """Subscribe to the engine and render the current position once."""
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.engine.subscribe(self.on_position_changed)
        position = self.engine.current_position()
        if position is not None:
            self.on_position_changed(position)

    def detach(self) -> None:
        if self._unsubscribe is None:
            return
        self._unsubscribe()
        self._unsubscribe = None

    def on_position_changed(self, event: PositionChanged) -> None:
        """Apply one position to every sink. Idempotent."""
        logger.debug("Sync view to index %d", event.index)
        self.map_sink.set_center(event.coordinate)
        self.map_sink.set_point(event.coordinate)
        self.list_sink.highlight_row(event.index)
        self.list_sink.scroll_to_row(event.index)
