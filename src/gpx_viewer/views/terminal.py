"""Terminal renderer for gpx-viewer playback.

Implements the map and list sinks by echoing the highlighted point-list
row, so playback can be followed from a shell.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import click

from gpx_viewer.models.track import Coordinate, CoordinateTimeline, DEFAULT_TIME_FORMAT

ROW_TEMPLATE = "{index:>6}  {lat:>11}  {lon:>11}  {alt:>8}  {timestamp}"
HEADER = ROW_TEMPLATE.format(index="#", lat="lat", lon="lon", alt="alt", timestamp="time")


def format_row(row: dict[str, Any]) -> str:
    return ROW_TEMPLATE.format(**row)


class TerminalView:
    """Map and list sink pair that writes one line per highlighted row."""

    def __init__(
        self,
        timeline: CoordinateTimeline,
        time_format: str = DEFAULT_TIME_FORMAT,
        echo: Callable[[str], Any] | None = click.echo,
    ) -> None:
        self.timeline = timeline
        self.time_format = time_format
        self.echo = echo
        self.center: Coordinate | None = None
        self.point: Coordinate | None = None
        self.selected: int | None = None
        self.history: list[dict[str, Any]] = []

    def set_center(self, coordinate: Coordinate) -> None:
        self.center = coordinate

    def set_point(self, coordinate: Coordinate) -> None:
        self.point = coordinate

    def highlight_row(self, index: int) -> None:
        if index == self.selected:
            return
        self.selected = index
        row = self.timeline.row(index, self.time_format)
        self.history.append(row)
        if self.echo is not None:
            self.echo(format_row(row))

    def scroll_to_row(self, index: int) -> None:
        # Every highlighted row is already the latest printed line
        pass
