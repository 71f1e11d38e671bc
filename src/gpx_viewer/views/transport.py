"""Transport controls binding for gpx-viewer.

Maps the six transport buttons and point-list row selection onto playback
engine commands. ``prev`` and ``next`` step repeatedly while held; every
path that ends a hold (release or pointer leave) stops the repeat.
"""

from __future__ import annotations

from enum import Enum

from gpx_viewer.services.playback import PlaybackEngine


class TransportButton(str, Enum):
    FIRST = "first"
    PREV = "prev"
    PLAY = "play"
    STOP = "stop"
    NEXT = "next"
    LAST = "last"


_REPEAT_DIRECTIONS = {
    TransportButton.PREV: -1,
    TransportButton.NEXT: 1,
}


class TransportControls:
    """Translates UI button events into engine commands."""

    def __init__(self, engine: PlaybackEngine) -> None:
        self.engine = engine

    def press(self, button: TransportButton | str) -> None:
        """Handle a button press (mouse down)."""
        button = TransportButton(button)
        if button in _REPEAT_DIRECTIONS:
            self.engine.start_repeat(_REPEAT_DIRECTIONS[button])
        elif button is TransportButton.FIRST:
            self.engine.first()
        elif button is TransportButton.LAST:
            self.engine.last()
        elif button is TransportButton.PLAY:
            self.engine.play()
        elif button is TransportButton.STOP:
            self.engine.stop()

    def release(self, button: TransportButton | str) -> None:
        """Handle a button release (mouse up)."""
        if TransportButton(button) in _REPEAT_DIRECTIONS:
            self.engine.stop_repeat()

    def leave(self, button: TransportButton | str) -> None:
        """Handle the pointer leaving a button while it may be held."""
        self.release(button)

    def select_row(self, index: int) -> None:
        """Handle a click on a point-list row."""
        self.engine.jump_to(index)
