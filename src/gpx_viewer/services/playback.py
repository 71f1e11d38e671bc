"""Playback engine for gpx-viewer.

Owns the playhead of one viewer session and serializes the three input
channels that move it: discrete jumps, held-button repeat stepping, and
frame-driven auto-play. Timers come from a ``Scheduler`` so the engine runs
on an asyncio event loop in production and on a manual clock in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

from gpx_viewer.models.playback import (
    CancellationToken,
    PlaybackMode,
    PlaybackState,
    PositionChanged,
)
from gpx_viewer.models.track import CoordinateTimeline

logger = logging.getLogger("gpx_viewer.playback")

DEFAULT_REPEAT_INTERVAL = 0.02
DEFAULT_FRAME_INTERVAL = 1 / 60

PositionListener = Callable[[PositionChanged], None]
TransportListener = Callable[[PlaybackMode], None]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback later, e.g. an asyncio event loop."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class PlaybackEngine:
    """Playhead state machine for a single viewer session.

    States are ``IDLE``, ``REPEATING`` (a held prev/next button steps the
    playhead on a fixed cadence) and ``PLAYING`` (one step per frame until
    the last index). Starting play cancels an active repeat and starting a
    repeat stops play, so only one driver moves the playhead at a time.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        timeline: CoordinateTimeline | None = None,
        repeat_interval: float = DEFAULT_REPEAT_INTERVAL,
        frame_interval: float = DEFAULT_FRAME_INTERVAL,
    ) -> None:
        """Initialize the engine.

        Args:
            scheduler: Timer source for repeat ticks and animation frames.
            timeline: Initial timeline (empty when omitted).
            repeat_interval: Seconds between held-button steps.
            frame_interval: Seconds between auto-play steps.
        """
        self.scheduler = scheduler
        self.repeat_interval = repeat_interval
        self.frame_interval = frame_interval
        self.timeline = timeline if timeline is not None else CoordinateTimeline()
        self.state = PlaybackState()

        self._position_listeners: list[PositionListener] = []
        self._transport_listeners: list[TransportListener] = []
        self._repeat_handle: TimerHandle | None = None
        self._repeat_token: CancellationToken | None = None
        self._repeat_direction = 0
        self._play_token: CancellationToken | None = None

    # -- observation ---------------------------------------------------------

    @property
    def playhead(self) -> int:
        return self.state.playhead

    @property
    def is_playing(self) -> bool:
        return self.state.is_playing

    @property
    def is_repeating(self) -> bool:
        return self._repeat_handle is not None

    @property
    def mode(self) -> PlaybackMode:
        if self.state.is_playing:
            return PlaybackMode.PLAYING
        if self._repeat_handle is not None:
            return PlaybackMode.REPEATING
        return PlaybackMode.IDLE

    def subscribe(self, listener: PositionListener) -> Callable[[], None]:
        """Register a position-changed listener.

        Returns:
            Callable that removes the listener.
        """
        self._position_listeners.append(listener)
        return lambda: self._remove(self._position_listeners, listener)

    def subscribe_transport(self, listener: TransportListener) -> Callable[[], None]:
        """Register a listener for mode changes (play started/finished etc.).

        Returns:
            Callable that removes the listener.
        """
        self._transport_listeners.append(listener)
        return lambda: self._remove(self._transport_listeners, listener)

    @staticmethod
    def _remove(listeners: list[Any], listener: Any) -> None:
        if listener in listeners:
            listeners.remove(listener)

    def current_position(self) -> PositionChanged | None:
        """Snapshot of the current position, or None for an empty timeline."""
        if self.timeline.is_empty:
            return None
        index = self.state.playhead
        return PositionChanged(
            index=index,
            coordinate=self.timeline.coordinate_at(index),
            timestamp=self.timeline.timestamp_at(index),
            is_playing=self.state.is_playing,
        )

    # -- session -------------------------------------------------------------

    def bind(self, timeline: CoordinateTimeline) -> None:
        """Replace the timeline and reset the playback state to ``(0, False)``.

        Pending timers of the previous timeline are cancelled. Listeners
        receive the initial position when the new timeline is not empty.
        """
        self._cancel_drivers()
        self.timeline = timeline
        self.state = PlaybackState()
        logger.debug("Bound timeline with %d points", len(timeline))
        self._notify_transport()
        position = self.current_position()
        if position is not None:
            self._emit(position)

    def close(self) -> None:
        """Cancel all timers; the engine stays usable for a later bind."""
        self._cancel_drivers()

    # -- jumps ---------------------------------------------------------------

    def jump_to(self, index: int) -> bool:
        """Move the playhead to ``index`` clamped into the timeline bounds.

        Args:
            index: Target index, any integer.

        Returns:
            True if the playhead moved (and an event was emitted).
        """
        if self.timeline.is_empty:
            return False
        target = self.timeline.clamp(index)
        if target == self.state.playhead:
            return False
        self.state.playhead = target
        self._emit(self.current_position())
        return True

    def first(self) -> bool:
        return self.jump_to(0)

    def last(self) -> bool:
        return self.jump_to(self.timeline.last_index)

    def step(self, direction: int) -> bool:
        """Move one index forward (positive) or backward (negative)."""
        return self.jump_to(self.state.playhead + _sign(direction))

    # -- held-button repeat --------------------------------------------------

    def start_repeat(self, direction: int) -> None:
        """Start stepping by ``direction`` every repeat interval.

        A no-op while a repeat timer is already live, so a missed release
        can never leave two timers running.
        """
        if self._repeat_handle is not None:
            return
        direction = _sign(direction)
        if direction == 0:
            return
        if self.state.is_playing:
            self.stop()

        token = CancellationToken()
        self._repeat_token = token
        self._repeat_direction = direction
        self._repeat_handle = self.scheduler.call_later(
            self.repeat_interval, self._repeat_tick, token
        )
        logger.debug("Repeat started (direction %+d)", direction)
        self._notify_transport()

    def stop_repeat(self) -> None:
        """Cancel the repeat timer. Safe to call when no repeat is active."""
        if self._repeat_handle is None:
            return
        self._repeat_handle.cancel()
        self._repeat_handle = None
        if self._repeat_token is not None:
            self._repeat_token.cancel()
            self._repeat_token = None
        self._repeat_direction = 0
        logger.debug("Repeat stopped")
        self._notify_transport()

    def _repeat_tick(self, token: CancellationToken) -> None:
        if token.cancelled:
            return
        self.jump_to(self.state.playhead + self._repeat_direction)
        # A listener may have released (or released and re-held) during the jump
        if not token.cancelled:
            self._repeat_handle = self.scheduler.call_later(
                self.repeat_interval, self._repeat_tick, token
            )

    # -- auto-play -----------------------------------------------------------

    def play(self) -> None:
        """Advance one index per frame until stopped or at the last index.

        Rewinds to the first index when started at (or past) the end.
        """
        if self.state.is_playing or self.timeline.is_empty:
            return
        self.stop_repeat()

        token = CancellationToken()
        self._play_token = token
        self.state.is_playing = True
        if self.state.playhead >= self.timeline.last_index:
            self.jump_to(0)
            if token.cancelled:
                return

        logger.debug("Playback started at index %d", self.state.playhead)
        self._notify_transport()
        self.scheduler.call_later(self.frame_interval, self._advance, token)

    def stop(self) -> None:
        """Stop auto-play; an already scheduled frame sees the cancelled token."""
        if self._play_token is not None:
            self._play_token.cancel()
            self._play_token = None
        if not self.state.is_playing:
            return
        self.state.is_playing = False
        logger.debug("Playback stopped at index %d", self.state.playhead)
        self._notify_transport()

    def _advance(self, token: CancellationToken) -> None:
        if token.cancelled or not self.state.is_playing:
            return

        target = self.state.playhead + 1
        if target >= self.timeline.last_index:
            # Reaching the end is the same as an explicit stop
            token.cancel()
            self._play_token = None
            self.state.is_playing = False
            self.jump_to(target)
            logger.debug("Playback reached the last index")
            self._notify_transport()
            return

        self.jump_to(target)
        if not token.cancelled:
            self.scheduler.call_later(self.frame_interval, self._advance, token)

    # -- internals -----------------------------------------------------------

    def _cancel_drivers(self) -> None:
        self.stop_repeat()
        self.stop()

    def _emit(self, event: PositionChanged | None) -> None:
        if event is None:
            return
        for listener in list(self._position_listeners):
            listener(event)

    def _notify_transport(self) -> None:
        mode = self.mode
        for listener in list(self._transport_listeners):
            listener(mode)


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)
