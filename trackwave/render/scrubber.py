"""Playback state and pointer-to-seek mapping for the waveform."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Sequence, Union

from trackwave.analysis.models import PlaybackCursor
from trackwave.render.renderer import Frame, Palette, Viewport, draw_waveform

logger = logging.getLogger(__name__)


class PlaybackState(str, Enum):
    PAUSED = "paused"
    PLAYING = "playing"


@dataclass(frozen=True)
class Seek:
    """Ask the audio element to jump to *time* seconds."""
    time: float
    type: str = "seek"


@dataclass(frozen=True)
class PlayPauseToggle:
    """Ask the audio element to start (playing=True) or stop."""
    playing: bool
    type: str = "play_pause"


@dataclass(frozen=True)
class Ended:
    type: str = "ended"


ScrubberEvent = Union[Seek, PlayPauseToggle, Ended]


def _non_negative(value: float) -> float:
    """Clamp to >= 0; NaN and infinities count as 0."""
    return value if math.isfinite(value) and value > 0 else 0.0


def seek_time_for_click(x: float, width: float, duration: float) -> float:
    """Map a click at pixel offset *x* in a container of *width* to seconds."""
    if not all(map(math.isfinite, (x, width, duration))) or width <= 0 or duration <= 0:
        return 0.0
    x = min(max(x, 0.0), width)
    return (x / width) * duration


class Scrubber:
    """Two-state playback model driven by the waveform.

    The scrubber does not play audio itself. It tracks what the audio
    element reports and returns the events the host should forward to it.
    """

    def __init__(self, duration: float = 0.0, current_time: float = 0.0):
        self.state = PlaybackState.PAUSED
        self.duration = _non_negative(duration)
        self.current_time = _non_negative(current_time)

    @property
    def is_playing(self) -> bool:
        return self.state is PlaybackState.PLAYING

    @property
    def cursor(self) -> PlaybackCursor:
        return PlaybackCursor(current_time=self.current_time, duration=self.duration)

    def set_duration(self, duration: float) -> None:
        self.duration = _non_negative(duration)

    def play(self) -> list[ScrubberEvent]:
        if self.is_playing:
            return []
        self.state = PlaybackState.PLAYING
        return [PlayPauseToggle(playing=True)]

    def pause(self) -> list[ScrubberEvent]:
        if not self.is_playing:
            return []
        self.state = PlaybackState.PAUSED
        return [PlayPauseToggle(playing=False)]

    def toggle(self) -> list[ScrubberEvent]:
        return self.pause() if self.is_playing else self.play()

    def seek(self, time: float) -> list[ScrubberEvent]:
        time = _non_negative(time)
        self.current_time = min(time, self.duration) if self.duration > 0 else time
        return [Seek(time=self.current_time)]

    def click(self, x: float, width: float) -> list[ScrubberEvent]:
        """Seek to the clicked position; a click while paused also starts playback."""
        events = []
        if not self.is_playing:
            events.extend(self.play())
        events.extend(self.seek(seek_time_for_click(x, width, self.duration)))
        return events

    def update_time(self, current_time: float) -> list[ScrubberEvent]:
        """Record a position report; reaching the end pauses and rewinds.

        Reports that are not finite numbers are ignored.
        """
        if not math.isfinite(current_time):
            logger.debug("Ignoring non-finite time report %r", current_time)
            return []
        if self.duration > 0 and current_time >= self.duration:
            logger.debug("End of track at %.2fs", current_time)
            events = self.pause()
            self.current_time = 0.0
            events.append(Ended())
            return events
        self.current_time = max(current_time, 0.0)
        return []

    def frame(
        self,
        envelope: Sequence[float],
        viewport: Viewport,
        palette: Palette | None = None,
    ) -> Frame:
        return draw_waveform(envelope, self.current_time, self.duration, viewport, palette)
