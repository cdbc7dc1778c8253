"""Waveform bar-chart rendering.

Everything here is a pure function of the envelope, the playback cursor and
the viewport: the same inputs always produce the same bars and SVG.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from trackwave.analysis.models import PlaybackCursor
from trackwave.config import settings


@dataclass(frozen=True)
class Palette:
    played: str = "#FF5500"
    unplayed: str = "#A1A1AA"

    @classmethod
    def from_settings(cls) -> Palette:
        return cls(played=settings.played_color, unplayed=settings.unplayed_color)


@dataclass(frozen=True)
class Viewport:
    """Container size in CSS pixels plus the display's device pixel ratio."""
    width: float
    height: float
    device_pixel_ratio: float = 1.0

    @property
    def scale(self) -> float:
        dpr = self.device_pixel_ratio
        return dpr if dpr and dpr > 0 else 1.0

    @property
    def pixel_width(self) -> int:
        """Backing-store width in device pixels."""
        return int(round(self.width * self.scale))

    @property
    def pixel_height(self) -> int:
        return int(round(self.height * self.scale))


@dataclass(frozen=True)
class Bar:
    """One rounded rectangle, in device pixels."""
    x: float
    y: float
    width: float
    height: float
    color: str

    def to_dict(self) -> dict:
        return {"x": self.x, "y": self.y, "width": self.width, "height": self.height, "color": self.color}


@dataclass(frozen=True)
class Frame:
    """A fully laid out waveform ready to paint."""
    bars: list[Bar]
    viewport: Viewport
    progress: float
    radius: float = 2.0

    def to_dict(self) -> dict:
        return {
            "width": self.viewport.pixel_width,
            "height": self.viewport.pixel_height,
            "device_pixel_ratio": self.viewport.scale,
            "progress": self.progress,
            "radius": self.radius * self.viewport.scale,
            "bars": [b.to_dict() for b in self.bars],
        }


def progress_ratio(current_time: float, duration: float) -> float:
    """Fraction of the track already played, clamped to [0, 1].

    A zero, negative or non-finite duration counts as no progress.
    """
    return PlaybackCursor(current_time=current_time, duration=duration).progress_ratio


def _hex_to_rgb(color: str) -> tuple[int, int, int]:
    value = color.lstrip("#")
    if len(value) == 3:
        value = "".join(c * 2 for c in value)
    if len(value) != 6:
        raise ValueError(f"Expected a #rrggbb colour, got {color!r}")
    return int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16)


def _rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return "#{:02X}{:02X}{:02X}".format(*rgb)


def blend(played: str, unplayed: str, fade: float) -> str:
    """Linear mix: fade=1 gives *played*, fade=0 gives *unplayed*."""
    fade = min(max(fade, 0.0), 1.0)
    p = _hex_to_rgb(played)
    u = _hex_to_rgb(unplayed)
    return _rgb_to_hex(tuple(int(round(uc + (pc - uc) * fade)) for pc, uc in zip(p, u)))


def bar_color(
    position: float,
    progress: float,
    transition_width: float = 0.02,
    palette: Palette | None = None,
) -> str:
    """Colour of the bar at normalized horizontal *position*.

    Bars before the playhead are played, bars within *transition_width*
    after it fade from played to unplayed, the rest are unplayed.
    """
    palette = palette or Palette.from_settings()
    if position < progress:
        return blend(palette.played, palette.unplayed, 1.0)
    if transition_width > 0 and position < progress + transition_width:
        fade = 1 - (position - progress) / transition_width
        return blend(palette.played, palette.unplayed, fade)
    return blend(palette.played, palette.unplayed, 0.0)


def layout_bars(
    envelope: Sequence[float],
    current_time: float,
    duration: float,
    viewport: Viewport,
    palette: Palette | None = None,
    transition_width: float | None = None,
    height_ratio: float | None = None,
    gap: float | None = None,
) -> list[Bar]:
    """Lay out one vertically centred bar per envelope entry."""
    palette = palette or Palette.from_settings()
    transition_width = transition_width if transition_width is not None else settings.transition_width
    height_ratio = height_ratio if height_ratio is not None else settings.bar_height_ratio
    gap = gap if gap is not None else settings.bar_gap

    n = len(envelope)
    if n == 0 or viewport.width <= 0 or viewport.height <= 0:
        return []

    scale = viewport.scale
    progress = progress_ratio(current_time, duration)
    bar_width = viewport.width / n
    center_y = viewport.height / 2

    bars = []
    for index, amplitude in enumerate(envelope):
        height = float(amplitude) * height_ratio * viewport.height
        bars.append(Bar(
            x=(index * bar_width + gap / 2) * scale,
            y=(center_y - height / 2) * scale,
            width=max(bar_width - gap, 0.0) * scale,
            height=height * scale,
            color=bar_color(index / n, progress, transition_width, palette),
        ))
    return bars


def draw_waveform(
    envelope: Sequence[float],
    current_time: float,
    duration: float,
    viewport: Viewport,
    palette: Palette | None = None,
) -> Frame:
    """Lay out a complete frame for the given playback position."""
    return Frame(
        bars=layout_bars(envelope, current_time, duration, viewport, palette),
        viewport=viewport,
        progress=progress_ratio(current_time, duration),
        radius=settings.bar_radius,
    )


def render_svg(frame: Frame) -> str:
    """Serialize a frame as an SVG document sized to the backing store."""
    width = frame.viewport.pixel_width
    height = frame.viewport.pixel_height
    radius = frame.radius * frame.viewport.scale
    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{width}" height="{height}" '
        f'viewBox="0 0 {width} {height}">'
    ]
    for bar in frame.bars:
        r = min(radius, bar.width / 2, bar.height / 2)
        parts.append(
            f'<rect x="{bar.x:.2f}" y="{bar.y:.2f}" width="{bar.width:.2f}" '
            f'height="{bar.height:.2f}" rx="{r:.2f}" fill="{bar.color}"/>'
        )
    parts.append("</svg>")
    return "".join(parts)


def format_time(seconds: float) -> str:
    """Format seconds as ``m:ss``."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    minutes = int(seconds // 60)
    remaining = int(seconds % 60)
    return f"{minutes}:{remaining:02d}"
