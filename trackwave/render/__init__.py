"""Waveform rendering and scrubbing."""

from trackwave.render.renderer import (
    Bar,
    Frame,
    Palette,
    Viewport,
    bar_color,
    draw_waveform,
    format_time,
    layout_bars,
    progress_ratio,
    render_svg,
)
from trackwave.render.scrubber import (
    Ended,
    PlaybackState,
    PlayPauseToggle,
    Scrubber,
    Seek,
    seek_time_for_click,
)

__all__ = [
    "Bar",
    "Frame",
    "Palette",
    "Viewport",
    "bar_color",
    "draw_waveform",
    "format_time",
    "layout_bars",
    "progress_ratio",
    "render_svg",
    "Ended",
    "PlaybackState",
    "PlayPauseToggle",
    "Scrubber",
    "Seek",
    "seek_time_for_click",
]
