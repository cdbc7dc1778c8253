"""Embedded metadata (title, artist, tempo...) read with mutagen."""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Union

from mutagen import File as MutagenFile

from trackwave.analysis.models import TrackTags
from trackwave.analysis.tempo import round_half_up
from trackwave.audio.loader import decode_context

logger = logging.getLogger(__name__)

# Easy-interface keys first, then raw ID3 frames (WAV and AIFF carry
# non-easy ID3 tags).
_KEYS = {
    "title": ("title", "TIT2"),
    "artist": ("artist", "TPE1"),
    "album": ("album", "TALB"),
    "year": ("date", "year", "TDRC", "TYER"),
    "genre": ("genre", "TCON"),
    "bpm": ("bpm", "TBPM", "tmpo"),
}

_YEAR = re.compile(r"\d{4}")


def _first(tags, name: str) -> str | None:
    """First non-empty text value stored under any key for *name*."""
    for key in _KEYS[name]:
        try:
            value = tags[key]
        except (KeyError, ValueError):
            continue
        if hasattr(value, "text"):
            value = value.text
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _parse_year(text: str | None) -> int | None:
    if not text:
        return None
    match = _YEAR.search(text)
    return int(match.group()) if match else None


def _parse_bpm(text: str | None) -> int | None:
    if not text:
        return None
    try:
        bpm = round_half_up(float(text))
    except (ValueError, OverflowError):
        logger.debug("Ignoring unparseable BPM tag %r", text)
        return None
    return bpm if bpm > 0 else None


def read_tags(path: Union[str, Path]) -> TrackTags:
    """Read embedded tags and the container duration from *path*.

    Tags are a convenience: an unreadable or untagged file gives empty
    ``TrackTags`` rather than an error.
    """
    try:
        audio_info = MutagenFile(str(path), easy=True)
    except Exception as e:
        logger.debug("Could not read tags from %s: %s", path, e)
        return TrackTags()
    if audio_info is None:
        return TrackTags()

    info = getattr(audio_info, "info", None)
    length = getattr(info, "length", None)
    duration = float(length) if length else None

    tags = audio_info.tags
    if not tags:
        return TrackTags(duration=duration)

    return TrackTags(
        title=_first(tags, "title"),
        artist=_first(tags, "artist"),
        album=_first(tags, "album"),
        year=_parse_year(_first(tags, "year")),
        genre=_first(tags, "genre"),
        bpm=_parse_bpm(_first(tags, "bpm")),
        duration=duration,
    )


def read_tags_bytes(data: bytes, suffix: str = "") -> TrackTags:
    """Read tags from an in-memory file; the extension helps mutagen pick a format."""
    if not data:
        return TrackTags()
    with decode_context(data, suffix=suffix) as tmp_path:
        return read_tags(tmp_path)


async def read_tags_bytes_async(data: bytes, suffix: str = "") -> TrackTags:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, read_tags_bytes, data, suffix)
