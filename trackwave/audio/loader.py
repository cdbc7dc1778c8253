"""Audio decoding utilities."""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import contextmanager
from io import BytesIO
from pathlib import Path
from typing import Iterator, Union

import librosa
import numpy as np

from trackwave.analysis.errors import AudioDecodeError
from trackwave.analysis.models import DecodedAudio

logger = logging.getLogger(__name__)


def load_audio(
    file_path_or_buffer: Union[str, Path, BytesIO],
    sr: int | None = None,
) -> DecodedAudio:
    """Load an audio file or buffer and keep its first channel.

    Parameters
    ----------
    file_path_or_buffer:
        Path to an audio file or a BytesIO buffer containing audio data.
    sr:
        Target sample rate. ``None`` keeps the file's native rate.

    Returns
    -------
    DecodedAudio
        First-channel samples and the sample rate they are expressed in.
    """
    try:
        audio, sample_rate = librosa.load(file_path_or_buffer, sr=sr, mono=False)
    except Exception as e:
        raise AudioDecodeError(f"Could not decode audio: {e}") from e

    if audio.ndim > 1:
        audio = audio[0]
    audio = np.ascontiguousarray(audio, dtype=np.float32)
    return DecodedAudio(samples=audio, sample_rate=int(sample_rate))


@contextmanager
def decode_context(data: bytes, suffix: str = "") -> Iterator[str]:
    """Own a temporary file holding *data* for the duration of one decode.

    The file is removed on every exit path, including decode failure.
    """
    fd, tmp_path = tempfile.mkstemp(suffix=suffix, prefix="trackwave-")
    try:
        with os.fdopen(fd, "wb") as tmp:
            tmp.write(data)
        yield tmp_path
    finally:
        try:
            os.unlink(tmp_path)
        except OSError:
            logger.debug("Temporary decode file already removed: %s", tmp_path)


def decode_bytes(data: bytes, suffix: str = "") -> DecodedAudio:
    """Decode an in-memory audio file.

    librosa needs a file path for some containers, so the bytes go through a
    scoped temporary file rather than a buffer.
    """
    if not data:
        raise AudioDecodeError("No audio data")

    with decode_context(data, suffix=suffix) as tmp_path:
        decoded = load_audio(tmp_path)

    logger.debug(
        "Decoded %d bytes: %d samples at %dHz (%.1fs)",
        len(data), len(decoded.samples), decoded.sample_rate, decoded.duration_seconds,
    )
    return decoded


async def decode_bytes_async(data: bytes, suffix: str = "") -> DecodedAudio:
    """Decode in a worker thread so the event loop is not blocked."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, decode_bytes, data, suffix)


def suffix_for(filename: str | None) -> str:
    """Lower-cased extension of *filename* including the dot, or ''."""
    if filename and "." in filename:
        return "." + filename.rsplit(".", 1)[-1].lower()
    return ""
