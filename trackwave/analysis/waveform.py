"""Amplitude envelope extraction for waveform display."""

from __future__ import annotations

import logging
import warnings

import numpy as np

from trackwave.analysis.errors import EmptyAudioWarning
from trackwave.analysis.models import AmplitudeEnvelope, DecodedAudio
from trackwave.config import settings

logger = logging.getLogger(__name__)


def placeholder_envelope(
    n_buckets: int | None = None,
    level: float | None = None,
) -> AmplitudeEnvelope:
    """Flat envelope shown while no track is loaded or when audio is unusable."""
    n_buckets = n_buckets if n_buckets is not None else settings.envelope_buckets
    level = level if level is not None else settings.placeholder_level
    return AmplitudeEnvelope.placeholder(n_buckets, level)


def block_means(samples: np.ndarray, n_buckets: int) -> np.ndarray:
    """Mean absolute amplitude of *n_buckets* contiguous blocks.

    Trailing samples that do not fill a whole block are dropped. When there
    are fewer samples than buckets each sample is its own block and the
    result is padded with the last value up to *n_buckets*.
    """
    magnitudes = np.abs(np.asarray(samples, dtype=np.float64))
    n = len(magnitudes)
    block_size = n // n_buckets

    if block_size == 0:
        padded = np.empty(n_buckets, dtype=np.float64)
        padded[:n] = magnitudes
        padded[n:] = magnitudes[-1]
        return padded

    blocks = magnitudes[: block_size * n_buckets].reshape(n_buckets, block_size)
    return blocks.sum(axis=1) / block_size


def extract_envelope(
    samples: np.ndarray,
    n_buckets: int | None = None,
    placeholder_level: float | None = None,
) -> AmplitudeEnvelope:
    """Reduce PCM samples to a normalized envelope of *n_buckets* values.

    Every value is divided by the single loudest block so the peak is exactly
    1.0. Empty or all-zero input yields the placeholder envelope and an
    :class:`EmptyAudioWarning`.
    """
    n_buckets = n_buckets if n_buckets is not None else settings.envelope_buckets
    if n_buckets <= 0:
        raise ValueError(f"n_buckets must be positive, got {n_buckets}")

    if len(samples) == 0:
        logger.warning("Empty audio; using placeholder envelope")
        warnings.warn("Audio contains no samples", EmptyAudioWarning, stacklevel=2)
        return placeholder_envelope(n_buckets, placeholder_level)

    means = block_means(samples, n_buckets)
    peak = float(means.max())
    if peak == 0:
        logger.warning("Silent audio; using placeholder envelope")
        warnings.warn("Audio is silent", EmptyAudioWarning, stacklevel=2)
        return placeholder_envelope(n_buckets, placeholder_level)

    normalized = means / peak
    return AmplitudeEnvelope(values=tuple(float(v) for v in normalized))


def envelope_for(
    decoded: DecodedAudio | None,
    n_buckets: int | None = None,
    placeholder_level: float | None = None,
) -> AmplitudeEnvelope:
    """Envelope for a decoded track, or the placeholder when nothing is loaded."""
    if decoded is None:
        return placeholder_envelope(n_buckets, placeholder_level)
    return extract_envelope(decoded.samples, n_buckets, placeholder_level)
