"""Tempo estimation by onset peak picking with octave correction."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np

from trackwave.analysis.errors import InconclusiveTempoError
from trackwave.analysis.models import DecodedAudio, TempoEstimate
from trackwave.config import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TempoParams:
    """Tunables for :func:`estimate_bpm`.

    The defaults suit typical popular-music tempos: peaks must clear both a
    fixed floor and 1.5x the track's RMS, detections closer than 200 ms are
    merged, and raw tempos above 150 BPM are folded back into 70-150.
    """
    block_size: int = 2048
    threshold_floor: float = 0.15
    rms_factor: float = 1.5
    refractory_seconds: float = 0.2
    trim_low: float = 0.2
    trim_high: float = 0.8
    octave_max_bpm: float = 150
    plausible_min_bpm: float = 70
    plausible_max_bpm: float = 150
    divisors: tuple[int, ...] = (2, 3, 4)
    threshold: float | None = None  # fixed threshold, overrides floor/rms

    @classmethod
    def from_settings(cls, **overrides) -> TempoParams:
        values = dict(
            block_size=settings.tempo_block_size,
            threshold_floor=settings.threshold_floor,
            rms_factor=settings.threshold_rms_factor,
            refractory_seconds=settings.refractory_seconds,
            trim_low=settings.trim_low,
            trim_high=settings.trim_high,
            octave_max_bpm=settings.octave_max_bpm,
            plausible_min_bpm=settings.plausible_min_bpm,
            plausible_max_bpm=settings.plausible_max_bpm,
        )
        values.update(overrides)
        return cls(**values)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def compute_rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude of the whole signal (0 for empty input)."""
    if len(samples) == 0:
        return 0.0
    x = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(x * x)))


def detection_threshold(rms: float, floor: float = 0.15, rms_factor: float = 1.5) -> float:
    return max(floor, rms * rms_factor)


def block_peaks(samples: np.ndarray, block_size: int = 2048) -> np.ndarray:
    """Peak absolute amplitude of each block; the last block may be partial."""
    if block_size <= 0:
        raise ValueError(f"block_size must be positive, got {block_size}")
    magnitudes = np.abs(np.asarray(samples, dtype=np.float32))
    n_blocks = math.ceil(len(magnitudes) / block_size)
    if n_blocks == 0:
        return np.zeros(0, dtype=np.float32)
    padded = np.zeros(n_blocks * block_size, dtype=np.float32)
    padded[: len(magnitudes)] = magnitudes
    return padded.reshape(n_blocks, block_size).max(axis=1)


def detect_peaks(
    samples: np.ndarray,
    sr: int,
    threshold: float,
    block_size: int = 2048,
    refractory_seconds: float = 0.2,
) -> np.ndarray:
    """Onset times (seconds) of blocks whose peak exceeds *threshold*.

    A block is only registered if it starts at least *refractory_seconds*
    after the previously registered one.
    """
    peaks = block_peaks(samples, block_size)
    min_gap = refractory_seconds * sr

    times = []
    last_index = None
    for block in np.flatnonzero(peaks > threshold):
        start = int(block) * block_size
        if last_index is None or start - last_index >= min_gap:
            times.append(start / sr)
            last_index = start
    return np.asarray(times, dtype=np.float64)


def peak_intervals(peak_times: np.ndarray) -> np.ndarray:
    """Differences between consecutive peak times."""
    return np.diff(np.asarray(peak_times, dtype=np.float64))


def trimmed_mean_interval(
    intervals: np.ndarray,
    trim_low: float = 0.2,
    trim_high: float = 0.8,
) -> float:
    """Mean of the sorted intervals between the *trim_low* and *trim_high* fractions.

    With very few intervals the slice can be empty; all intervals are used then.
    """
    ordered = np.sort(np.asarray(intervals, dtype=np.float64))
    n = len(ordered)
    if n == 0:
        raise InconclusiveTempoError("No intervals to average")
    kept = ordered[int(math.floor(n * trim_low)):int(math.floor(n * trim_high))]
    if len(kept) == 0:
        kept = ordered
    return float(np.mean(kept))


def correct_octave(
    raw_bpm: float,
    max_bpm: float = 150,
    plausible_range: tuple[float, float] = (70, 150),
    divisors: tuple[int, ...] = (2, 3, 4),
) -> tuple[int, bool]:
    """Fold a too-fast tempo back into the plausible range.

    Returns ``(bpm, corrected)``. Only estimates strictly above *max_bpm* are
    touched; the first divided candidate inside *plausible_range* wins,
    otherwise the estimate is halved.
    """
    if raw_bpm <= max_bpm:
        return round_half_up(raw_bpm), False

    low, high = plausible_range
    for divisor in divisors:
        candidate = raw_bpm / divisor
        if low <= candidate <= high:
            return round_half_up(candidate), True
    return round_half_up(raw_bpm / 2), True


def analyze_tempo(samples: np.ndarray, sr: int, params: TempoParams) -> TempoEstimate:
    """Full estimate including the raw tempo; raises InconclusiveTempoError."""
    if params.threshold is not None:
        threshold = params.threshold
    else:
        rms = compute_rms(samples)
        threshold = detection_threshold(rms, params.threshold_floor, params.rms_factor)

    peak_times = detect_peaks(
        samples, sr, threshold,
        block_size=params.block_size,
        refractory_seconds=params.refractory_seconds,
    )
    logger.debug(f"  threshold={threshold:.3f}, {len(peak_times)} peaks")
    if len(peak_times) < 2:
        raise InconclusiveTempoError(f"Only {len(peak_times)} peak(s) detected")

    average = trimmed_mean_interval(peak_intervals(peak_times), params.trim_low, params.trim_high)
    if not average > 0:
        raise InconclusiveTempoError(f"Degenerate average interval: {average}")

    raw_bpm = round_half_up(60.0 / average)
    bpm, corrected = correct_octave(
        raw_bpm,
        max_bpm=params.octave_max_bpm,
        plausible_range=(params.plausible_min_bpm, params.plausible_max_bpm),
        divisors=params.divisors,
    )
    return TempoEstimate(bpm=bpm, raw_bpm=raw_bpm, peak_count=len(peak_times), corrected=corrected)


def estimate_bpm(samples: np.ndarray, sr: int, params: TempoParams | None = None) -> int:
    """Estimate tempo in BPM.

    Raises
    ------
    InconclusiveTempoError
        If fewer than two peaks are found or the interval statistics are degenerate.
    """
    params = params or TempoParams.from_settings()
    return analyze_tempo(samples, sr, params).bpm


def estimate_tempo(decoded: DecodedAudio, params: TempoParams | None = None) -> TempoEstimate:
    """Estimate tempo for a decoded track; never raises.

    Inconclusive or failed estimation yields ``bpm=None`` so the user can
    fill the tempo in by hand.
    """
    params = params or TempoParams.from_settings()
    try:
        estimate = analyze_tempo(decoded.samples, decoded.sample_rate, params)
    except InconclusiveTempoError as e:
        logger.info("Tempo inconclusive: %s", e)
        return TempoEstimate(bpm=None)
    except Exception as e:
        logger.warning("Tempo estimation failed: %s", e)
        return TempoEstimate(bpm=None, failed=True)

    if estimate.corrected:
        logger.debug(f"  octave correction {estimate.raw_bpm} -> {estimate.bpm} BPM")
    return estimate
