"""Core data models for waveform and tempo analysis."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np


@dataclass(frozen=True)
class DecodedAudio:
    """First-channel PCM samples of a decoded file."""
    samples: np.ndarray  # float32, [-1.0, 1.0]
    sample_rate: int

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate


@dataclass(frozen=True)
class AmplitudeEnvelope:
    """Fixed-length loudness summary used to draw the waveform."""
    values: tuple[float, ...]
    is_placeholder: bool = False

    @classmethod
    def placeholder(cls, n_buckets: int = 200, level: float = 0.1) -> AmplitudeEnvelope:
        return cls(values=(float(level),) * n_buckets, is_placeholder=True)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self):
        return iter(self.values)

    def __getitem__(self, index):
        return self.values[index]

    def max(self) -> float:
        return max(self.values) if self.values else 0.0

    def to_list(self) -> list[float]:
        return list(self.values)


@dataclass
class TempoEstimate:
    """Result of tempo estimation. ``bpm`` is None when inconclusive."""
    bpm: int | None
    raw_bpm: int | None = None  # before octave correction
    peak_count: int = 0
    corrected: bool = False
    failed: bool = False  # estimation raised, as opposed to finding too few peaks

    @property
    def is_conclusive(self) -> bool:
        return self.bpm is not None


@dataclass
class PlaybackCursor:
    """Playback position as reported by the audio element."""
    current_time: float = 0.0
    duration: float = 0.0

    @property
    def progress_ratio(self) -> float:
        if not self.duration or not math.isfinite(self.duration) or self.duration <= 0:
            return 0.0
        if not math.isfinite(self.current_time):
            return 0.0
        return min(max(self.current_time / self.duration, 0.0), 1.0)


@dataclass
class TrackTags:
    """Metadata embedded in the file container (ID3, Vorbis comments, MP4 atoms)."""
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    year: int | None = None
    genre: str | None = None
    bpm: int | None = None
    duration: float | None = None  # as reported by the container


@dataclass
class TrackAnalysis:
    """Everything derived from one uploaded or fetched file."""
    duration_seconds: float
    bpm: int | None
    envelope: AmplitudeEnvelope
    notices: list[str] = field(default_factory=list)
    request_id: int | None = None
    tags: TrackTags = field(default_factory=TrackTags)

    def catalog_fields(self) -> dict:
        """Fields attached to the track record at upload time.

        Tag values that are missing from the file are left out.
        """
        metadata = {"bpm": self.bpm}
        for name in ("artist", "album", "year", "genre"):
            value = getattr(self.tags, name)
            if value is not None:
                metadata[name] = value
        return {
            "duration": self.duration_seconds,
            "metadata": metadata,
        }
