"""Shared test fixtures for waveform and tempo tests."""

import io

import numpy as np
import pytest
import soundfile as sf
from fastapi.testclient import TestClient

from trackwave.main import app

# 0.5 s is exactly four 2048-sample blocks at this rate, so clicks at
# 120 BPM land on block boundaries.
ALIGNED_SR = 16384


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


def generate_click_track(
    bpm: float,
    beats_per_bar: int = 4,
    duration_seconds: float = 10.0,
    sr: int = 22050,
    accent_ratio: float = 2.0,
) -> np.ndarray:
    """Generate a synthetic click track with accented downbeats.

    Returns mono audio at the given sample rate.
    """
    n_samples = int(duration_seconds * sr)
    audio = np.zeros(n_samples, dtype=np.float32)

    beat_interval = 60.0 / bpm  # seconds per beat
    click_duration = 0.02  # 20ms click
    click_samples = int(click_duration * sr)

    # Create click sound (short sine burst with envelope)
    t_click = np.arange(click_samples) / sr
    click = np.sin(2 * np.pi * 1000 * t_click) * np.exp(-t_click * 100)

    beat = 0
    time = 0.0
    while time < duration_seconds:
        sample_pos = int(round(time * sr))
        is_downbeat = (beat % beats_per_bar) == 0
        amplitude = accent_ratio if is_downbeat else 1.0

        end = min(sample_pos + click_samples, n_samples)
        length = end - sample_pos
        if length > 0:
            audio[sample_pos:end] += click[:length] * amplitude

        time += beat_interval
        beat += 1

    # Normalize
    peak = np.max(np.abs(audio))
    if peak > 0:
        audio = audio / peak

    return audio


def wav_bytes(audio: np.ndarray, sr: int) -> bytes:
    """Encode samples (mono, or frames x channels) as an in-memory WAV file."""
    buffer = io.BytesIO()
    sf.write(buffer, audio, sr, format="WAV", subtype="FLOAT")
    return buffer.getvalue()


@pytest.fixture
def click_120():
    """Click track at 120 BPM, sample-aligned to the analysis blocks."""
    return generate_click_track(bpm=120, duration_seconds=10, sr=ALIGNED_SR)


@pytest.fixture
def click_120_wav(click_120):
    return wav_bytes(click_120, ALIGNED_SR)


@pytest.fixture
def silent_wav():
    return wav_bytes(np.zeros(ALIGNED_SR * 2, dtype=np.float32), ALIGNED_SR)


@pytest.fixture
def tagged_wav(tmp_path, click_120):
    """The 120 BPM click track with ID3 tags, including a 98 BPM tempo tag."""
    from mutagen.id3 import TALB, TBPM, TCON, TDRC, TIT2, TPE1
    from mutagen.wave import WAVE

    path = tmp_path / "tagged.wav"
    sf.write(str(path), click_120, ALIGNED_SR, subtype="FLOAT")

    audio = WAVE(str(path))
    audio.add_tags()
    audio.tags.add(TIT2(encoding=3, text="Night Drive"))
    audio.tags.add(TPE1(encoding=3, text="Low Tide"))
    audio.tags.add(TALB(encoding=3, text="Demos"))
    audio.tags.add(TDRC(encoding=3, text="2021"))
    audio.tags.add(TCON(encoding=3, text="Synthwave"))
    audio.tags.add(TBPM(encoding=3, text="98"))
    audio.save()
    return path.read_bytes()
