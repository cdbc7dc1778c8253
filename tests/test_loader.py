"""Tests for audio decoding and the scoped decode context."""

import asyncio
import os

import numpy as np
import pytest

from trackwave.analysis.errors import AudioDecodeError
from trackwave.audio.fetch import url_suffix
from trackwave.audio.loader import (
    decode_bytes,
    decode_bytes_async,
    decode_context,
    suffix_for,
)
from tests.conftest import ALIGNED_SR, generate_click_track, wav_bytes


def test_decode_wav_bytes():
    audio = generate_click_track(bpm=120, duration_seconds=2, sr=ALIGNED_SR)
    decoded = decode_bytes(wav_bytes(audio, ALIGNED_SR), suffix=".wav")

    assert decoded.sample_rate == ALIGNED_SR
    assert len(decoded.samples) == len(audio)
    assert decoded.duration_seconds == pytest.approx(2.0)
    np.testing.assert_allclose(decoded.samples, audio, atol=1e-6)


def test_decode_keeps_first_channel_only():
    n = ALIGNED_SR
    left = 0.5 * np.sin(np.linspace(0, 200 * np.pi, n)).astype(np.float32)
    right = np.zeros(n, dtype=np.float32)
    stereo = np.stack([left, right], axis=1)

    decoded = decode_bytes(wav_bytes(stereo, ALIGNED_SR))

    assert decoded.samples.ndim == 1
    assert np.max(np.abs(decoded.samples)) == pytest.approx(0.5, abs=1e-3)


def test_garbage_bytes_raise_decode_error():
    with pytest.raises(AudioDecodeError):
        decode_bytes(b"definitely not audio" * 100, suffix=".wav")


def test_empty_bytes_raise_decode_error():
    with pytest.raises(AudioDecodeError):
        decode_bytes(b"")


def test_decode_context_removes_file_on_failure():
    seen = []
    with pytest.raises(RuntimeError):
        with decode_context(b"abc", suffix=".wav") as path:
            seen.append(path)
            assert os.path.exists(path)
            raise RuntimeError("decode failed")

    assert seen
    assert not os.path.exists(seen[0])


def test_decode_bytes_removes_temp_file(monkeypatch):
    import trackwave.audio.loader as loader_module

    paths = []

    def _fake_load(path, sr=None):
        paths.append(path)
        raise AudioDecodeError("unsupported codec")

    monkeypatch.setattr(loader_module, "load_audio", _fake_load)

    with pytest.raises(AudioDecodeError):
        decode_bytes(b"RIFF....", suffix=".wav")

    assert len(paths) == 1
    assert paths[0].endswith(".wav")
    assert not os.path.exists(paths[0])


def test_decode_bytes_async():
    audio = generate_click_track(bpm=100, duration_seconds=1, sr=ALIGNED_SR)
    decoded = asyncio.run(decode_bytes_async(wav_bytes(audio, ALIGNED_SR), ".wav"))
    assert decoded.sample_rate == ALIGNED_SR


def test_suffixes():
    assert suffix_for("My Song.MP3") == ".mp3"
    assert suffix_for("noext") == ""
    assert suffix_for(None) == ""
    assert url_suffix("https://cdn.example.com/tracks/u1/a.aiff?token=x") == ".aiff"
    assert url_suffix("https://cdn.example.com/stream") == ""
