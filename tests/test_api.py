"""Tests for the HTTP endpoints."""


def test_health_endpoint(client):
    """GET /api/health should return ok."""
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_api_analyze_endpoint(client, click_120_wav):
    """POST /api/analyze should return duration, bpm and envelope."""
    response = client.post(
        "/api/analyze",
        files={"file": ("My Track.wav", click_120_wav, "audio/wav")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "My Track"
    assert data["bpm"] == 120
    assert data["duration_seconds"] == 10.0
    assert len(data["envelope"]) == 200
    assert max(data["envelope"]) == 1.0
    assert data["notices"] == []
    assert data["catalog"] == {"duration": 10.0, "metadata": {"bpm": 120}}


def test_api_analyze_rejects_unsupported_format(client):
    response = client.post(
        "/api/analyze",
        files={"file": ("song.ogg", b"OggS", "audio/ogg")},
    )
    assert response.status_code == 400
    assert "Invalid file type" in response.json()["detail"]


def test_api_analyze_rejects_oversized_file(client, monkeypatch):
    """Upload endpoint should reject files larger than configured limit."""
    from trackwave.config import settings

    monkeypatch.setattr(settings, "max_upload_mb", 1)
    payload = b"x" * (1024 * 1024 + 1)

    response = client.post(
        "/api/analyze",
        files={"file": ("big.wav", payload, "audio/wav")},
    )

    assert response.status_code == 400
    assert "File too large" in response.json()["detail"]


def test_api_analyze_corrupt_file_is_not_an_error(client):
    """Undecodable audio degrades to a flat waveform and no tempo."""
    response = client.post(
        "/api/analyze",
        files={"file": ("broken.mp3", b"\x00" * 2048, "audio/mpeg")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["bpm"] is None
    assert data["is_placeholder"] is True
    assert data["envelope"] == [0.1] * 200
    assert "Unable to load audio waveform" in data["notices"]


def test_api_analyze_unexpected_failure_returns_generic_error(client, monkeypatch):
    """Upload endpoint should not leak internal exception details."""
    from trackwave.analysis.engine import AnalysisEngine

    async def _raise(self, data, filename=None):
        raise RuntimeError("boom")

    monkeypatch.setattr(AnalysisEngine, "analyze_bytes_async", _raise)

    response = client.post(
        "/api/analyze",
        files={"file": ("test.wav", b"audio", "audio/wav")},
    )

    assert response.status_code == 500
    assert response.json()["detail"] == "Analysis failed"


def test_api_analyze_url(client, monkeypatch, click_120_wav):
    import trackwave.analysis.engine as engine_module

    async def _fake_fetch(url, timeout=None):
        return click_120_wav

    monkeypatch.setattr(engine_module, "fetch_audio", _fake_fetch)
    response = client.post("/api/analyze/url", json={"url": "https://cdn.example.com/a.wav"})

    assert response.status_code == 200
    assert response.json()["bpm"] == 120


def test_api_analyze_uses_embedded_tags(client, tagged_wav):
    response = client.post(
        "/api/analyze",
        files={"file": ("upload-0413.wav", tagged_wav, "audio/wav")},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Night Drive"
    assert data["artist"] == "Low Tide"
    assert data["year"] == 2021
    assert data["bpm"] == 98
    assert data["catalog"]["metadata"]["bpm"] == 98


def test_api_analyze_malformed_url(client):
    """A URL httpx cannot parse degrades like any other failed load."""
    response = client.post("/api/analyze/url", json={"url": "http://[::1"})

    assert response.status_code == 200
    data = response.json()
    assert data["bpm"] is None
    assert data["envelope"] == [0.1] * 200
    assert "Unable to load audio waveform" in data["notices"]


def test_waveform_malformed_url(client):
    response = client.post("/api/waveform", json={"url": "http://[::1"})

    assert response.status_code == 200
    assert response.json()["is_placeholder"] is True


def test_waveform_without_url_is_placeholder(client):
    response = client.post("/api/waveform", json={"url": None})

    assert response.status_code == 200
    data = response.json()
    assert data["envelope"] == [0.1] * 200
    assert data["is_placeholder"] is True
    assert data["notices"] == []


def test_render_returns_svg(client):
    response = client.post("/api/waveform/render", json={
        "envelope": [0.5] * 200,
        "current_time": 30,
        "duration": 180,
        "width": 800,
        "height": 200,
        "device_pixel_ratio": 2,
    })

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("image/svg+xml")
    assert 'width="1600"' in response.text
    assert response.text.count("<rect") == 200


def test_render_with_zero_duration(client):
    response = client.post("/api/waveform/render", json={
        "envelope": [0.5] * 10,
        "current_time": 5,
        "duration": 0,
        "width": 100,
        "height": 50,
    })
    assert response.status_code == 200
    assert "#FF5500" in response.text  # first bar sits on the playhead


def test_render_rejects_empty_viewport(client):
    response = client.post("/api/waveform/render", json={
        "envelope": [0.5],
        "width": 0,
        "height": 50,
    })
    assert response.status_code == 422


def test_seek_while_paused(client):
    response = client.post("/api/waveform/seek", json={
        "x": 400, "width": 800, "duration": 180, "is_playing": False,
    })

    assert response.status_code == 200
    data = response.json()
    assert data["seek_time"] == 90.0
    assert data["is_playing"] is True
    assert [e["type"] for e in data["events"]] == ["play_pause", "seek"]


def test_seek_while_playing(client):
    response = client.post("/api/waveform/seek", json={
        "x": 400, "width": 800, "duration": 180, "is_playing": True,
    })

    data = response.json()
    assert data["events"] == [{"type": "seek", "time": 90.0, "playing": None}]
