"""Application configuration."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings with env var overrides."""

    # Waveform envelope
    envelope_buckets: int = 200
    placeholder_level: float = 0.1

    # Tempo estimation
    tempo_block_size: int = 2048  # samples per analysis block
    threshold_floor: float = 0.15
    threshold_rms_factor: float = 1.5
    refractory_seconds: float = 0.2
    trim_low: float = 0.2  # fraction of sorted intervals dropped at each end
    trim_high: float = 0.8
    octave_max_bpm: int = 150  # raw estimates above this get octave-corrected
    plausible_min_bpm: int = 70
    plausible_max_bpm: int = 150

    # Renderer
    transition_width: float = 0.02
    bar_height_ratio: float = 0.8
    bar_gap: float = 0.5
    bar_radius: float = 2.0
    played_color: str = "#FF5500"
    unplayed_color: str = "#A1A1AA"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    max_upload_mb: int = 50
    fetch_timeout: float = 30.0

    model_config = {"env_prefix": "TRACKWAVE_"}


settings = Settings()
