"""Pydantic request/response models for API."""

from pydantic import BaseModel, Field


class AnalysisResponse(BaseModel):
    title: str | None = None
    artist: str | None = None
    album: str | None = None
    year: int | None = None
    genre: str | None = None
    duration_seconds: float = 0.0
    bpm: int | None = None
    envelope: list[float]
    is_placeholder: bool = False
    notices: list[str] = []
    catalog: dict = {}  # {"duration": D, "metadata": {"bpm": B, ...}} for the track record


class AnalyzeUrlRequest(BaseModel):
    url: str


class WaveformRequest(BaseModel):
    url: str | None = None


class WaveformResponse(BaseModel):
    envelope: list[float]
    is_placeholder: bool = False
    notices: list[str] = []


class RenderRequest(BaseModel):
    envelope: list[float]
    current_time: float = 0.0
    duration: float = 0.0
    width: float = Field(gt=0)
    height: float = Field(gt=0)
    device_pixel_ratio: float = Field(default=1.0, gt=0)


class SeekRequest(BaseModel):
    x: float
    width: float
    duration: float
    is_playing: bool = False


class ScrubberEventResponse(BaseModel):
    type: str
    time: float | None = None
    playing: bool | None = None


class SeekResponse(BaseModel):
    seek_time: float
    is_playing: bool
    events: list[ScrubberEventResponse]


# WebSocket message types

class FrameMessage(BaseModel):
    type: str = "frame"
    current_time: float
    duration: float
    state: str
    elapsed: str  # "m:ss / m:ss"
    frame: dict


class EnvelopeMessage(BaseModel):
    type: str = "envelope"
    request_id: int | None = None
    data: AnalysisResponse


class NoticeMessage(BaseModel):
    type: str = "notice"
    message: str
