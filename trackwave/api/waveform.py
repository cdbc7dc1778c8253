"""Waveform endpoints: envelope, rendered frame and click-to-seek."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response

from trackwave.analysis.engine import AnalysisEngine
from trackwave.api.schemas import (
    RenderRequest,
    ScrubberEventResponse,
    SeekRequest,
    SeekResponse,
    WaveformRequest,
    WaveformResponse,
)
from trackwave.render import Scrubber, Viewport, draw_waveform, render_svg

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/waveform", response_model=WaveformResponse)
async def waveform(request: WaveformRequest):
    """Envelope for an audio URL, or the flat placeholder when there is none."""
    try:
        result = await AnalysisEngine().analyze_url(request.url)
    except Exception as e:
        logger.exception("Waveform for %s failed: %s", request.url, e)
        raise HTTPException(500, "Analysis failed")

    if result is None:
        raise HTTPException(409, "Analysis superseded")
    return WaveformResponse(
        envelope=result.envelope.to_list(),
        is_placeholder=result.envelope.is_placeholder,
        notices=list(result.notices),
    )


@router.post("/waveform/render")
async def render(request: RenderRequest):
    """Render the envelope at the given playback position as SVG."""
    viewport = Viewport(
        width=request.width,
        height=request.height,
        device_pixel_ratio=request.device_pixel_ratio,
    )
    frame = draw_waveform(request.envelope, request.current_time, request.duration, viewport)
    return Response(content=render_svg(frame), media_type="image/svg+xml")


@router.post("/waveform/seek", response_model=SeekResponse)
async def seek(request: SeekRequest):
    """Translate a click on the waveform into seek and play requests."""
    scrubber = Scrubber(duration=request.duration)
    if request.is_playing:
        scrubber.play()
    events = scrubber.click(request.x, request.width)
    return SeekResponse(
        seek_time=scrubber.current_time,
        is_playing=scrubber.is_playing,
        events=[ScrubberEventResponse(**asdict(e)) for e in events],
    )
