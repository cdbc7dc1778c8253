"""Upload-time analysis endpoints: duration, tempo and waveform envelope."""

import logging

from fastapi import APIRouter, File, HTTPException, UploadFile

from trackwave.analysis.engine import AnalysisEngine
from trackwave.analysis.models import TrackAnalysis
from trackwave.api.schemas import AnalysisResponse, AnalyzeUrlRequest
from trackwave.audio.loader import suffix_for
from trackwave.config import settings

logger = logging.getLogger(__name__)

router = APIRouter()

ALLOWED_EXTENSIONS = {".wav", ".aiff", ".aif", ".mp3"}


def analysis_to_response(result: TrackAnalysis, title: str | None = None) -> AnalysisResponse:
    """Response body; an embedded title tag wins over the suggested *title*."""
    tags = result.tags
    return AnalysisResponse(
        title=tags.title or title,
        artist=tags.artist,
        album=tags.album,
        year=tags.year,
        genre=tags.genre,
        duration_seconds=result.duration_seconds,
        bpm=result.bpm,
        envelope=result.envelope.to_list(),
        is_placeholder=result.envelope.is_placeholder,
        notices=list(result.notices),
        catalog=result.catalog_fields(),
    )


def default_title(filename: str | None) -> str | None:
    """Track title suggested from the file name (``My Song.mp3`` -> ``My Song``)."""
    if not filename:
        return None
    return filename.rsplit(".", 1)[0] if "." in filename else filename


@router.post("/analyze", response_model=AnalysisResponse)
async def analyze_file(file: UploadFile = File(...)):
    """Analyze an uploaded audio file for duration, tempo and waveform."""
    ext = suffix_for(file.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise HTTPException(400, f"Invalid file type. Accepted types: {', '.join(sorted(ALLOWED_EXTENSIONS))}")

    content = await file.read()
    if len(content) > settings.max_upload_mb * 1024 * 1024:
        raise HTTPException(400, f"File too large (max {settings.max_upload_mb} MB)")

    try:
        engine = AnalysisEngine()
        result = await engine.analyze_bytes_async(content, filename=file.filename)
    except Exception as e:
        logger.exception("Analysis of %s failed: %s", file.filename, e)
        raise HTTPException(500, "Analysis failed")

    if result is None:
        raise HTTPException(409, "Analysis superseded")
    return analysis_to_response(result, title=default_title(file.filename))


@router.post("/analyze/url", response_model=AnalysisResponse)
async def analyze_url(request: AnalyzeUrlRequest):
    """Analyze an audio file that is already in object storage."""
    try:
        engine = AnalysisEngine()
        result = await engine.analyze_url(request.url)
    except Exception as e:
        logger.exception("Analysis of %s failed: %s", request.url, e)
        raise HTTPException(500, "Analysis failed")

    if result is None:
        raise HTTPException(409, "Analysis superseded")
    return analysis_to_response(result)
