"""Analysis orchestrator - tags, decode, envelope, tempo."""

import logging

from trackwave.analysis.errors import AudioDecodeError
from trackwave.analysis.models import DecodedAudio, TrackAnalysis, TrackTags
from trackwave.analysis.requests import RequestGate
from trackwave.analysis.tempo import TempoParams, estimate_tempo
from trackwave.analysis.waveform import envelope_for
from trackwave.audio.fetch import fetch_audio, url_suffix
from trackwave.audio.loader import decode_bytes, decode_bytes_async, load_audio, suffix_for
from trackwave.audio.tags import read_tags, read_tags_bytes, read_tags_bytes_async

logger = logging.getLogger(__name__)

NOTICE_WAVEFORM_FAILED = "Unable to load audio waveform"
NOTICE_ANALYSIS_FAILED = "Failed to analyze audio"
NOTICE_SILENT = "Audio is silent"
NOTICE_NO_TEMPO = "Could not detect tempo"


class AnalysisEngine:
    """Runs the waveform and tempo pipeline with deterministic fallbacks.

    Nothing raised by decoding or analysis escapes: failures become a
    placeholder envelope, ``bpm=None`` and a notice for the user.
    """

    def __init__(self, tempo_params: TempoParams | None = None, n_buckets: int | None = None):
        self.tempo_params = tempo_params or TempoParams.from_settings()
        self.n_buckets = n_buckets
        self.gate = RequestGate()

    def _empty(self, request_id: int | None = None) -> TrackAnalysis:
        return TrackAnalysis(
            duration_seconds=0.0,
            bpm=None,
            envelope=envelope_for(None, self.n_buckets),
            request_id=request_id,
        )

    def _failed(self, tags: TrackTags | None = None, request_id: int | None = None) -> TrackAnalysis:
        """Placeholder result for a file that could not be decoded.

        Container tags still supply the tempo and duration when present.
        """
        tags = tags or TrackTags()
        notices = [NOTICE_WAVEFORM_FAILED]
        if tags.bpm is None:
            notices.append(NOTICE_ANALYSIS_FAILED)
        return TrackAnalysis(
            duration_seconds=tags.duration or 0.0,
            bpm=tags.bpm,
            envelope=envelope_for(None, self.n_buckets),
            notices=notices,
            request_id=request_id,
            tags=tags,
        )

    def analyze_audio(
        self,
        decoded: DecodedAudio,
        tags: TrackTags | None = None,
        request_id: int | None = None,
    ) -> TrackAnalysis:
        """Analyze already-decoded audio."""
        tags = tags or TrackTags()
        duration = decoded.duration_seconds
        logger.info(f"Analyzing {duration:.1f}s of audio at {decoded.sample_rate}Hz")
        notices = []

        # Step 1: Waveform envelope
        logger.info("Step 1: Waveform envelope")
        envelope = envelope_for(decoded, self.n_buckets)
        if envelope.is_placeholder:
            notices.append(NOTICE_SILENT)

        # Step 2: Tempo, from the tags when the file carries one
        logger.info("Step 2: Tempo estimation")
        if tags.bpm is not None:
            bpm = tags.bpm
            logger.info(f"  Using tagged tempo: {bpm} BPM")
        else:
            estimate = estimate_tempo(decoded, self.tempo_params)
            bpm = estimate.bpm
            if estimate.failed:
                notices.append(NOTICE_ANALYSIS_FAILED)
            elif bpm is None:
                notices.append(NOTICE_NO_TEMPO)
            else:
                logger.info(f"  {estimate.peak_count} peaks, raw {estimate.raw_bpm} BPM -> {bpm} BPM")

        return TrackAnalysis(
            duration_seconds=duration,
            bpm=bpm,
            envelope=envelope,
            notices=notices,
            request_id=request_id,
            tags=tags,
        )

    def analyze_file(self, file_path: str) -> TrackAnalysis:
        """Analyze an audio file on disk."""
        tags = read_tags(file_path)
        try:
            decoded = load_audio(file_path)
        except AudioDecodeError as e:
            logger.warning("Could not decode %s: %s", file_path, e)
            return self._failed(tags)
        return self.analyze_audio(decoded, tags)

    def analyze_bytes(self, data: bytes | None, filename: str | None = None) -> TrackAnalysis:
        """Analyze an in-memory audio file. ``None`` means no track is loaded."""
        if data is None:
            return self._empty()
        suffix = suffix_for(filename)
        tags = read_tags_bytes(data, suffix=suffix)
        try:
            decoded = decode_bytes(data, suffix=suffix)
        except AudioDecodeError as e:
            logger.warning("Could not decode upload %s: %s", filename or "<bytes>", e)
            return self._failed(tags)
        return self.analyze_audio(decoded, tags)

    async def analyze_bytes_async(self, data: bytes, filename: str | None = None) -> TrackAnalysis | None:
        """Decode off the event loop and analyze.

        Returns None if another request was issued on this engine while the
        decode was in flight; the stale result is discarded.
        """
        request_id = self.gate.issue()
        result = await self._analyze_data(data, suffix_for(filename), request_id, filename or "<bytes>")
        return self._if_current(result)

    async def analyze_url(self, url: str | None) -> TrackAnalysis | None:
        """Fetch, decode and analyze a remote audio file.

        A missing URL yields the placeholder envelope without notices.
        Returns None when the result has been superseded by a newer request.
        """
        request_id = self.gate.issue()
        if not url:
            return self._empty(request_id)
        try:
            data = await fetch_audio(url)
        except AudioDecodeError as e:
            logger.warning("Could not load %s: %s", url, e)
            result = self._failed(request_id=request_id)
        else:
            result = await self._analyze_data(data, url_suffix(url), request_id, url)
        return self._if_current(result)

    async def _analyze_data(self, data: bytes, suffix: str, request_id: int, source: str) -> TrackAnalysis:
        tags = await read_tags_bytes_async(data, suffix=suffix)
        try:
            decoded = await decode_bytes_async(data, suffix=suffix)
        except AudioDecodeError as e:
            logger.warning("Could not decode %s: %s", source, e)
            return self._failed(tags, request_id)
        return self.analyze_audio(decoded, tags, request_id=request_id)

    def _if_current(self, result: TrackAnalysis) -> TrackAnalysis | None:
        if not self.gate.is_current(result.request_id):
            logger.info(f"Discarding stale analysis (request {result.request_id})")
            return None
        return result
