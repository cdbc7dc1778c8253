"""WebSocket endpoint for a live waveform player session."""

import asyncio
import json
import logging
from dataclasses import asdict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from trackwave.analysis.engine import AnalysisEngine
from trackwave.analysis.models import TrackAnalysis
from trackwave.analysis.waveform import placeholder_envelope
from trackwave.api.schemas import EnvelopeMessage, FrameMessage, NoticeMessage
from trackwave.api.upload import analysis_to_response
from trackwave.render import Scrubber, Viewport, format_time

logger = logging.getLogger(__name__)

router = APIRouter()

_DEFAULT_WIDTH = 800.0
_DEFAULT_HEIGHT = 200.0


class PlayerSession:
    """Per-connection player state: envelope, scrubber and viewport."""

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket
        self.engine = AnalysisEngine()
        self.scrubber = Scrubber()
        self.envelope = placeholder_envelope()
        self.viewport = Viewport(_DEFAULT_WIDTH, _DEFAULT_HEIGHT)
        self._send_lock = asyncio.Lock()
        self._tasks: set[asyncio.Task] = set()

    async def send(self, payload: dict) -> None:
        async with self._send_lock:
            await self.websocket.send_json(payload)

    async def send_events(self, events) -> None:
        for event in events:
            await self.send(asdict(event))

    async def send_frame(self) -> None:
        scrubber = self.scrubber
        frame = scrubber.frame(self.envelope, self.viewport)
        await self.send(FrameMessage(
            current_time=scrubber.current_time,
            duration=scrubber.duration,
            state=scrubber.state.value,
            elapsed=f"{format_time(scrubber.current_time)} / {format_time(scrubber.duration)}",
            frame=frame.to_dict(),
        ).model_dump())

    # ------------------------------------------------------------------
    # Track loading
    # ------------------------------------------------------------------

    def start_load(self, coro) -> None:
        """Run a load in the background so a newer load can supersede it."""
        task = asyncio.create_task(self._finish_load(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _finish_load(self, coro) -> None:
        try:
            result = await coro
        except Exception as e:
            logger.exception("Track load failed: %s", e)
            await self.send({"type": "error", "message": "Failed to load track"})
            return
        if result is None:
            return
        await self.apply(result)

    async def apply(self, result: TrackAnalysis) -> None:
        self.envelope = result.envelope
        self.scrubber = Scrubber(duration=result.duration_seconds)
        await self.send(EnvelopeMessage(
            request_id=result.request_id,
            data=analysis_to_response(result),
        ).model_dump())
        for notice in result.notices:
            await self.send(NoticeMessage(message=notice).model_dump())
        await self.send_frame()

    # ------------------------------------------------------------------
    # Control messages
    # ------------------------------------------------------------------

    async def handle(self, message: dict) -> None:
        kind = message.get("type")
        scrubber = self.scrubber

        if kind == "load":
            self.start_load(self.engine.analyze_url(message.get("url")))
            return
        if kind == "time":
            events = scrubber.update_time(float(message["current_time"]))
        elif kind == "duration":
            scrubber.set_duration(float(message["duration"]))
            events = []
        elif kind == "click":
            events = scrubber.click(float(message["x"]), float(message["width"]))
        elif kind == "play":
            events = scrubber.play()
        elif kind == "pause":
            events = scrubber.pause()
        elif kind == "toggle":
            events = scrubber.toggle()
        elif kind == "resize":
            self.viewport = Viewport(
                width=float(message["width"]),
                height=float(message["height"]),
                device_pixel_ratio=float(message.get("device_pixel_ratio", 1.0)),
            )
            events = []
        else:
            await self.send({"type": "error", "message": f"Unknown message type: {kind}"})
            return

        await self.send_events(events)
        await self.send_frame()

    def cancel(self) -> None:
        for task in list(self._tasks):
            task.cancel()


@router.websocket("/ws/player")
async def player_session(websocket: WebSocket):
    """Live waveform player via WebSocket.

    Protocol:
    - Client sends binary frames holding a whole audio file to load, or JSON:
      {"type": "load", "url": U}, {"type": "time", "current_time": T},
      {"type": "duration", "duration": D}, {"type": "click", "x": X, "width": W},
      {"type": "play"}, {"type": "pause"}, {"type": "toggle"},
      {"type": "resize", "width": W, "height": H, "device_pixel_ratio": R}
    - Server sends JSON messages:
      - {"type": "frame", ...}         bars for the current position
      - {"type": "envelope", ...}      analysis of a newly loaded track
      - {"type": "seek", "time": T}, {"type": "play_pause", "playing": B},
        {"type": "ended"}              requests for the audio element
      - {"type": "notice", "message": M}, {"type": "error", "message": M}
    """
    await websocket.accept()
    session = PlayerSession(websocket)
    await session.send_frame()

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break

            data = message.get("bytes")
            if data is not None:
                if data:
                    session.start_load(session.engine.analyze_bytes_async(data))
                continue

            try:
                payload = json.loads(message.get("text") or "")
                await session.handle(payload)
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                await session.send({"type": "error", "message": f"Bad message: {e}"})

    except WebSocketDisconnect:
        pass
    finally:
        session.cancel()
