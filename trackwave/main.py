"""FastAPI application - serves the waveform and tempo API."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trackwave.api.upload import router as upload_router
from trackwave.api.waveform import router as waveform_router
from trackwave.api.websocket import router as ws_router

app = FastAPI(title="Trackwave", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload_router, prefix="/api")
app.include_router(waveform_router, prefix="/api")
app.include_router(ws_router, prefix="/api")


@app.get("/api/health")
async def health():
    return {"status": "ok"}


def run():
    import uvicorn
    from trackwave.config import settings
    uvicorn.run(
        "trackwave.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
    )
