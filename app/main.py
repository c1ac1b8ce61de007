"""Main FastAPI application."""
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
import httpx

from app.core.config import settings
from app.core.logging import setup_logging
from app.db.database import init_db
from app.api import health, calls, session
from app.api.webhooks import voice as voice_webhooks
from app.services.call_session.manager import IvrSessionManager
from app.services.ivr.scheduler import AsyncioTimerScheduler
from app.services.ivr.script import IvrScript, load_script
from app.services.speech.tts import TextToSpeechService
from app.services.speech.voice import (
    SimulatedVoiceAdapter,
    SynthesizedVoiceAdapter,
    VoiceAdapter,
)
from app.services.telephony.initiation import HttpCallInitiationAdapter

logger = logging.getLogger(__name__)


def create_voice_adapter(script: IvrScript) -> VoiceAdapter:
    """Build the voice adapter selected by VOICE_BACKEND."""
    if settings.voice_backend == "openai":
        return SynthesizedVoiceAdapter(
            TextToSpeechService(),
            tracks=script.tracks,
            track_seconds=settings.simulated_track_seconds,
        )
    return SimulatedVoiceAdapter(
        tracks=script.tracks,
        track_seconds=settings.simulated_track_seconds,
    )


def create_session_manager(app: FastAPI) -> IvrSessionManager:
    """Wire the IVR session to this app's call API and the configured voice backend."""
    script = load_script(settings.ivr_script_file)
    if settings.call_api_base_url:
        initiator = HttpCallInitiationAdapter(settings.call_api_base_url)
    else:
        # Go through this app's own /calls/initiate endpoint without a network hop
        initiator = HttpCallInitiationAdapter(
            "http://ivr.internal", transport=httpx.ASGITransport(app=app)
        )
    return IvrSessionManager(
        scheduler=AsyncioTimerScheduler(),
        voice=create_voice_adapter(script),
        initiator=initiator,
        script=script,
        dialing_timeout_ms=settings.dialing_timeout_ms,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    setup_logging()
    await init_db()
    app.state.ivr_session = create_session_manager(app)
    logger.info(
        f"IVR session ready - telephony: "
        f"{'twilio' if settings.twilio_configured else 'simulated'}, "
        f"voice: {settings.voice_backend}"
    )
    yield
    # Shutdown
    await app.state.ivr_session.close()
    app.state.ivr_session = None


app = FastAPI(
    title="IVR Call Flow Demo",
    description="Simulated outbound call with a touch-tone IVR menu",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router, tags=["health"])
app.include_router(calls.router, tags=["calls"])
app.include_router(session.router, tags=["session"])
app.include_router(voice_webhooks.router, prefix="/webhooks", tags=["webhooks"])


@app.get("/")
async def root():
    """Service information."""
    return {
        "message": "IVR Call Flow Demo API",
        "version": "0.1.0",
        "session": "/api/session",
    }
