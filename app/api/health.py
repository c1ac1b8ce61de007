"""Health check endpoint."""
import logging
from fastapi import APIRouter, Request

from app.core.config import settings

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint, with the telephony mode and IVR session state."""
    logger.debug(
        f"[HEALTH] Health check requested - Client: {request.client.host if request.client else 'unknown'}"
    )
    manager = getattr(request.app.state, "ivr_session", None)
    return {
        "status": "healthy",
        "telephony": "twilio" if settings.twilio_configured else "simulated",
        "callState": manager.session.state.value if manager else None,
    }
