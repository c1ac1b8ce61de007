"""FastAPI dependencies."""
from fastapi import HTTPException, Request

from app.core.config import settings
from app.services.call_session.manager import IvrSessionManager
from app.services.ivr.script import IvrScript, load_script
from app.services.telephony.provider import (
    SimulatedTelephonyProvider,
    TelephonyProvider,
    TwilioTelephonyProvider,
)


def get_base_url(request: Request) -> str:
    """
    Get the base URL for constructing absolute URLs.

    Uses BASE_URL environment variable if set, otherwise constructs
    from request.
    """
    if settings.base_url:
        return settings.base_url.rstrip("/")
    return str(request.base_url).rstrip("/")


def get_telephony_provider(request: Request) -> TelephonyProvider:
    """Get the Twilio provider when configured, the simulated one otherwise."""
    if not settings.twilio_configured:
        return SimulatedTelephonyProvider()

    base_url = get_base_url(request)
    return TwilioTelephonyProvider(
        account_sid=settings.twilio_account_sid,
        auth_token=settings.twilio_auth_token,
        from_number=settings.twilio_phone_number,
        answer_url=f"{base_url}/webhooks/voice/answer",
        status_callback_url=f"{base_url}/webhooks/voice/status",
        api_base_url=settings.twilio_api_base_url,
    )


def get_ivr_session(request: Request) -> IvrSessionManager:
    """Get the application's IVR session manager."""
    manager = getattr(request.app.state, "ivr_session", None)
    if manager is None:
        raise HTTPException(status_code=503, detail="IVR session is not running")
    return manager


def get_ivr_script(request: Request) -> IvrScript:
    """Get the script of the running IVR session, or load it from settings."""
    manager = getattr(request.app.state, "ivr_session", None)
    if manager is not None:
        return manager.machine.script
    return load_script(settings.ivr_script_file)
