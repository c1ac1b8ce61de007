"""Twilio voice webhooks for calls placed through the call API."""
import logging
from fastapi import APIRouter, Depends, Form
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_ivr_script
from app.db.database import get_db
from app.services.ivr.script import IvrScript
from app.services.persistence.calls import CallRecordService
from app.services.speech.tts import TextToSpeechService

router = APIRouter()
logger = logging.getLogger(__name__)

# Twilio statuses after which the call will not progress further
FAILED_STATUSES = {"failed", "busy", "no-answer", "canceled"}


@router.post("/voice/answer")
async def handle_answer(
    CallSid: str = Form(""),
    script: IvrScript = Depends(get_ivr_script),
):
    """Speak the language prompt to the callee, then hang up."""
    logger.info(f"[VOICE WEBHOOK] Call answered - CallSid: {CallSid or 'unknown'}")
    twiml = TextToSpeechService.generate_twiml_response(
        script.language_prompt, language=script.language_locale
    )
    return Response(content=twiml, media_type="application/xml")


@router.post("/voice/status")
async def handle_call_status(
    CallSid: str = Form(...),
    CallStatus: str = Form(...),
    db: AsyncSession = Depends(get_db),
):
    """
    Record call progress reported by Twilio.

    Always answers OK, even for unknown calls, so Twilio does not retry.
    """
    logger.info(f"[VOICE WEBHOOK] Status update - CallSid: {CallSid}, CallStatus: {CallStatus}")

    updates = {"status": CallStatus}
    if CallStatus in FAILED_STATUSES:
        updates["error"] = f"Call {CallStatus}"

    try:
        call = await CallRecordService(db).update_call(CallSid, **updates)
    except Exception as e:
        logger.error(
            f"[VOICE WEBHOOK] Could not record status - CallSid: {CallSid}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
    else:
        if call is None:
            logger.warning(f"[VOICE WEBHOOK] No call record for CallSid: {CallSid}")

    return Response(content="OK", media_type="text/plain")
