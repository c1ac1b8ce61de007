"""IVR session endpoints used by the phone UI."""
import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.core.dependencies import get_ivr_session
from app.services.call_session.manager import IvrSessionManager
from app.services.call_session.models import SessionSnapshot
from app.services.ivr.constants import KEYPAD_DIGITS

router = APIRouter(prefix="/api/session")
logger = logging.getLogger(__name__)


class TargetNumberRequest(BaseModel):
    """Target number update request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    target_number: str


class DigitRequest(BaseModel):
    """Keypad press request."""

    digit: str = Field(pattern=f"^[{KEYPAD_DIGITS}]$")


@router.get("", response_model=SessionSnapshot)
async def get_session(manager: IvrSessionManager = Depends(get_ivr_session)):
    """Get the current call state, log and prompt."""
    return manager.snapshot()


@router.put("/target", response_model=SessionSnapshot)
async def set_target_number(
    body: TargetNumberRequest,
    manager: IvrSessionManager = Depends(get_ivr_session),
):
    """Set the number to dial."""
    manager.set_target_number(body.target_number)
    return manager.snapshot()


@router.post("/initiate", response_model=SessionSnapshot)
async def initiate(manager: IvrSessionManager = Depends(get_ivr_session)):
    """Start dialing the target number."""
    logger.info(f"[SESSION] Initiate requested - Target: '{manager.session.target_number}'")
    manager.initiate()
    return manager.snapshot()


@router.post("/answer", response_model=SessionSnapshot)
async def answer(manager: IvrSessionManager = Depends(get_ivr_session)):
    """Answer the ringing phone."""
    manager.answer()
    return manager.snapshot()


@router.post("/hangup", response_model=SessionSnapshot)
async def hang_up(manager: IvrSessionManager = Depends(get_ivr_session)):
    """Hang up the call."""
    logger.info(f"[SESSION] Hang up requested in state {manager.session.state.value}")
    manager.hang_up()
    return manager.snapshot()


@router.post("/digits", response_model=SessionSnapshot)
async def send_digit(
    body: DigitRequest,
    manager: IvrSessionManager = Depends(get_ivr_session),
):
    """Send a keypad digit to the call."""
    manager.send_digit(body.digit)
    return manager.snapshot()


@router.get("/announcement")
async def get_announcement(manager: IvrSessionManager = Depends(get_ivr_session)):
    """Get the most recently synthesized announcement as MP3."""
    clip = getattr(manager.voice, "last_clip", None)
    if not clip:
        raise HTTPException(status_code=404, detail="No synthesized announcement available")
    return Response(content=clip, media_type="audio/mpeg")
