"""Outbound call API endpoints."""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.dependencies import get_telephony_provider
from app.db.database import get_db
from app.services.persistence.calls import CallRecordService
from app.services.telephony.provider import TelephonyProvider, TelephonyProviderError

router = APIRouter()
logger = logging.getLogger(__name__)


class CamelModel(BaseModel):
    """Model serialized with camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class InitiateCallRequest(CamelModel):
    """Initiate call request model."""
    target_number: str = ""


class InitiateCallResponse(CamelModel):
    """Initiate call response model."""
    success: bool
    simulation: bool = False
    call_uuid: Optional[str] = None
    error: Optional[str] = None


class CallRecordResponse(CamelModel):
    """Call record response model."""
    call_uuid: str
    target_number: str
    status: str
    simulated: bool
    error: Optional[str] = None
    created_at: str
    updated_at: str


def _to_response(call) -> CallRecordResponse:
    return CallRecordResponse(
        call_uuid=call.call_uuid,
        target_number=call.target_number,
        status=call.status,
        simulated=call.simulated,
        error=call.error,
        created_at=call.created_at.isoformat() if call.created_at else "",
        updated_at=call.updated_at.isoformat() if call.updated_at else "",
    )


def _failure(status_code: int, error: str) -> JSONResponse:
    body = InitiateCallResponse(success=False, error=error)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.post(
    "/calls/initiate",
    response_model=InitiateCallResponse,
    response_model_exclude_none=True,
)
async def initiate_call(
    request: Request,
    body: InitiateCallRequest,
    db: AsyncSession = Depends(get_db),
    provider: TelephonyProvider = Depends(get_telephony_provider),
):
    """Place an outbound call and record it."""
    target_number = body.target_number.strip()
    logger.info(
        f"[CALLS] Initiate request - Target: '{target_number}', "
        f"Client: {request.client.host if request.client else 'unknown'}"
    )

    if not target_number:
        logger.warning("[CALLS] Rejected initiate request without target number")
        return _failure(400, "Target number is required")

    try:
        placed = await provider.place_call(target_number)
    except TelephonyProviderError as e:
        logger.error(
            f"[CALLS] Provider failed to place call - Target: {target_number}, Error: {str(e)}"
        )
        return _failure(502, str(e))
    except Exception as e:
        logger.error(
            f"[CALLS] Error placing call - Target: {target_number}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        return _failure(500, f"Error placing call: {str(e)}")

    service = CallRecordService(db)
    await service.create_call(
        placed.call_uuid,
        target_number,
        status=placed.status,
        simulated=placed.simulated,
    )
    logger.info(
        f"[CALLS] Call placed - UUID: {placed.call_uuid}, Simulated: {placed.simulated}"
    )
    return InitiateCallResponse(
        success=True,
        simulation=placed.simulated,
        call_uuid=placed.call_uuid,
    )


@router.get("/calls", response_model=List[CallRecordResponse])
async def list_calls(
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
):
    """List call records, newest first."""
    try:
        calls = await CallRecordService(db).list_calls(limit=limit)
    except Exception as e:
        logger.error(
            f"[CALLS] Error listing calls - limit: {limit}, "
            f"Error: {type(e).__name__}: {str(e)}",
            exc_info=True,
        )
        raise HTTPException(status_code=500, detail=f"Error listing calls: {str(e)}")
    logger.info(f"[CALLS] Listed {len(calls)} call records")
    return [_to_response(call) for call in calls]


@router.get("/calls/{call_uuid}", response_model=CallRecordResponse)
async def get_call(
    call_uuid: str,
    db: AsyncSession = Depends(get_db),
):
    """Get a single call record."""
    call = await CallRecordService(db).get_call(call_uuid)
    if not call:
        raise HTTPException(status_code=404, detail=f"Call '{call_uuid}' not found")
    return _to_response(call)
