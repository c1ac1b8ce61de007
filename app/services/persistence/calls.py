"""Call record persistence service."""
from datetime import datetime
from typing import Any, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc

from app.db.models import CallRecord


class CallRecordService:
    """Service for persisting outbound call records, keyed by call UUID."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_call(
        self,
        call_uuid: str,
        target_number: str,
        status: str = "initiated",
        simulated: bool = False,
    ) -> CallRecord:
        """Create a new call record or return the existing one."""
        existing_call = await self.get_call(call_uuid)
        if existing_call:
            return existing_call

        now = datetime.utcnow()
        call = CallRecord(
            call_uuid=call_uuid,
            target_number=target_number,
            status=status,
            simulated=simulated,
            created_at=now,
            updated_at=now,
        )
        self.db.add(call)
        await self.db.commit()
        await self.db.refresh(call)
        return call

    async def get_call(self, call_uuid: str) -> Optional[CallRecord]:
        """Get call by UUID."""
        result = await self.db.execute(
            select(CallRecord).where(CallRecord.call_uuid == call_uuid)
        )
        return result.scalar_one_or_none()

    async def update_call(self, call_uuid: str, /, **updates: Any) -> Optional[CallRecord]:
        """Update fields of a call record and refresh its update timestamp."""
        call = await self.get_call(call_uuid)
        if call:
            for field, value in updates.items():
                if not hasattr(CallRecord, field) or field in ("id", "call_uuid", "created_at"):
                    raise ValueError(f"Cannot update call record field '{field}'")
                setattr(call, field, value)
            call.updated_at = datetime.utcnow()
            await self.db.commit()
            await self.db.refresh(call)
        return call

    async def list_calls(self, limit: int = 100) -> List[CallRecord]:
        """List call records, newest first."""
        result = await self.db.execute(
            select(CallRecord)
            .order_by(desc(CallRecord.created_at), desc(CallRecord.id))
            .limit(limit)
        )
        return list(result.scalars().all())
