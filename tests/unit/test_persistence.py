"""Unit tests for call record persistence."""
import pytest

from app.services.persistence.calls import CallRecordService


class TestCallRecordService:
    """Test call record persistence service."""

    @pytest.mark.asyncio
    async def test_create_call(self, test_db):
        """Test creating a new call record."""
        service = CallRecordService(test_db)

        call = await service.create_call("sim-abc", "+15551234567", simulated=True)

        assert call.id is not None
        assert call.call_uuid == "sim-abc"
        assert call.target_number == "+15551234567"
        assert call.status == "initiated"
        assert call.simulated is True
        assert call.created_at is not None
        assert call.updated_at == call.created_at

    @pytest.mark.asyncio
    async def test_get_call(self, test_db):
        """Test retrieving a call by UUID."""
        service = CallRecordService(test_db)
        created = await service.create_call("CA1", "+15551234567", status="queued")

        retrieved = await service.get_call("CA1")

        assert retrieved is not None
        assert retrieved.id == created.id
        assert retrieved.status == "queued"

    @pytest.mark.asyncio
    async def test_get_missing_call(self, test_db):
        service = CallRecordService(test_db)

        assert await service.get_call("missing") is None

    @pytest.mark.asyncio
    async def test_create_call_idempotent(self, test_db):
        """Test that creating the same call twice returns the existing record."""
        service = CallRecordService(test_db)

        call1 = await service.create_call("CA2", "+15551234567")
        call2 = await service.create_call("CA2", "+15559999999")

        assert call1.id == call2.id
        assert call2.target_number == "+15551234567"

    @pytest.mark.asyncio
    async def test_update_call_status(self, test_db):
        """Test updating call status refreshes the update timestamp."""
        service = CallRecordService(test_db)
        call = await service.create_call("CA3", "+15551234567", status="queued")
        created_at = call.created_at

        updated = await service.update_call("CA3", status="completed")

        assert updated.status == "completed"
        assert updated.created_at == created_at
        assert updated.updated_at >= created_at

    @pytest.mark.asyncio
    async def test_update_call_error(self, test_db):
        service = CallRecordService(test_db)
        await service.create_call("CA4", "+15551234567")

        updated = await service.update_call("CA4", status="failed", error="busy")

        assert updated.error == "busy"

    @pytest.mark.asyncio
    async def test_update_missing_call(self, test_db):
        service = CallRecordService(test_db)

        assert await service.update_call("missing", status="completed") is None

    @pytest.mark.asyncio
    async def test_update_immutable_field_rejected(self, test_db):
        service = CallRecordService(test_db)
        await service.create_call("CA5", "+15551234567")

        with pytest.raises(ValueError):
            await service.update_call("CA5", call_uuid="CA6")

        with pytest.raises(ValueError):
            await service.update_call("CA5", created_at=None)

        with pytest.raises(ValueError):
            await service.update_call("CA5", transcript="hello")

        assert await service.get_call("CA6") is None
        assert (await service.get_call("CA5")).created_at is not None

    @pytest.mark.asyncio
    async def test_list_calls_newest_first(self, test_db):
        """Test listing returns newest records first, honoring the limit."""
        service = CallRecordService(test_db)
        for i in range(3):
            await service.create_call(f"CA-list-{i}", "+15551234567")

        calls = await service.list_calls()
        limited = await service.list_calls(limit=2)

        assert [c.call_uuid for c in calls] == ["CA-list-2", "CA-list-1", "CA-list-0"]
        assert len(limited) == 2
