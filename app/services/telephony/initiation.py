"""Call initiation adapters used by the call session."""
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)

INITIATE_PATH = "/calls/initiate"


class InitiationOutcome(BaseModel):
    """Result of an outbound call request."""

    ok: bool
    simulated: bool = False
    call_id: Optional[str] = None
    error: Optional[str] = None


class CallInitiationAdapter(ABC):
    """Submits outbound call requests on behalf of the call session."""

    @abstractmethod
    async def initiate(self, number: str) -> InitiationOutcome:
        """Request an outbound call. Failures are returned, not raised."""
        pass

    async def aclose(self) -> None:
        """Release any held resources."""
        pass


class HttpCallInitiationAdapter(CallInitiationAdapter):
    """Posts `{targetNumber}` to the call API's initiate endpoint."""

    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 30.0,
    ):
        self.client = httpx.AsyncClient(
            base_url=base_url,
            transport=transport,
            timeout=timeout,
        )

    async def initiate(self, number: str) -> InitiationOutcome:
        try:
            response = await self.client.post(INITIATE_PATH, json={"targetNumber": number})
        except httpx.HTTPError as e:
            logger.error(
                f"[CALL INITIATION] Request failed - Error: {type(e).__name__}: {str(e)}"
            )
            return InitiationOutcome(ok=False, error=str(e) or type(e).__name__)

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            return InitiationOutcome(
                ok=False, error=f"Unexpected response (HTTP {response.status_code})"
            )

        if data.get("success"):
            return InitiationOutcome(
                ok=True,
                simulated=bool(data.get("simulation")),
                call_id=data.get("callUuid"),
            )
        return InitiationOutcome(ok=False, error=data.get("error"))

    async def aclose(self) -> None:
        await self.client.aclose()
