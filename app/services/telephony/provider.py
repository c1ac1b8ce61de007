"""Telephony providers for placing outbound calls."""
import logging
import uuid
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class TelephonyProviderError(Exception):
    """Raised when the provider rejects or fails an outbound call request."""


class PlacedCall(BaseModel):
    """An outbound call accepted by a provider."""

    call_uuid: str
    simulated: bool
    status: str


class TelephonyProvider(ABC):
    """Abstract base class for telephony providers."""

    @abstractmethod
    async def place_call(self, number: str) -> PlacedCall:
        """Place an outbound call to `number`.

        Raises:
            TelephonyProviderError: If the call could not be placed
        """
        pass


class SimulatedTelephonyProvider(TelephonyProvider):
    """Provider used when no telephony credentials are configured."""

    async def place_call(self, number: str) -> PlacedCall:
        call_uuid = f"sim-{uuid.uuid4().hex}"
        logger.info(f"[TELEPHONY] Simulated call to {number} - UUID: {call_uuid}")
        return PlacedCall(call_uuid=call_uuid, simulated=True, status="simulated")


class TwilioTelephonyProvider(TelephonyProvider):
    """Places calls through the Twilio REST Calls resource."""

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        answer_url: str,
        status_callback_url: Optional[str] = None,
        api_base_url: str = "https://api.twilio.com/2010-04-01",
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.answer_url = answer_url
        self.status_callback_url = status_callback_url
        self.api_base_url = api_base_url.rstrip("/")
        self._client = client

    async def place_call(self, number: str) -> PlacedCall:
        url = f"{self.api_base_url}/Accounts/{self.account_sid}/Calls.json"
        data = {"To": number, "From": self.from_number, "Url": self.answer_url}
        if self.status_callback_url:
            data["StatusCallback"] = self.status_callback_url

        logger.info(f"[TELEPHONY] Placing Twilio call to {number}")
        try:
            if self._client is not None:
                response = await self._client.post(
                    url, data=data, auth=(self.account_sid, self.auth_token)
                )
            else:
                async with httpx.AsyncClient(timeout=15.0) as client:
                    response = await client.post(
                        url, data=data, auth=(self.account_sid, self.auth_token)
                    )
        except httpx.HTTPError as e:
            raise TelephonyProviderError(
                f"Twilio request failed: {type(e).__name__}: {str(e)}"
            ) from e

        if response.is_error:
            try:
                message = response.json().get("message")
            except ValueError:
                message = None
            raise TelephonyProviderError(
                message or f"Twilio returned HTTP {response.status_code}"
            )

        payload = response.json()
        logger.info(f"[TELEPHONY] Twilio accepted call - SID: {payload.get('sid')}")
        return PlacedCall(
            call_uuid=payload["sid"],
            simulated=False,
            status=payload.get("status") or "queued",
        )
