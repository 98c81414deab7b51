"""
Twilio SMS Provider
===================
Production client for the Twilio Messages API.
"""

import httpx
from typing import Optional
from base64 import b64encode
import structlog

from .base import SMSProvider, SendReceipt
from .exceptions import (
    ProviderAuthError,
    ProviderError,
    ProviderRejectedError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)

logger = structlog.get_logger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class TwilioSMSProvider(SMSProvider):
    """
    Twilio SMS provider.

    Sends from ``from_number`` or, when set, a Messaging Service SID.
    The HTTP client is created lazily on first send.
    """

    name = "twilio"

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: Optional[str] = None,
        messaging_service_sid: Optional[str] = None,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not from_number and not messaging_service_sid:
            raise ValueError("Twilio needs a from_number or a messaging_service_sid")
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.timeout = timeout
        self.base_url = f"{TWILIO_API_BASE}/Accounts/{account_sid}"
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def initialize(self) -> None:
        """Create HTTP client with auth."""
        if self._client is None:
            auth = b64encode(f"{self.account_sid}:{self.auth_token}".encode()).decode()
            self._client = httpx.AsyncClient(
                headers={"Authorization": f"Basic {auth}"},
                timeout=self.timeout,
                transport=self._transport,
            )
        await super().initialize()

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
        await super().close()

    async def send_sms(self, to: str, body: str) -> SendReceipt:
        """Send SMS via Twilio."""
        if self._client is None:
            await self.initialize()

        payload = {"To": to, "Body": body}
        if self.messaging_service_sid:
            payload["MessagingServiceSid"] = self.messaging_service_sid
        else:
            payload["From"] = self.from_number

        try:
            response = await self._client.post(f"{self.base_url}/Messages.json", data=payload)
        except httpx.TimeoutException as e:
            raise ProviderTimeoutError("Request timed out", provider=self.name) from e
        except httpx.TransportError as e:
            raise ProviderUnavailableError(
                f"Failed to connect: {type(e).__name__}", provider=self.name
            ) from e

        if response.status_code in (200, 201):
            data = response.json()
            return SendReceipt(
                provider_message_id=data["sid"],
                status=data.get("status", "queued"),
                raw_response=data,
            )

        raise self._map_error(response)

    def _map_error(self, response: httpx.Response) -> ProviderError:
        """Map a non-success Twilio response to a provider exception."""
        status = response.status_code
        try:
            error_data = response.json()
        except ValueError:
            error_data = {}
        details = {
            "twilio_code": error_data.get("code"),
            "more_info": error_data.get("more_info"),
        }

        if status in (401, 403):
            return ProviderAuthError("Credentials rejected", provider=self.name, status_code=status)
        if status == 429 or status >= 500:
            return ProviderUnavailableError(
                "Service unavailable", provider=self.name, status_code=status, details=details
            )
        return ProviderRejectedError(
            "Message rejected", provider=self.name, status_code=status, details=details
        )
