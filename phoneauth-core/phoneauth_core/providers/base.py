"""
SMS Provider Base
=================
Base class for SMS provider clients.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional
import structlog

logger = structlog.get_logger(__name__)


@dataclass
class SendReceipt:
    """Provider acknowledgement of an accepted message."""
    provider_message_id: str
    status: str = "queued"
    raw_response: Optional[Dict[str, Any]] = None


class SMSProvider(ABC):
    """
    Abstract base class for SMS provider clients.

    Implementations raise ProviderError subclasses on failure; translating
    them for users is the delivery adapter's job.
    """

    name: str = "base"

    async def initialize(self) -> None:
        """Initialize the provider (e.g., create HTTP clients)."""
        logger.info("sms_provider_initialized", provider=self.name)

    async def close(self) -> None:
        """Clean up resources (e.g., close HTTP clients)."""
        logger.info("sms_provider_closed", provider=self.name)

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> SendReceipt:
        """
        Send an SMS message.

        Args:
            to: Recipient phone number (E.164 format)
            body: Message content

        Returns:
            SendReceipt for the accepted message

        Raises:
            ProviderError: On any provider or transport failure
        """
