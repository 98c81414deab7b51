"""
Delivery Base
=============
Foundation class for OTP delivery adapters.
"""

from abc import ABC, abstractmethod

from ..phone import PhoneNumber
from .models import DeliveryMode, DeliveryResult

OTP_MESSAGE_TEMPLATE = "Your verification code is: {code}"


class OTPDelivery(ABC):
    """
    Sends a generated code to a phone.

    Implementations never raise for delivery problems; they return a
    DeliveryResult with a user-safe message.
    """

    mode: DeliveryMode

    @abstractmethod
    async def send(self, phone: PhoneNumber, code: str) -> DeliveryResult:
        """
        Deliver a code.

        Args:
            phone: Normalized recipient
            code: The one-time code

        Returns:
            DeliveryResult
        """

    async def close(self) -> None:
        """Release any resources held by the adapter."""
