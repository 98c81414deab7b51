"""
Console Delivery
================
Development delivery: writes the code to the operator log.
"""

from datetime import datetime, timezone
import structlog

from ..phone import PhoneNumber
from .base import OTPDelivery
from .models import DeliveryMode, DeliveryResult

# Separate logger so operators can route dev codes on their own
logger = structlog.get_logger("phoneauth.dev_otp")


class ConsoleDelivery(OTPDelivery):
    """Logs phone, code and timestamp instead of sending an SMS."""

    mode = DeliveryMode.CONSOLE

    async def send(self, phone: PhoneNumber, code: str) -> DeliveryResult:
        logger.info(
            "dev_otp_issued",
            phone=str(phone),
            code=code,
            issued_at=datetime.now(timezone.utc).isoformat(),
        )
        return DeliveryResult.ok()
