"""
SMS Delivery
============
Production delivery through an SMS provider.

This is the only place provider exceptions are handled. Every failure is
mapped to a DeliveryFailure and a fixed user message. The code never
appears in logs written here.
"""

import asyncio
import time
from typing import Optional
import structlog

from .. import metrics
from ..phone import PhoneNumber
from ..providers import (
    ProviderAuthError,
    ProviderRejectedError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    SMSProvider,
)
from .base import OTP_MESSAGE_TEMPLATE, OTPDelivery
from .models import DeliveryFailure, DeliveryMode, DeliveryResult

logger = structlog.get_logger(__name__)


def classify_failure(exc: BaseException) -> DeliveryFailure:
    """Map a provider or transport exception to a failure cause."""
    if isinstance(exc, (ProviderTimeoutError, asyncio.TimeoutError)):
        return DeliveryFailure.TIMEOUT
    if isinstance(exc, ProviderUnavailableError):
        return DeliveryFailure.UNAVAILABLE
    if isinstance(exc, ProviderAuthError):
        return DeliveryFailure.AUTH
    if isinstance(exc, ProviderRejectedError):
        return DeliveryFailure.REJECTED
    return DeliveryFailure.INTERNAL


class SMSDelivery(OTPDelivery):
    """
    Sends codes by SMS with a bounded timeout.

    No retries are made here; retry policy belongs to the caller.
    """

    mode = DeliveryMode.SMS

    def __init__(
        self,
        provider: SMSProvider,
        timeout: float = 10.0,
        message_template: str = OTP_MESSAGE_TEMPLATE,
    ):
        self.provider = provider
        self.timeout = timeout
        self.message_template = message_template

    async def send(self, phone: PhoneNumber, code: str) -> DeliveryResult:
        body = self.message_template.format(code=code)
        started = time.perf_counter()

        try:
            receipt = await asyncio.wait_for(
                self.provider.send_sms(str(phone), body),
                timeout=self.timeout,
            )
        except Exception as e:
            failure = classify_failure(e)
            metrics.DELIVERY_LATENCY.labels(mode=self.mode.value, outcome=failure.value).observe(
                time.perf_counter() - started
            )
            logger.error(
                "otp_delivery_failed",
                provider=self.provider.name,
                phone=phone.redacted(),
                failure=failure.value,
                error_type=type(e).__name__,
                error=_scrub(str(e), code),
            )
            return DeliveryResult.from_failure(failure)

        metrics.DELIVERY_LATENCY.labels(mode=self.mode.value, outcome="sent").observe(
            time.perf_counter() - started
        )
        logger.info(
            "otp_delivered",
            provider=self.provider.name,
            phone=phone.redacted(),
            message_id=receipt.provider_message_id,
        )
        return DeliveryResult.ok(provider_message_id=receipt.provider_message_id)

    async def close(self) -> None:
        await self.provider.close()


def _scrub(text: Optional[str], code: str) -> str:
    """Remove the code from text bound for logs."""
    if not text:
        return ""
    return text.replace(code, "******") if code else text
