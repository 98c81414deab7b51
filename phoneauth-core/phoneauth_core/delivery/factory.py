"""
Delivery Factory
================
Builds the delivery adapter selected by configuration.
"""

from typing import Optional
import structlog

from ..config import ConfigurationError, Settings
from ..providers import SMSProvider, TwilioSMSProvider
from .base import OTPDelivery
from .console import ConsoleDelivery
from .models import DeliveryMode
from .sms import SMSDelivery

logger = structlog.get_logger(__name__)


def build_delivery(settings: Settings, provider: Optional[SMSProvider] = None) -> OTPDelivery:
    """
    Build the delivery adapter for the configured mode.

    Args:
        settings: Loaded settings; the mode is fixed at load time
        provider: SMS provider override (defaults to Twilio from settings)

    Returns:
        ConsoleDelivery or SMSDelivery
    """
    mode = settings.delivery_mode

    if mode is DeliveryMode.CONSOLE:
        if settings.is_production:
            raise ConfigurationError("Console OTP delivery is not allowed in production")
        logger.info("otp_delivery_configured", mode=mode.value)
        return ConsoleDelivery()

    if provider is None:
        if not settings.twilio_account_sid or not settings.twilio_auth_token:
            raise ConfigurationError("SMS delivery requires Twilio credentials")
        provider = TwilioSMSProvider(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            messaging_service_sid=settings.twilio_messaging_service_sid,
            timeout=settings.sms_timeout_seconds,
        )

    logger.info("otp_delivery_configured", mode=mode.value, provider=provider.name)
    return SMSDelivery(provider, timeout=settings.sms_timeout_seconds)
