"""
OTP Delivery
============
Console (development) and SMS (production) delivery adapters.
"""

from .models import DeliveryMode, DeliveryFailure, DeliveryResult
from .base import OTPDelivery, OTP_MESSAGE_TEMPLATE
from .console import ConsoleDelivery
from .sms import SMSDelivery, classify_failure

__all__ = [
    # Models
    "DeliveryMode",
    "DeliveryFailure",
    "DeliveryResult",
    # Adapters
    "OTPDelivery",
    "OTP_MESSAGE_TEMPLATE",
    "ConsoleDelivery",
    "SMSDelivery",
    "classify_failure",
]
