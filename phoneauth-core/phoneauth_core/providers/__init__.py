"""
SMS Providers
=============
Provider clients used by the SMS delivery adapter.
"""

from .base import SMSProvider, SendReceipt
from .exceptions import (
    ProviderError,
    ProviderUnavailableError,
    ProviderTimeoutError,
    ProviderAuthError,
    ProviderRejectedError,
)
from .twilio import TwilioSMSProvider

__all__ = [
    "SMSProvider",
    "SendReceipt",
    "ProviderError",
    "ProviderUnavailableError",
    "ProviderTimeoutError",
    "ProviderAuthError",
    "ProviderRejectedError",
    "TwilioSMSProvider",
]
