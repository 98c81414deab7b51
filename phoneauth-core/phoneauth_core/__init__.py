"""
PhoneAuth Core
==============
Phone-number OTP sign-in: normalization, rate limiting, delivery and
verification policy.
"""

__version__ = "0.1.0"

# Phone
from phoneauth_core.phone import (
    InvalidPhoneFormat,
    PhoneNumber,
    normalize_phone,
    validate_e164,
    mask_phone,
)

# Rate Limiting
from phoneauth_core.rate_limit import (
    RateLimiter,
    RateLimitDecision,
    RateLimitEntry,
    RateLimitPolicy,
    RateLimitScope,
    LimitRule,
    DenyReason,
)

# Delivery
from phoneauth_core.delivery import (
    DeliveryMode,
    DeliveryFailure,
    DeliveryResult,
    OTPDelivery,
    ConsoleDelivery,
    SMSDelivery,
)
from phoneauth_core.delivery.factory import build_delivery

# Providers
from phoneauth_core.providers import (
    SMSProvider,
    TwilioSMSProvider,
    ProviderError,
)

# OTP
from phoneauth_core.otp import (
    ChallengeStatus,
    ChallengeStore,
    InMemoryChallengeStore,
    generate_otp,
)

# Verification
from phoneauth_core.verification import (
    SessionGrant,
    SessionIssuer,
    VerificationPolicy,
    VerifyDecision,
    VerifyResult,
)

# Errors
from phoneauth_core.errors import (
    ErrorKind,
    user_message,
    http_status,
    to_http_exception,
    to_error_response,
)

# Config
from phoneauth_core.config import Settings, ConfigurationError

# Service
from phoneauth_core.request_context import RequestContext, client_ip_from_headers
from phoneauth_core.service import OTPAuthService
from phoneauth_core.api import create_otp_router

# Logging
from phoneauth_core.logging_config import setup_logging

__all__ = [
    # Phone
    "InvalidPhoneFormat",
    "PhoneNumber",
    "normalize_phone",
    "validate_e164",
    "mask_phone",
    # Rate Limiting
    "RateLimiter",
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimitPolicy",
    "RateLimitScope",
    "LimitRule",
    "DenyReason",
    # Delivery
    "DeliveryMode",
    "DeliveryFailure",
    "DeliveryResult",
    "OTPDelivery",
    "ConsoleDelivery",
    "SMSDelivery",
    "build_delivery",
    # Providers
    "SMSProvider",
    "TwilioSMSProvider",
    "ProviderError",
    # OTP
    "ChallengeStatus",
    "ChallengeStore",
    "InMemoryChallengeStore",
    "generate_otp",
    # Verification
    "SessionGrant",
    "SessionIssuer",
    "VerificationPolicy",
    "VerifyDecision",
    "VerifyResult",
    # Errors
    "ErrorKind",
    "user_message",
    "http_status",
    "to_http_exception",
    "to_error_response",
    # Config
    "Settings",
    "ConfigurationError",
    # Service
    "RequestContext",
    "client_ip_from_headers",
    "OTPAuthService",
    "create_otp_router",
    # Logging
    "setup_logging",
]
