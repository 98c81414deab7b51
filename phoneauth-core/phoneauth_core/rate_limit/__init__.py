"""
Rate Limiting Module
====================
Fixed window rate limiting with cooldown for the OTP flow.
"""

from .models import DenyReason, RateLimitDecision, RateLimitEntry, RateLimitScope
from .in_memory import RateLimiter
from .policy import LimitRule, RateLimitPolicy, limit_key

__all__ = [
    # Models
    "DenyReason",
    "RateLimitDecision",
    "RateLimitEntry",
    "RateLimitScope",
    # Limiter
    "RateLimiter",
    # Policy
    "LimitRule",
    "RateLimitPolicy",
    "limit_key",
]
