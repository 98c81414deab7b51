"""
Rate Limit Models
=================
Data models for rate limiting entries and decisions.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum


class DenyReason(str, Enum):
    """Why a rate limit check was denied."""
    RATE_LIMITED = "rate_limited"
    COOLDOWN = "cooldown"


class RateLimitScope(str, Enum):
    """Keyspaces the OTP flow limits on."""
    PHONE = "phone"
    PHONE_DAILY = "phone-daily"
    IP = "ip"
    VERIFY = "verify"


@dataclass
class RateLimitEntry:
    """Counter state for one key."""
    key: str
    count: int
    window_reset_at: float  # Unix timestamp
    last_sent_at: Optional[float] = None
    cooldown_seconds: Optional[float] = None

    def is_inert(self, now: float) -> bool:
        """True once the window has passed and no cooldown is pending."""
        if now < self.window_reset_at:
            return False
        if self.cooldown_seconds and self.last_sent_at is not None:
            return now - self.last_sent_at >= self.cooldown_seconds
        return True


@dataclass
class RateLimitDecision:
    """Rate limit check result."""
    allowed: bool
    key: str
    limit: int
    remaining: int
    reason: Optional[DenyReason] = None
    retry_after_seconds: Optional[int] = None  # Seconds until retry allowed

    @classmethod
    def allow(cls, key: str, limit: int, remaining: int) -> "RateLimitDecision":
        return cls(allowed=True, key=key, limit=limit, remaining=remaining)

    @classmethod
    def deny(
        cls,
        key: str,
        limit: int,
        reason: DenyReason,
        retry_after_seconds: Optional[int] = None,
    ) -> "RateLimitDecision":
        return cls(
            allowed=False,
            key=key,
            limit=limit,
            remaining=0,
            reason=reason,
            retry_after_seconds=retry_after_seconds,
        )
