"""
Rate Limit Policy
=================
Named limits for the send and verify flows.
"""

from dataclasses import dataclass, field
from typing import Optional

from .models import RateLimitScope


@dataclass(frozen=True)
class LimitRule:
    """One limit: ``limit`` requests per ``window_seconds``, optional cooldown."""
    limit: int
    window_seconds: float
    cooldown_seconds: Optional[float] = None

    def __post_init__(self):
        if self.limit <= 0:
            raise ValueError(f"Limit must be positive, got {self.limit}")
        if self.window_seconds <= 0:
            raise ValueError(f"Window must be positive, got {self.window_seconds}")
        if self.cooldown_seconds is not None and self.cooldown_seconds < 0:
            raise ValueError(f"Cooldown must not be negative, got {self.cooldown_seconds}")


@dataclass(frozen=True)
class RateLimitPolicy:
    """Limits for the OTP flow. Phone is stricter than IP."""
    phone: LimitRule = field(default_factory=lambda: LimitRule(5, 60, cooldown_seconds=60))
    phone_daily: LimitRule = field(default_factory=lambda: LimitRule(20, 24 * 60 * 60))
    ip: LimitRule = field(default_factory=lambda: LimitRule(30, 60))
    verify: LimitRule = field(default_factory=lambda: LimitRule(10, 60))


def limit_key(scope: RateLimitScope, identifier: str) -> str:
    """Generate a rate limit key, e.g. ``phone:+14155550100``."""
    return f"{scope.value}:{identifier}"
