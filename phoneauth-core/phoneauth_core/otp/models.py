"""
OTP Models
==========
Stored challenge and comparison outcomes.
"""

from dataclasses import dataclass
from enum import Enum


class ChallengeStatus(str, Enum):
    """Outcome of comparing a submitted code to the stored challenge."""
    VERIFIED = "verified"
    INVALID_CODE = "invalid_code"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    LOCKED = "locked"


@dataclass
class OTPChallenge:
    """A pending code for one phone. Only the hash is kept."""
    phone: str
    code_hash: str
    salt: str
    expires_at: float  # Unix timestamp
    created_at: float
    attempts: int = 0
    max_attempts: int = 3

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.max_attempts - self.attempts)
