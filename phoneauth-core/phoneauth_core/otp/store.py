"""
Challenge Store
===============
Storage and comparison of issued codes.

Production hosts usually delegate this to their auth library; the
in-memory store implements the same contract for single-process services
and tests.
"""

import threading
import time
from typing import Callable, Dict, Optional, Protocol
import structlog

from ..phone import mask_phone
from .hashing import generate_salt, hash_otp, verify_otp_hash
from .models import ChallengeStatus, OTPChallenge

logger = structlog.get_logger(__name__)


class ChallengeStore(Protocol):
    """Contract for whatever stores issued codes."""

    async def save(self, phone: str, code: str) -> OTPChallenge:
        ...

    async def verify(self, phone: str, code: str) -> ChallengeStatus:
        ...


class InMemoryChallengeStore:
    """
    Process-local challenge store.

    One live challenge per phone; saving a new code replaces the old one.
    A verified challenge is deleted so the code cannot be replayed.
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        max_attempts: int = 3,
        secret: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_attempts = max_attempts
        self._secret = secret
        self._clock = clock
        self._challenges: Dict[str, OTPChallenge] = {}
        self._lock = threading.Lock()

    async def save(self, phone: str, code: str) -> OTPChallenge:
        now = self._clock()
        salt = generate_salt()
        challenge = OTPChallenge(
            phone=phone,
            code_hash=hash_otp(code, salt, self._secret),
            salt=salt,
            expires_at=now + self.ttl_seconds,
            created_at=now,
            max_attempts=self.max_attempts,
        )
        with self._lock:
            self._challenges[phone] = challenge

        logger.info("otp_challenge_created", phone=mask_phone(phone), expires_in=self.ttl_seconds)
        return challenge

    async def verify(self, phone: str, code: str) -> ChallengeStatus:
        with self._lock:
            challenge = self._challenges.get(phone)
            if challenge is None:
                return ChallengeStatus.NOT_FOUND

            if challenge.is_expired(self._clock()):
                del self._challenges[phone]
                return ChallengeStatus.EXPIRED

            if challenge.attempts >= challenge.max_attempts:
                del self._challenges[phone]
                return ChallengeStatus.LOCKED

            challenge.attempts += 1
            if verify_otp_hash(code, challenge.salt, challenge.code_hash, self._secret):
                del self._challenges[phone]
                return ChallengeStatus.VERIFIED

            remaining = challenge.attempts_remaining

        logger.warning("otp_code_mismatch", phone=mask_phone(phone), remaining=remaining)
        return ChallengeStatus.INVALID_CODE

    def get(self, phone: str) -> Optional[OTPChallenge]:
        return self._challenges.get(phone)

    def purge_expired(self) -> int:
        """Drop expired challenges. Returns the number removed."""
        with self._lock:
            now = self._clock()
            expired = [phone for phone, c in self._challenges.items() if c.is_expired(now)]
            for phone in expired:
                del self._challenges[phone]
        return len(expired)
