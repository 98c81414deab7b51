"""
Verification Policy
===================
Pre-check and attempt accounting for code verification.

Per phone the flow moves NoChallenge -> Sent -> Verified | Expired, and
Sent -> Locked once the failed-attempt budget is spent. Locked clears when
the attempt window resets or a new code is sent.
"""

import re
from typing import Optional, Protocol
import structlog

from ..errors import ErrorKind
from ..otp import ChallengeStatus, CODE_LENGTH
from ..phone import PhoneNumber
from ..rate_limit import LimitRule, RateLimiter, RateLimitScope, limit_key
from .models import SessionGrant, VerifyDecision

logger = structlog.get_logger(__name__)

# ASCII digits only; \d would also accept other Unicode digits
CODE_PATTERN = re.compile(rf"[0-9]{{{CODE_LENGTH}}}")

_STATUS_ERRORS = {
    ChallengeStatus.INVALID_CODE: ErrorKind.INVALID_CODE,
    ChallengeStatus.EXPIRED: ErrorKind.EXPIRED_CODE,
    ChallengeStatus.NOT_FOUND: ErrorKind.CHALLENGE_NOT_FOUND,
    ChallengeStatus.LOCKED: ErrorKind.TOO_MANY_ATTEMPTS,
}


class SessionIssuer(Protocol):
    """Mints a session once a phone is verified."""

    async def issue(self, phone: PhoneNumber) -> SessionGrant:
        ...


def is_valid_code_format(code) -> bool:
    """True for exactly six ASCII digits."""
    return isinstance(code, str) and CODE_PATTERN.fullmatch(code) is not None


def outcome_for(status: ChallengeStatus) -> Optional[ErrorKind]:
    """Map a comparison outcome to an error kind (None on success)."""
    return _STATUS_ERRORS.get(status)


class VerificationPolicy:
    """Enforces code format and the per-phone failed-attempt budget."""

    def __init__(self, limiter: RateLimiter, rule: Optional[LimitRule] = None):
        self.limiter = limiter
        self.rule = rule or LimitRule(10, 60)

    def _key(self, phone: PhoneNumber) -> str:
        return limit_key(RateLimitScope.VERIFY, str(phone))

    def precheck(self, phone: PhoneNumber, code) -> VerifyDecision:
        """
        Decide whether a submitted code may be compared, and claim an attempt.

        Format failures return before the attempt counter is touched, so they
        never consume budget. Otherwise one attempt is counted here, in the
        same locked step as the budget check, so concurrent requests cannot
        all pass on a stale count. A verified code clears the counter again.
        """
        if not is_valid_code_format(code):
            return VerifyDecision(allowed=False, kind=ErrorKind.INVALID_CODE_FORMAT)

        decision = self.limiter.check_and_consume(
            self._key(phone), self.rule.limit, self.rule.window_seconds
        )
        if not decision.allowed:
            logger.warning("otp_verify_locked", phone=phone.redacted())
            return VerifyDecision(
                allowed=False,
                kind=ErrorKind.TOO_MANY_ATTEMPTS,
                retry_after_seconds=decision.retry_after_seconds,
            )
        return VerifyDecision(allowed=True)

    def record_success(self, phone: PhoneNumber) -> None:
        """Clear the attempt counter after a verified code."""
        self.reset(phone)

    def reset(self, phone: PhoneNumber) -> None:
        self.limiter.reset(self._key(phone))

    def failed_attempts(self, phone: PhoneNumber) -> int:
        """Attempts counted in the current window (verified codes clear it)."""
        entry = self.limiter.get(self._key(phone))
        return entry.count if entry is not None else 0
