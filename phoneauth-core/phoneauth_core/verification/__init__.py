"""
OTP Verification
================
Pre-check, attempt budget and outcome mapping for code verification.
"""

from .models import SessionGrant, VerifyDecision, VerifyResult
from .policy import (
    CODE_PATTERN,
    SessionIssuer,
    VerificationPolicy,
    is_valid_code_format,
    outcome_for,
)

__all__ = [
    "SessionGrant",
    "VerifyDecision",
    "VerifyResult",
    "CODE_PATTERN",
    "SessionIssuer",
    "VerificationPolicy",
    "is_valid_code_format",
    "outcome_for",
]
