"""
OTP Codes and Challenges
========================
Code generation, hashing and the challenge store contract.
"""

from .models import ChallengeStatus, OTPChallenge
from .hashing import CODE_LENGTH, generate_otp, hash_otp, verify_otp_hash, generate_salt
from .store import ChallengeStore, InMemoryChallengeStore

__all__ = [
    # Models
    "ChallengeStatus",
    "OTPChallenge",
    # Hashing
    "CODE_LENGTH",
    "generate_otp",
    "hash_otp",
    "verify_otp_hash",
    "generate_salt",
    # Store
    "ChallengeStore",
    "InMemoryChallengeStore",
]
