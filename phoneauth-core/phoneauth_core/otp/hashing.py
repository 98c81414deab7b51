"""
OTP Hashing Utilities
=====================
Code generation plus salted hashing for stored challenges.
"""

import secrets
import hashlib
import hmac
from typing import Optional

CODE_LENGTH = 6


def generate_otp(length: int = CODE_LENGTH) -> str:
    """
    Generate a secure random numeric code.

    Args:
        length: Number of digits

    Returns:
        Zero-padded code string
    """
    return str(secrets.randbelow(10 ** length)).zfill(length)


def hash_otp(otp: str, salt: str, secret: Optional[str] = None) -> str:
    """
    Hash a code with salt using SHA-256.

    Args:
        otp: Plain code
        salt: Random salt
        secret: Server secret; when given the hash is an HMAC keyed with it

    Returns:
        Hex digest
    """
    message = f"{salt}:{otp}".encode()
    if secret:
        return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()
    return hashlib.sha256(message).hexdigest()


def verify_otp_hash(otp: str, salt: str, stored_hash: str, secret: Optional[str] = None) -> bool:
    """
    Verify a code against its hash.

    Uses constant-time comparison to prevent timing attacks.
    """
    computed_hash = hash_otp(otp, salt, secret)
    return hmac.compare_digest(computed_hash, stored_hash)


def generate_salt() -> str:
    """Generate a random salt for code hashing."""
    return secrets.token_hex(16)
