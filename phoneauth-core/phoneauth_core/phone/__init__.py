"""
Phone Numbers
=============
E.164 normalization, validation and redaction.
"""

from .calling_codes import is_known_calling_code, region_for_calling_code
from .normalizer import (
    E164_PATTERN,
    InvalidPhoneFormat,
    PhoneNumber,
    normalize_phone,
    validate_e164,
)
from .redaction import mask_phone, redact_phones_in_text

__all__ = [
    # Calling codes
    "is_known_calling_code",
    "region_for_calling_code",
    # Normalizer
    "E164_PATTERN",
    "InvalidPhoneFormat",
    "PhoneNumber",
    "normalize_phone",
    "validate_e164",
    # Redaction
    "mask_phone",
    "redact_phones_in_text",
]
