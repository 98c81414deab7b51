"""
Phone Normalizer
================
Parses free-form phone input into canonical E.164 form.

Character and length checks run first; country and number-length rules come
from the libphonenumber metadata (``phonenumbers``).
"""

import re
from dataclasses import dataclass
from typing import Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneNumberFormat

from .calling_codes import region_for_calling_code
from .redaction import mask_phone

E164_PATTERN = re.compile(r"^\+[1-9]\d{7,14}$")

# Digits plus the separators people actually type
_ALLOWED_INPUT = re.compile(r"^\+?[0-9 ().\-]+$")

MAX_INPUT_LENGTH = 32
MIN_DIGITS = 8
MAX_DIGITS = 15


class InvalidPhoneFormat(ValueError):
    """Raised when input cannot be normalized to a valid E.164 number."""


@dataclass(frozen=True)
class PhoneNumber:
    """A phone number in canonical E.164 form."""
    e164: str
    calling_code: str

    @property
    def national_number(self) -> str:
        return self.e164[1 + len(self.calling_code):]

    def redacted(self) -> str:
        return mask_phone(self.e164)

    def __str__(self) -> str:
        return self.e164


def validate_e164(phone: str) -> bool:
    """
    Validate E.164 phone number format.

    Args:
        phone: Phone number

    Returns:
        True if valid E.164 format
    """
    return isinstance(phone, str) and bool(E164_PATTERN.match(phone))


def _parse(text: str, region: Optional[str]) -> Optional[PhoneNumber]:
    try:
        parsed = phonenumbers.parse(text, region)
    except NumberParseException:
        return None

    if not phonenumbers.is_possible_number(parsed) or not phonenumbers.is_valid_number(parsed):
        return None

    e164 = phonenumbers.format_number(parsed, PhoneNumberFormat.E164)
    if not E164_PATTERN.match(e164):
        return None
    return PhoneNumber(e164=e164, calling_code=str(parsed.country_code))


def normalize_phone(value, default_country: Optional[str] = None) -> PhoneNumber:
    """
    Normalize a phone number to E.164 format.

    Accepts digits, ``+``, spaces, parentheses, dots and hyphens. The calling
    code comes from an explicit ``+`` (or ``00``) prefix, or from bare digits
    that start with a calling code.

    Args:
        value: Raw phone number as typed by the user
        default_country: Calling code (e.g. "1") assumed for national-format
            input; disabled when None

    Returns:
        PhoneNumber in canonical form

    Raises:
        InvalidPhoneFormat: If the input is empty, contains non-phone
            characters, or is not a valid number for its country
    """
    if isinstance(value, PhoneNumber):
        return value
    if not isinstance(value, str):
        raise InvalidPhoneFormat("Phone number must be a string")

    raw = value.strip()
    if not raw:
        raise InvalidPhoneFormat("Phone number is empty")
    if len(raw) > MAX_INPUT_LENGTH:
        raise InvalidPhoneFormat("Phone number is too long")
    if not _ALLOWED_INPUT.match(raw):
        raise InvalidPhoneFormat("Phone number contains invalid characters")

    digits = re.sub(r"\D", "", raw)
    international = raw.startswith("+")
    if not international and digits.startswith("00"):
        digits = digits[2:]
        international = True

    if not international and default_country:
        region = region_for_calling_code(default_country)
        if region is None:
            raise InvalidPhoneFormat(f"Unknown default calling code: {default_country}")
        phone = _parse(digits, region)
        if phone is not None:
            return phone

    if not MIN_DIGITS <= len(digits) <= MAX_DIGITS:
        raise InvalidPhoneFormat("Phone number has the wrong number of digits")

    phone = _parse(f"+{digits}", None)
    if phone is None:
        raise InvalidPhoneFormat("Phone number is not valid for its country code")
    return phone
