"""
Phone Redaction
===============
Masks phone numbers before they reach logs.
"""

import re

PHONE_IN_TEXT = re.compile(r"\+[1-9]\d{7,14}")


def mask_phone(phone: str, visible_suffix: int = 4) -> str:
    """
    Mask the middle of a phone number.

    Keeps the ``+`` and first digit plus the last ``visible_suffix`` digits,
    e.g. ``+14155550100`` becomes ``+1***0100``.
    """
    if not phone:
        return ""
    prefix = phone[:2] if phone.startswith("+") else phone[:1]
    if len(phone) <= len(prefix) + visible_suffix:
        return prefix + "***"
    return f"{prefix}***{phone[-visible_suffix:]}"


def redact_phones_in_text(text: str) -> str:
    """Mask every E.164-looking number inside free text."""
    return PHONE_IN_TEXT.sub(lambda match: mask_phone(match.group()), text)
