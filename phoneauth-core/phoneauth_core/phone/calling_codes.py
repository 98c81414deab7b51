"""
Calling Codes
=============
Country calling code lookups backed by the libphonenumber metadata.
"""

from typing import Optional

import phonenumbers

# Region code libphonenumber uses for non-geographic numbering plans
NON_GEOGRAPHIC_REGION = "001"


def is_known_calling_code(calling_code: str) -> bool:
    """True if ``calling_code`` (e.g. "44") is an assigned country calling code."""
    if not calling_code or not calling_code.isdigit():
        return False
    return int(calling_code) in phonenumbers.COUNTRY_CODE_TO_REGION_CODE


def region_for_calling_code(calling_code: str) -> Optional[str]:
    """
    Main region for a calling code, used to parse national-format input.

    Returns:
        ISO region code (e.g. "US" for "1"), or None for unknown and
        non-geographic calling codes
    """
    if not is_known_calling_code(calling_code):
        return None
    region = phonenumbers.region_code_for_country_code(int(calling_code))
    if region in (phonenumbers.UNKNOWN_REGION, NON_GEOGRAPHIC_REGION):
        return None
    return region
