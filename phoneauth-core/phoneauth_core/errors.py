"""
User-Facing Error Taxonomy
==========================
Fixed error kinds for the OTP flow, with the human message and HTTP status
for each.

CRITICAL: Never expose internal error details to end users. Provider causes
are logged server-side; responses only carry the text below.
"""

from enum import Enum
from typing import Dict, Optional

from fastapi import HTTPException
from fastapi.responses import JSONResponse
import structlog

logger = structlog.get_logger(__name__)


class ErrorKind(str, Enum):
    """Error kinds surfaced by the OTP flow. Values are technical codes."""
    INVALID_PHONE_FORMAT = "INVALID_PHONE_FORMAT"
    MISSING_PHONE = "MISSING_PHONE"
    MISSING_CODE = "MISSING_CODE"
    INVALID_CODE_FORMAT = "INVALID_CODE_FORMAT"
    COOLDOWN_ACTIVE = "COOLDOWN_ACTIVE"
    RATE_LIMITED = "RATE_LIMITED"
    TOO_MANY_ATTEMPTS = "TOO_MANY_ATTEMPTS"
    INVALID_CODE = "INVALID_CODE"
    EXPIRED_CODE = "EXPIRED_CODE"
    CHALLENGE_NOT_FOUND = "CHALLENGE_NOT_FOUND"
    DELIVERY_UNAVAILABLE = "DELIVERY_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


USER_MESSAGES: Dict[ErrorKind, str] = {
    ErrorKind.INVALID_PHONE_FORMAT: (
        "Invalid phone number format. Enter your number with its country code, "
        "for example +1 415 555 0100."
    ),
    ErrorKind.MISSING_PHONE: "Phone number is required.",
    ErrorKind.MISSING_CODE: "Verification code is required.",
    ErrorKind.INVALID_CODE_FORMAT: "Verification code must be exactly 6 digits.",
    ErrorKind.COOLDOWN_ACTIVE: "Please wait {seconds} seconds before requesting a new code.",
    ErrorKind.RATE_LIMITED: "Too many requests. Please try again later.",
    ErrorKind.TOO_MANY_ATTEMPTS: "Too many failed attempts. Please request a new code.",
    ErrorKind.INVALID_CODE: "Invalid verification code. Check the code and try again.",
    ErrorKind.EXPIRED_CODE: "Verification code has expired. Please request a new code.",
    ErrorKind.CHALLENGE_NOT_FOUND: (
        "No active verification code for this number. Please request a new code."
    ),
    ErrorKind.DELIVERY_UNAVAILABLE: (
        "We couldn't send your code right now. Please try again in a few minutes."
    ),
    ErrorKind.INTERNAL_ERROR: "Something went wrong. Please try again.",
}

HTTP_STATUS: Dict[ErrorKind, int] = {
    ErrorKind.INVALID_PHONE_FORMAT: 400,
    ErrorKind.MISSING_PHONE: 400,
    ErrorKind.MISSING_CODE: 400,
    ErrorKind.INVALID_CODE_FORMAT: 400,
    ErrorKind.COOLDOWN_ACTIVE: 429,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.TOO_MANY_ATTEMPTS: 429,
    ErrorKind.INVALID_CODE: 400,
    ErrorKind.EXPIRED_CODE: 400,
    ErrorKind.CHALLENGE_NOT_FOUND: 400,
    ErrorKind.DELIVERY_UNAVAILABLE: 503,
    ErrorKind.INTERNAL_ERROR: 500,
}


def user_message(kind: ErrorKind, retry_after: Optional[int] = None) -> str:
    """Human text for an error kind."""
    message = USER_MESSAGES[kind]
    if kind is ErrorKind.COOLDOWN_ACTIVE:
        return message.format(seconds=retry_after if retry_after is not None else "a few")
    return message


def http_status(kind: ErrorKind) -> int:
    """HTTP status an outer layer should answer with."""
    return HTTP_STATUS[kind]


def _error_body(kind: ErrorKind, retry_after: Optional[int]) -> Dict[str, object]:
    body: Dict[str, object] = {
        "error": user_message(kind, retry_after),
        "code": kind.value,
    }
    if retry_after is not None:
        body["retryAfter"] = retry_after
    return body


def _retry_headers(retry_after: Optional[int]) -> Optional[Dict[str, str]]:
    if retry_after is None:
        return None
    return {"Retry-After": str(retry_after)}


def to_http_exception(
    kind: ErrorKind,
    retry_after: Optional[int] = None,
    log_message: Optional[str] = None,
) -> HTTPException:
    """
    Create an HTTPException for an error kind.

    Args:
        kind: Error kind
        retry_after: Seconds until the client may retry
        log_message: Technical message for logs (never sent to the client)

    Returns:
        HTTPException with the user-friendly message
    """
    if log_message:
        logger.warning("otp_request_rejected", code=kind.value, detail=log_message)

    return HTTPException(
        status_code=http_status(kind),
        detail=_error_body(kind, retry_after),
        headers=_retry_headers(retry_after),
    )


def to_error_response(
    kind: ErrorKind,
    retry_after: Optional[int] = None,
    log_message: Optional[str] = None,
) -> JSONResponse:
    """
    Create a JSONResponse with ``{"error", "code"}`` at the top level.

    Args:
        kind: Error kind
        retry_after: Seconds until the client may retry
        log_message: Technical message for logs (never sent to the client)
    """
    if log_message:
        logger.warning("otp_request_rejected", code=kind.value, detail=log_message)

    return JSONResponse(
        status_code=http_status(kind),
        content=_error_body(kind, retry_after),
        headers=_retry_headers(retry_after),
    )
