"""
Delivery Models
===============
Uniform result contract for OTP delivery.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..errors import ErrorKind, user_message


class DeliveryMode(str, Enum):
    """How codes reach the user."""
    CONSOLE = "console"  # Development: log the code
    SMS = "sms"          # Production: send through the SMS provider


class DeliveryFailure(str, Enum):
    """Provider-level failure causes, kept server-side."""
    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    AUTH = "auth"
    REJECTED = "rejected"
    INTERNAL = "internal"


# Failure causes the user sees as "temporarily unavailable"
_UNAVAILABLE_FAILURES = {
    DeliveryFailure.TIMEOUT,
    DeliveryFailure.UNAVAILABLE,
    DeliveryFailure.AUTH,
    DeliveryFailure.REJECTED,
}


@dataclass
class DeliveryResult:
    """
    Result of a send.

    ``success`` and ``error`` form the public contract; the other fields are
    for callers that map to HTTP or record metrics.
    """
    success: bool
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    retry_after_seconds: Optional[int] = None
    failure: Optional[DeliveryFailure] = None
    provider_message_id: Optional[str] = None

    @classmethod
    def ok(cls, provider_message_id: Optional[str] = None) -> "DeliveryResult":
        return cls(success=True, provider_message_id=provider_message_id)

    @classmethod
    def rejected(cls, kind: ErrorKind, retry_after_seconds: Optional[int] = None) -> "DeliveryResult":
        return cls(
            success=False,
            error=user_message(kind, retry_after_seconds),
            kind=kind,
            retry_after_seconds=retry_after_seconds,
        )

    @classmethod
    def from_failure(cls, failure: DeliveryFailure) -> "DeliveryResult":
        kind = (
            ErrorKind.DELIVERY_UNAVAILABLE
            if failure in _UNAVAILABLE_FAILURES
            else ErrorKind.INTERNAL_ERROR
        )
        result = cls.rejected(kind)
        result.failure = failure
        return result

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"success": self.success}
        if self.error is not None:
            data["error"] = self.error
        return data
