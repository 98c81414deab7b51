"""
Verification Models
===================
Decisions and results for the verify step.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..errors import ErrorKind, http_status, user_message


@dataclass
class VerifyDecision:
    """Outcome of the pre-check run before any code comparison."""
    allowed: bool
    kind: Optional[ErrorKind] = None
    retry_after_seconds: Optional[int] = None

    @property
    def message(self) -> Optional[str]:
        return user_message(self.kind, self.retry_after_seconds) if self.kind else None

    @property
    def status_code(self) -> int:
        return http_status(self.kind) if self.kind else 200


@dataclass
class SessionGrant:
    """What the session issuer reports after minting a session."""
    user_id: str
    is_new_user: bool = False


@dataclass
class VerifyResult:
    """Final result of a verify request."""
    success: bool
    phone: Optional[str] = None
    kind: Optional[ErrorKind] = None
    retry_after_seconds: Optional[int] = None
    user_id: Optional[str] = None
    is_new_user: bool = False

    @classmethod
    def failed(
        cls,
        kind: ErrorKind,
        phone: Optional[str] = None,
        retry_after_seconds: Optional[int] = None,
    ) -> "VerifyResult":
        return cls(success=False, phone=phone, kind=kind, retry_after_seconds=retry_after_seconds)

    @property
    def message(self) -> Optional[str]:
        return user_message(self.kind, self.retry_after_seconds) if self.kind else None

    @property
    def status_code(self) -> int:
        return http_status(self.kind) if self.kind else 200

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.message, "code": self.kind.value}
        return {
            "success": True,
            "user": {
                "id": self.user_id,
                "phoneNumber": self.phone,
                "phoneVerified": True,
            },
            "isNewUser": self.is_new_user,
        }
