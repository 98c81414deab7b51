from typing import Any, Optional


class ProviderError(Exception):
    """Base exception for all SMS provider failures."""
    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        status_code: Optional[int] = None,
        details: Any = None,
    ):
        self.message = message
        self.provider = provider
        self.status_code = status_code
        self.details = details
        super().__init__(f"[{provider}] {message} (Status: {status_code})")

class ProviderUnavailableError(ProviderError):
    """Raised when the provider is unreachable or returns a 5xx/429."""
    pass

class ProviderTimeoutError(ProviderUnavailableError):
    """Raised specifically on timeouts."""
    pass

class ProviderAuthError(ProviderError):
    """Raised when provider credentials are rejected (401/403)."""
    pass

class ProviderRejectedError(ProviderError):
    """Raised when the provider refuses the message (other 4xx)."""
    pass
