"""
Request Context
===============
Best-effort client details taken from an incoming request.
"""

import ipaddress
from dataclasses import dataclass
from typing import Mapping, Optional

from starlette.requests import Request


def _valid_ip(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    candidate = value.strip()
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return None
    return candidate


def client_ip_from_headers(headers: Mapping[str, str]) -> Optional[str]:
    """
    Extract the client IP from proxy headers.

    Uses the first ``X-Forwarded-For`` entry, then ``X-Real-IP``.
    Malformed values are ignored.
    """
    lowered = {key.lower(): value for key, value in headers.items()}

    forwarded = lowered.get("x-forwarded-for")
    if forwarded:
        ip = _valid_ip(forwarded.split(",")[0])
        if ip:
            return ip

    return _valid_ip(lowered.get("x-real-ip"))


@dataclass(frozen=True)
class RequestContext:
    """Client details used for IP-keyed limiting and logs."""
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RequestContext":
        lowered = {key.lower(): value for key, value in headers.items()}
        return cls(
            client_ip=client_ip_from_headers(lowered),
            user_agent=lowered.get("user-agent"),
        )

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        """Proxy headers first, then the socket peer."""
        context = cls.from_headers(request.headers)
        if context.client_ip is None and request.client is not None:
            return cls(client_ip=_valid_ip(request.client.host), user_agent=context.user_agent)
        return context
