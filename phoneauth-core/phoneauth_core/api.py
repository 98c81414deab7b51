"""
OTP HTTP Routes
===============
FastAPI router exposing the send and verify hooks.
"""

from typing import Optional
from fastapi import APIRouter, Request, Response
from pydantic import BaseModel, ConfigDict, Field

from .errors import to_error_response
from .metrics import CONTENT_TYPE_LATEST, get_metrics_text
from .request_context import RequestContext
from .service import OTPAuthService


class SendOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")


class VerifyOTPRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    code: Optional[str] = None


def create_otp_router(
    service: OTPAuthService,
    prefix: str = "/phone-number",
    expose_metrics: bool = False,
) -> APIRouter:
    """
    Create the phone OTP router.

    Args:
        service: Configured OTPAuthService
        prefix: Route prefix (mounted under the host's auth path)
        expose_metrics: Also serve Prometheus metrics at ``/metrics``

    Returns:
        FastAPI router with ``send-otp`` and ``verify-otp`` endpoints
    """
    router = APIRouter(prefix=prefix, tags=["Phone OTP"])

    @router.post("/send-otp")
    async def send_otp(body: SendOTPRequest, request: Request):
        """Issue and deliver a new code."""
        result = await service.issue_otp(body.phone_number, RequestContext.from_request(request))
        if not result.success:
            return to_error_response(result.kind, result.retry_after_seconds)
        return result.to_dict()

    @router.post("/verify-otp")
    async def verify_otp(body: VerifyOTPRequest, request: Request):
        """Verify a code and issue the session."""
        result = await service.verify_otp(
            body.phone_number,
            body.code,
            RequestContext.from_request(request),
        )
        if not result.success:
            return to_error_response(result.kind, result.retry_after_seconds)
        return result.to_dict()

    if expose_metrics:
        @router.get("/metrics")
        async def metrics_endpoint():
            return Response(content=get_metrics_text(), media_type=CONTENT_TYPE_LATEST)

    return router
