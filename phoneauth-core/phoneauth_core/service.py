"""
OTP Auth Service
================
Composition root for phone sign-in: normalization, rate limiting,
delivery and verification behind two hooks, ``send_otp`` and
``verify_otp``.

Neither hook raises. Every failure comes back as a typed result carrying
an ErrorKind, a user-safe message and an HTTP status.
"""

import asyncio
from functools import partial
from typing import List, Optional, Tuple
import structlog

from . import metrics
from .config import Settings
from .delivery import DeliveryResult, OTPDelivery
from .delivery.factory import build_delivery
from .errors import ErrorKind
from .otp import ChallengeStatus, ChallengeStore, InMemoryChallengeStore, generate_otp
from .phone import InvalidPhoneFormat, PhoneNumber, normalize_phone
from .rate_limit import (
    DenyReason,
    LimitRule,
    RateLimitDecision,
    RateLimiter,
    RateLimitPolicy,
    RateLimitScope,
    limit_key,
)
from .request_context import RequestContext
from .verification import (
    SessionIssuer,
    VerificationPolicy,
    VerifyDecision,
    VerifyResult,
    outcome_for,
)

logger = structlog.get_logger(__name__)

_DENIAL_KINDS = {
    DenyReason.COOLDOWN: ErrorKind.COOLDOWN_ACTIVE,
    DenyReason.RATE_LIMITED: ErrorKind.RATE_LIMITED,
}


class OTPAuthService:
    """
    Phone OTP sign-in flow.

    Example:
        service = OTPAuthService.from_settings(Settings.from_env(), sessions=issuer)

        result = await service.issue_otp("+1 (415) 555-0100", context)
        if not result.success:
            return to_error_response(result.kind, result.retry_after_seconds)
    """

    def __init__(
        self,
        delivery: OTPDelivery,
        limiter: Optional[RateLimiter] = None,
        policy: Optional[RateLimitPolicy] = None,
        challenges: Optional[ChallengeStore] = None,
        sessions: Optional[SessionIssuer] = None,
        default_country: Optional[str] = None,
    ):
        self.delivery = delivery
        self.limiter = limiter or RateLimiter()
        self.policy = policy or RateLimitPolicy()
        self.challenges = challenges
        self.sessions = sessions
        self.default_country = default_country
        self.verification = VerificationPolicy(self.limiter, self.policy.verify)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        delivery: Optional[OTPDelivery] = None,
        limiter: Optional[RateLimiter] = None,
        challenges: Optional[ChallengeStore] = None,
        sessions: Optional[SessionIssuer] = None,
    ) -> "OTPAuthService":
        """Build the service from loaded settings."""
        return cls(
            delivery=delivery or build_delivery(settings),
            limiter=limiter,
            policy=settings.rate_limits,
            challenges=challenges or InMemoryChallengeStore(
                ttl_seconds=settings.code_ttl_seconds,
                max_attempts=settings.code_max_attempts,
                secret=settings.auth_secret,
            ),
            sessions=sessions,
            default_country=settings.default_country_code,
        )

    # Send

    def _normalize(self, phone_input) -> Tuple[Optional[PhoneNumber], Optional[ErrorKind]]:
        if phone_input is None or (isinstance(phone_input, str) and not phone_input.strip()):
            return None, ErrorKind.MISSING_PHONE
        try:
            return normalize_phone(phone_input, default_country=self.default_country), None
        except InvalidPhoneFormat as e:
            logger.info("otp_phone_rejected", reason=str(e))
            return None, ErrorKind.INVALID_PHONE_FORMAT

    def _send_rules(
        self,
        phone: PhoneNumber,
        context: Optional[RequestContext],
    ) -> List[Tuple[RateLimitScope, str, LimitRule]]:
        rules = [
            (RateLimitScope.PHONE, limit_key(RateLimitScope.PHONE, str(phone)), self.policy.phone),
            (
                RateLimitScope.PHONE_DAILY,
                limit_key(RateLimitScope.PHONE_DAILY, str(phone)),
                self.policy.phone_daily,
            ),
        ]
        if context is not None and context.client_ip:
            rules.append(
                (RateLimitScope.IP, limit_key(RateLimitScope.IP, context.client_ip), self.policy.ip)
            )
        return rules

    def _denied(
        self,
        scope: RateLimitScope,
        decision: RateLimitDecision,
        phone: PhoneNumber,
    ) -> DeliveryResult:
        metrics.RATE_LIMIT_DENIALS.labels(scope=scope.value, reason=decision.reason.value).inc()
        metrics.OTP_SEND_TOTAL.labels(outcome=decision.reason.value).inc()
        logger.info(
            "otp_send_denied",
            phone=phone.redacted(),
            scope=scope.value,
            reason=decision.reason.value,
            retry_after=decision.retry_after_seconds,
        )
        kind = _DENIAL_KINDS[decision.reason]
        retry_after = decision.retry_after_seconds if kind is ErrorKind.COOLDOWN_ACTIVE else None
        return DeliveryResult.rejected(kind, retry_after_seconds=retry_after)

    def _admit_send(
        self,
        phone: PhoneNumber,
        context: Optional[RequestContext],
    ) -> Optional[DeliveryResult]:
        """
        Check every send limit and commit them all in one step.

        Returns a rejected result on the first denial, or None when the send
        may proceed. No counter moves unless every rule passes.
        """
        rules = self._send_rules(phone, context)
        decisions = self.limiter.consume_all(
            [(key, rule.limit, rule.window_seconds, rule.cooldown_seconds) for _, key, rule in rules]
        )

        last = decisions[-1]
        if not last.allowed:
            scope = rules[len(decisions) - 1][0]
            return self._denied(scope, last, phone)
        return None

    def _delivery_done(self, phone: PhoneNumber, task: "asyncio.Future[DeliveryResult]") -> None:
        """Bookkeeping for a finished send; runs even if the caller was cancelled."""
        if task.cancelled():
            metrics.OTP_SEND_TOTAL.labels(outcome="delivery_cancelled").inc()
            return

        error = task.exception()
        if error is not None:
            logger.error(
                "otp_delivery_crashed",
                phone=phone.redacted(),
                error_type=type(error).__name__,
            )
            metrics.OTP_SEND_TOTAL.labels(outcome="delivery_internal").inc()
            return

        result = task.result()
        if result.success:
            self.verification.reset(phone)
            metrics.OTP_SEND_TOTAL.labels(outcome="sent").inc()
        else:
            failure = result.failure.value if result.failure else "internal"
            metrics.OTP_SEND_TOTAL.labels(outcome=f"delivery_{failure}").inc()

    async def _deliver(self, phone: PhoneNumber, code: str) -> DeliveryResult:
        # Limits are already committed; shield so a client disconnect
        # doesn't cancel a send that a retry would then be limited against.
        task = asyncio.ensure_future(self.delivery.send(phone, code))
        task.add_done_callback(partial(self._delivery_done, phone))
        try:
            return await asyncio.shield(task)
        except Exception:
            return DeliveryResult.rejected(ErrorKind.INTERNAL_ERROR)

    async def send_otp(
        self,
        phone_input,
        code: str,
        context: Optional[RequestContext] = None,
    ) -> DeliveryResult:
        """
        Send an already generated code.

        This is the hook for auth layers that generate and store codes
        themselves.

        Args:
            phone_input: Phone number as typed by the user
            code: Code generated by the caller
            context: Request details; the client IP enables IP limits

        Returns:
            DeliveryResult; ``success`` is False with a user-safe ``error``
            on any denial or failure
        """
        phone, error = self._normalize(phone_input)
        if error is not None:
            metrics.OTP_SEND_TOTAL.labels(outcome=error.value.lower()).inc()
            return DeliveryResult.rejected(error)

        try:
            denial = self._admit_send(phone, context)
        except Exception:
            logger.exception("otp_send_admission_failed", phone=phone.redacted())
            return DeliveryResult.rejected(ErrorKind.INTERNAL_ERROR)
        if denial is not None:
            return denial

        return await self._deliver(phone, code)

    async def issue_otp(
        self,
        phone_input,
        context: Optional[RequestContext] = None,
    ) -> DeliveryResult:
        """
        Generate, store and send a new code using the challenge store.

        Args:
            phone_input: Phone number as typed by the user
            context: Request details; the client IP enables IP limits
        """
        phone, error = self._normalize(phone_input)
        if error is not None:
            metrics.OTP_SEND_TOTAL.labels(outcome=error.value.lower()).inc()
            return DeliveryResult.rejected(error)
        if self.challenges is None:
            logger.error("otp_challenge_store_missing")
            return DeliveryResult.rejected(ErrorKind.INTERNAL_ERROR)

        try:
            denial = self._admit_send(phone, context)
            if denial is not None:
                return denial
            code = generate_otp()
            await self.challenges.save(str(phone), code)
        except Exception:
            logger.exception("otp_issue_failed", phone=phone.redacted())
            return DeliveryResult.rejected(ErrorKind.INTERNAL_ERROR)

        return await self._deliver(phone, code)

    # Verify

    def precheck_verify(self, phone_input, code) -> VerifyDecision:
        """
        Pre-check hook for auth layers that compare codes themselves.

        Call before comparing; an allowed pre-check counts one attempt.
        Report the comparison with ``finish_verify``, which clears the
        counter when the code was verified.
        """
        phone, error = self._normalize(phone_input)
        if error is not None:
            return VerifyDecision(allowed=False, kind=error)
        if code is None or code == "":
            return VerifyDecision(allowed=False, kind=ErrorKind.MISSING_CODE)
        return self.verification.precheck(phone, code)

    async def finish_verify(self, phone_input, status: ChallengeStatus) -> VerifyResult:
        """
        Record a comparison outcome and, on success, issue the session.

        Args:
            phone_input: Phone number the code was checked for
            status: Outcome reported by the challenge store
        """
        phone, error = self._normalize(phone_input)
        if error is not None:
            return VerifyResult.failed(error)
        return await self._finish(phone, status)

    async def _finish(self, phone: PhoneNumber, status: ChallengeStatus) -> VerifyResult:
        kind = outcome_for(status)
        if kind is not None:
            metrics.OTP_VERIFY_TOTAL.labels(outcome=status.value).inc()
            logger.info("otp_verify_failed", phone=phone.redacted(), status=status.value)
            return VerifyResult.failed(kind, phone=str(phone))

        self.verification.record_success(phone)

        grant = None
        if self.sessions is not None:
            try:
                grant = await self.sessions.issue(phone)
            except Exception:
                logger.exception("otp_session_issue_failed", phone=phone.redacted())
                metrics.OTP_VERIFY_TOTAL.labels(outcome="session_error").inc()
                return VerifyResult.failed(ErrorKind.INTERNAL_ERROR, phone=str(phone))

        metrics.OTP_VERIFY_TOTAL.labels(outcome="verified").inc()
        logger.info(
            "otp_verified",
            phone=phone.redacted(),
            is_new_user=grant.is_new_user if grant else False,
        )
        return VerifyResult(
            success=True,
            phone=str(phone),
            user_id=grant.user_id if grant else None,
            is_new_user=grant.is_new_user if grant else False,
        )

    async def verify_otp(
        self,
        phone_input,
        code,
        context: Optional[RequestContext] = None,
    ) -> VerifyResult:
        """
        Verify a submitted code against the challenge store.

        Args:
            phone_input: Phone number as typed by the user
            code: Submitted code
            context: Request details (logged only)

        Returns:
            VerifyResult; on success ``is_new_user`` tells the caller to
            route to profile completion
        """
        phone, error = self._normalize(phone_input)
        if error is not None:
            return VerifyResult.failed(error)
        if code is None or code == "":
            return VerifyResult.failed(ErrorKind.MISSING_CODE, phone=str(phone))

        decision = self.verification.precheck(phone, code)
        if not decision.allowed:
            metrics.OTP_VERIFY_TOTAL.labels(outcome=decision.kind.value.lower()).inc()
            return VerifyResult.failed(
                decision.kind,
                phone=str(phone),
                retry_after_seconds=decision.retry_after_seconds,
            )

        if self.challenges is None:
            logger.error("otp_challenge_store_missing")
            return VerifyResult.failed(ErrorKind.INTERNAL_ERROR, phone=str(phone))

        try:
            status = await self.challenges.verify(str(phone), code)
        except Exception:
            logger.exception(
                "otp_challenge_compare_failed",
                phone=phone.redacted(),
                client_ip=context.client_ip if context else None,
            )
            return VerifyResult.failed(ErrorKind.INTERNAL_ERROR, phone=str(phone))

        return await self._finish(phone, status)
