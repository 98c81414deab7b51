"""
Tests for OTP Delivery
======================
Console and SMS adapters, the Twilio client and the adapter factory.
"""

import asyncio
from urllib.parse import parse_qsl

import httpx
import pytest
from structlog.testing import capture_logs

from phoneauth_core.delivery import (
    ConsoleDelivery,
    DeliveryFailure,
    DeliveryMode,
    DeliveryResult,
    SMSDelivery,
    classify_failure,
)
from phoneauth_core.delivery.factory import build_delivery
from phoneauth_core.config import ConfigurationError, Settings
from phoneauth_core.errors import ErrorKind, user_message
from phoneauth_core.phone import normalize_phone
from phoneauth_core.providers import (
    ProviderAuthError,
    ProviderError,
    ProviderRejectedError,
    ProviderTimeoutError,
    ProviderUnavailableError,
    TwilioSMSProvider,
)

from conftest import FakeProvider

PHONE = normalize_phone("+14155550100")
CODE = "482913"
SECRET = "s" * 32


class TestConsoleDelivery:
    """Tests for development delivery."""

    @pytest.mark.asyncio
    async def test_logs_code_and_succeeds(self):
        """The code goes to the dev OTP log and the send succeeds."""
        delivery = ConsoleDelivery()

        with capture_logs() as logs:
            result = await delivery.send(PHONE, CODE)

        assert result.success is True
        assert result.error is None
        assert result.to_dict() == {"success": True}
        entry = next(log for log in logs if log["event"] == "dev_otp_issued")
        assert entry["code"] == CODE
        assert entry["phone"] == "+14155550100"
        assert "issued_at" in entry


class TestSMSDelivery:
    """Tests for production delivery through a provider."""

    @pytest.mark.asyncio
    async def test_send_success(self):
        """The provider receives the E.164 number and the message body."""
        provider = FakeProvider()
        delivery = SMSDelivery(provider)

        result = await delivery.send(PHONE, CODE)

        assert result.success is True
        assert result.provider_message_id == "SM1"
        assert provider.messages == [("+14155550100", f"Your verification code is: {CODE}")]

    @pytest.mark.asyncio
    async def test_success_logs_never_contain_code(self):
        """Nothing logged in SMS mode includes the code or the full number."""
        delivery = SMSDelivery(FakeProvider())

        with capture_logs() as logs:
            await delivery.send(PHONE, CODE)

        assert logs
        for entry in logs:
            assert CODE not in repr(entry)
            assert "+14155550100" not in repr(entry)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error, failure",
        [
            (ProviderTimeoutError("timed out", provider="fake"), DeliveryFailure.TIMEOUT),
            (ProviderUnavailableError("down", provider="fake", status_code=503), DeliveryFailure.UNAVAILABLE),
            (ProviderAuthError("bad credentials", provider="fake", status_code=401), DeliveryFailure.AUTH),
            (ProviderRejectedError("invalid To", provider="fake", status_code=400), DeliveryFailure.REJECTED),
        ],
    )
    async def test_provider_failures_are_unavailable(self, error, failure):
        """Provider failures surface as a fixed unavailable message."""
        delivery = SMSDelivery(FakeProvider(error=error))

        result = await delivery.send(PHONE, CODE)

        assert result.success is False
        assert result.kind == ErrorKind.DELIVERY_UNAVAILABLE
        assert result.failure == failure
        assert result.error == user_message(ErrorKind.DELIVERY_UNAVAILABLE)
        assert str(error) not in result.error

    @pytest.mark.asyncio
    async def test_unexpected_error_is_internal(self):
        """Anything that is not a provider error maps to internal."""
        delivery = SMSDelivery(FakeProvider(error=KeyError("sid")))

        result = await delivery.send(PHONE, CODE)

        assert result.success is False
        assert result.kind == ErrorKind.INTERNAL_ERROR
        assert result.failure == DeliveryFailure.INTERNAL
        assert result.to_dict() == {"success": False, "error": user_message(ErrorKind.INTERNAL_ERROR)}

    @pytest.mark.asyncio
    async def test_timeout(self):
        """A provider slower than the timeout is reported as a timeout."""
        delivery = SMSDelivery(FakeProvider(delay=1.0), timeout=0.01)

        result = await delivery.send(PHONE, CODE)

        assert result.success is False
        assert result.failure == DeliveryFailure.TIMEOUT
        assert result.kind == ErrorKind.DELIVERY_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_failure_logs_scrub_code(self):
        """Provider errors echoing the message body are scrubbed before logging."""
        error = ProviderRejectedError(f"Body 'Your verification code is: {CODE}' rejected", provider="fake")
        delivery = SMSDelivery(FakeProvider(error=error))

        with capture_logs() as logs:
            await delivery.send(PHONE, CODE)

        failed = next(log for log in logs if log["event"] == "otp_delivery_failed")
        assert failed["error_type"] == "ProviderRejectedError"
        assert failed["phone"] == "+1***0100"
        for entry in logs:
            assert CODE not in repr(entry)

    @pytest.mark.asyncio
    async def test_close_closes_provider(self):
        """Closing the adapter closes the provider."""
        provider = FakeProvider()
        delivery = SMSDelivery(provider)

        await delivery.close()

        assert provider.closed is True

    def test_classify_failure(self):
        """asyncio timeouts count as provider timeouts."""
        assert classify_failure(asyncio.TimeoutError()) == DeliveryFailure.TIMEOUT
        assert classify_failure(ProviderError("generic")) == DeliveryFailure.INTERNAL
        assert classify_failure(RuntimeError()) == DeliveryFailure.INTERNAL

    def test_from_failure_mapping(self):
        """Only the internal cause maps to InternalError."""
        for failure in DeliveryFailure:
            result = DeliveryResult.from_failure(failure)
            expected = (
                ErrorKind.INTERNAL_ERROR
                if failure is DeliveryFailure.INTERNAL
                else ErrorKind.DELIVERY_UNAVAILABLE
            )
            assert result.kind == expected


def twilio(handler, **kwargs):
    options = {"from_number": "+15005550006"}
    options.update(kwargs)
    return TwilioSMSProvider(
        account_sid="AC0123456789",
        auth_token="token",
        transport=httpx.MockTransport(handler),
        **options,
    )


class TestTwilioProvider:
    """Tests for the Twilio client against a mock transport."""

    @pytest.mark.asyncio
    async def test_send_sms(self):
        """Should post the message form and return the SID."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["form"] = dict(parse_qsl(request.content.decode()))
            return httpx.Response(201, json={"sid": "SM123", "status": "queued"})

        provider = twilio(handler)
        receipt = await provider.send_sms("+14155550100", "Your verification code is: 123456")
        await provider.close()

        assert receipt.provider_message_id == "SM123"
        assert receipt.status == "queued"
        assert seen["url"].endswith("/Accounts/AC0123456789/Messages.json")
        assert seen["auth"].startswith("Basic ")
        assert seen["form"] == {
            "To": "+14155550100",
            "Body": "Your verification code is: 123456",
            "From": "+15005550006",
        }

    @pytest.mark.asyncio
    async def test_messaging_service(self):
        """A messaging service SID replaces the From number."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["form"] = dict(parse_qsl(request.content.decode()))
            return httpx.Response(201, json={"sid": "SM1"})

        provider = twilio(handler, from_number=None, messaging_service_sid="MG123")
        await provider.send_sms("+14155550100", "hi")

        assert seen["form"]["MessagingServiceSid"] == "MG123"
        assert "From" not in seen["form"]

    def test_requires_sender(self):
        """A sender number or messaging service is required."""
        with pytest.raises(ValueError):
            TwilioSMSProvider(account_sid="AC1", auth_token="token")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status, error_type",
        [
            (401, ProviderAuthError),
            (403, ProviderAuthError),
            (429, ProviderUnavailableError),
            (500, ProviderUnavailableError),
            (503, ProviderUnavailableError),
            (400, ProviderRejectedError),
        ],
    )
    async def test_error_status_mapping(self, status, error_type):
        """HTTP errors map to provider exceptions."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(status, json={"code": 21211, "message": "error"})

        provider = twilio(handler)

        with pytest.raises(error_type) as exc_info:
            await provider.send_sms("+14155550100", "hi")

        assert exc_info.value.status_code == status
        assert exc_info.value.provider == "twilio"

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        """Error bodies that are not JSON are still mapped."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with pytest.raises(ProviderUnavailableError):
            await twilio(handler).send_sms("+14155550100", "hi")

    @pytest.mark.asyncio
    async def test_transport_timeout(self):
        """httpx timeouts raise ProviderTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectTimeout("timed out", request=request)

        with pytest.raises(ProviderTimeoutError):
            await twilio(handler).send_sms("+14155550100", "hi")

    @pytest.mark.asyncio
    async def test_transport_error(self):
        """Connection errors raise ProviderUnavailableError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await twilio(handler).send_sms("+14155550100", "hi")

        assert not isinstance(exc_info.value, ProviderTimeoutError)

    @pytest.mark.asyncio
    async def test_sms_delivery_over_twilio(self):
        """A Twilio 503 reaches the user as DeliveryUnavailable."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"message": "Service Unavailable"})

        delivery = SMSDelivery(twilio(handler))
        result = await delivery.send(PHONE, CODE)
        await delivery.close()

        assert result.kind == ErrorKind.DELIVERY_UNAVAILABLE
        assert result.failure == DeliveryFailure.UNAVAILABLE


class TestBuildDelivery:
    """Tests for choosing the adapter from settings."""

    def test_development_uses_console(self):
        """Non-production environments log codes."""
        settings = Settings(environment="development", auth_secret=SECRET)

        assert isinstance(build_delivery(settings), ConsoleDelivery)

    def test_production_uses_twilio(self):
        """Production sends SMS through Twilio."""
        settings = Settings(
            environment="production",
            auth_secret=SECRET,
            twilio_account_sid="AC1",
            twilio_auth_token="token",
            twilio_phone_number="+15005550006",
            sms_timeout_seconds=5.0,
        )

        delivery = build_delivery(settings)

        assert isinstance(delivery, SMSDelivery)
        assert isinstance(delivery.provider, TwilioSMSProvider)
        assert delivery.timeout == 5.0
        assert delivery.mode == DeliveryMode.SMS

    def test_provider_override(self):
        """An explicit provider replaces Twilio."""
        provider = FakeProvider()
        settings = Settings(environment="production", auth_secret=SECRET)

        delivery = build_delivery(settings, provider=provider)

        assert delivery.provider is provider

    def test_production_without_credentials(self):
        """SMS mode without Twilio credentials is a configuration error."""
        settings = Settings(environment="production", auth_secret=SECRET)

        with pytest.raises(ConfigurationError):
            build_delivery(settings)

    def test_console_forbidden_in_production(self):
        """Codes are never logged in production."""
        settings = Settings(
            environment="production",
            auth_secret=SECRET,
            delivery_mode_override=DeliveryMode.CONSOLE,
        )

        with pytest.raises(ConfigurationError):
            build_delivery(settings)
