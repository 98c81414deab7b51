"""
Tests for Configuration and Request Context
===========================================
"""

import pytest

from phoneauth_core.config import ConfigurationError, Settings
from phoneauth_core.delivery import DeliveryMode
from phoneauth_core.request_context import RequestContext, client_ip_from_headers

SECRET = "s" * 32

PRODUCTION_ENV = {
    "APP_ENV": "production",
    "AUTH_SECRET": SECRET,
    "TWILIO_ACCOUNT_SID": "AC123",
    "TWILIO_AUTH_TOKEN": "token",
    "TWILIO_PHONE_NUMBER": "+15005550006",
}


class TestSettings:
    """Tests for loading settings from the environment."""

    def test_development_defaults(self):
        """Development logs codes and uses the default limits."""
        settings = Settings.from_env({"AUTH_SECRET": SECRET})

        assert settings.is_production is False
        assert settings.delivery_mode == DeliveryMode.CONSOLE
        assert settings.json_logs is False
        assert settings.sms_timeout_seconds == 10.0
        assert settings.code_ttl_seconds == 300
        assert settings.rate_limits.phone.cooldown_seconds == 60
        assert settings.default_country_code is None

    def test_production(self):
        """Production sends SMS and logs JSON."""
        settings = Settings.from_env(PRODUCTION_ENV)

        assert settings.delivery_mode == DeliveryMode.SMS
        assert settings.json_logs is True

    def test_production_requires_twilio(self):
        """Missing Twilio credentials are listed by name."""
        env = {"APP_ENV": "production", "AUTH_SECRET": SECRET}

        with pytest.raises(ConfigurationError) as exc_info:
            Settings.from_env(env)

        assert "TWILIO_ACCOUNT_SID" in str(exc_info.value)
        assert "TWILIO_AUTH_TOKEN" in str(exc_info.value)

    def test_messaging_service_replaces_number(self):
        """A messaging service SID is enough as a sender."""
        env = dict(PRODUCTION_ENV)
        del env["TWILIO_PHONE_NUMBER"]
        env["TWILIO_MESSAGING_SERVICE_SID"] = "MG123"

        assert Settings.from_env(env).twilio_messaging_service_sid == "MG123"

    def test_auth_secret_required(self):
        """AUTH_SECRET is always required."""
        with pytest.raises(ConfigurationError, match="AUTH_SECRET"):
            Settings.from_env({})

    def test_short_auth_secret(self):
        """AUTH_SECRET must be at least 32 characters."""
        with pytest.raises(ConfigurationError, match="32"):
            Settings.from_env({"AUTH_SECRET": "short"})

    def test_console_mode_forbidden_in_production(self):
        """Forcing console delivery in production fails at startup."""
        env = dict(PRODUCTION_ENV, OTP_DELIVERY_MODE="console")

        with pytest.raises(ConfigurationError):
            Settings.from_env(env)

    def test_sms_mode_in_development(self):
        """SMS can be forced outside production."""
        env = dict(PRODUCTION_ENV, APP_ENV="staging", OTP_DELIVERY_MODE="SMS")

        assert Settings.from_env(env).delivery_mode == DeliveryMode.SMS

    @pytest.mark.parametrize(
        "name, value",
        [
            ("OTP_SMS_TIMEOUT_SECONDS", "soon"),
            ("OTP_SMS_TIMEOUT_SECONDS", "0"),
            ("OTP_CODE_TTL_SECONDS", "-5"),
            ("OTP_PHONE_PER_MINUTE", "0"),
            ("OTP_DEFAULT_COUNTRY_CODE", "999"),
            ("OTP_DELIVERY_MODE", "pigeon"),
        ],
    )
    def test_invalid_values(self, name, value):
        """Malformed values fail at load time."""
        with pytest.raises(ConfigurationError):
            Settings.from_env({"AUTH_SECRET": SECRET, name: value})

    def test_overrides(self):
        """Limits and logging can be tuned from the environment."""
        settings = Settings.from_env({
            "AUTH_SECRET": SECRET,
            "OTP_PHONE_PER_MINUTE": "3",
            "OTP_RESEND_COOLDOWN_SECONDS": "30",
            "OTP_IP_PER_MINUTE": "100",
            "OTP_VERIFY_PER_MINUTE": "5",
            "OTP_DEFAULT_COUNTRY_CODE": "44",
            "LOG_LEVEL": "DEBUG",
            "LOG_JSON": "true",
        })

        assert settings.rate_limits.phone.limit == 3
        assert settings.rate_limits.phone.cooldown_seconds == 30
        assert settings.rate_limits.ip.limit == 100
        assert settings.rate_limits.verify.limit == 5
        assert settings.default_country_code == "44"
        assert settings.log_level == "DEBUG"
        assert settings.json_logs is True


class TestRequestContext:
    """Tests for client IP extraction."""

    def test_first_forwarded_entry(self):
        """The first X-Forwarded-For entry is the client."""
        headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1, 10.0.0.2"}

        assert client_ip_from_headers(headers) == "203.0.113.7"

    def test_real_ip_fallback(self):
        """X-Real-IP is used when X-Forwarded-For is absent."""
        assert client_ip_from_headers({"x-real-ip": "2001:db8::1"}) == "2001:db8::1"

    def test_malformed_values_ignored(self):
        """Values that are not IP addresses are dropped."""
        headers = {"X-Forwarded-For": "unknown", "X-Real-IP": "198.51.100.4"}

        assert client_ip_from_headers(headers) == "198.51.100.4"
        assert client_ip_from_headers({"X-Forwarded-For": "<script>"}) is None
        assert client_ip_from_headers({}) is None

    def test_from_headers(self):
        """The context carries IP and user agent."""
        context = RequestContext.from_headers({
            "X-Real-IP": "198.51.100.4",
            "User-Agent": "spaces-web/1.0",
        })

        assert context.client_ip == "198.51.100.4"
        assert context.user_agent == "spaces-web/1.0"
