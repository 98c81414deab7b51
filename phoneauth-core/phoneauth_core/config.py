"""
Configuration
=============
Settings for the OTP flow, loaded once from the environment at startup.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from .delivery.models import DeliveryMode
from .phone import region_for_calling_code
from .rate_limit import LimitRule, RateLimitPolicy

PRODUCTION = "production"
MIN_AUTH_SECRET_LENGTH = 32


class ConfigurationError(Exception):
    """Raised when required settings are missing or invalid."""


def _get_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}")


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def _get_bool(env: Mapping[str, str], name: str) -> Optional[bool]:
    raw = env.get(name)
    if raw is None or raw == "":
        return None
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """
    Settings for the OTP flow.

    ``auth_secret`` is the host's auth secret (shared with its session
    library). The reference challenge store keys its code hashes with it,
    so stored hashes are useless without the secret.
    """
    environment: str = "development"
    auth_secret: str = ""

    # SMS provider (Twilio)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_messaging_service_sid: Optional[str] = None
    sms_timeout_seconds: float = 10.0

    # Phone input
    default_country_code: Optional[str] = None

    # Reference challenge store
    code_ttl_seconds: int = 300
    code_max_attempts: int = 3

    delivery_mode_override: Optional[DeliveryMode] = None
    rate_limits: RateLimitPolicy = field(default_factory=RateLimitPolicy)

    # Logging
    log_level: str = "INFO"
    log_json: Optional[bool] = None

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == PRODUCTION

    @property
    def delivery_mode(self) -> DeliveryMode:
        """SMS in production, console everywhere else, unless overridden."""
        if self.delivery_mode_override is not None:
            return self.delivery_mode_override
        return DeliveryMode.SMS if self.is_production else DeliveryMode.CONSOLE

    @property
    def json_logs(self) -> bool:
        return self.is_production if self.log_json is None else self.log_json

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Load settings from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``

        Returns:
            Validated Settings

        Raises:
            ConfigurationError: If a value is malformed or required values
                are missing
        """
        env = os.environ if environ is None else environ

        mode_raw = env.get("OTP_DELIVERY_MODE")
        try:
            mode = DeliveryMode(mode_raw.lower()) if mode_raw else None
        except ValueError:
            raise ConfigurationError(f"OTP_DELIVERY_MODE must be 'console' or 'sms', got {mode_raw!r}")

        try:
            rate_limits = RateLimitPolicy(
                phone=LimitRule(
                    _get_int(env, "OTP_PHONE_PER_MINUTE", 5),
                    60,
                    cooldown_seconds=_get_float(env, "OTP_RESEND_COOLDOWN_SECONDS", 60.0),
                ),
                phone_daily=LimitRule(_get_int(env, "OTP_PHONE_PER_DAY", 20), 24 * 60 * 60),
                ip=LimitRule(_get_int(env, "OTP_IP_PER_MINUTE", 30), 60),
                verify=LimitRule(_get_int(env, "OTP_VERIFY_PER_MINUTE", 10), 60),
            )
        except ValueError as e:
            raise ConfigurationError(str(e))

        settings = cls(
            environment=env.get("APP_ENV", "development"),
            auth_secret=env.get("AUTH_SECRET", ""),
            twilio_account_sid=env.get("TWILIO_ACCOUNT_SID") or None,
            twilio_auth_token=env.get("TWILIO_AUTH_TOKEN") or None,
            twilio_phone_number=env.get("TWILIO_PHONE_NUMBER") or None,
            twilio_messaging_service_sid=env.get("TWILIO_MESSAGING_SERVICE_SID") or None,
            sms_timeout_seconds=_get_float(env, "OTP_SMS_TIMEOUT_SECONDS", 10.0),
            default_country_code=env.get("OTP_DEFAULT_COUNTRY_CODE") or None,
            code_ttl_seconds=_get_int(env, "OTP_CODE_TTL_SECONDS", 300),
            code_max_attempts=_get_int(env, "OTP_CODE_MAX_ATTEMPTS", 3),
            delivery_mode_override=mode,
            rate_limits=rate_limits,
            log_level=env.get("LOG_LEVEL", "INFO"),
            log_json=_get_bool(env, "LOG_JSON"),
        )
        return settings.validate()

    def validate(self) -> "Settings":
        """
        Check required values.

        Raises:
            ConfigurationError: On the first problem found
        """
        missing = []
        if not self.auth_secret:
            missing.append("AUTH_SECRET")
        if self.delivery_mode is DeliveryMode.SMS:
            if not self.twilio_account_sid:
                missing.append("TWILIO_ACCOUNT_SID")
            if not self.twilio_auth_token:
                missing.append("TWILIO_AUTH_TOKEN")
            if not self.twilio_phone_number and not self.twilio_messaging_service_sid:
                missing.append("TWILIO_PHONE_NUMBER")
        if missing:
            raise ConfigurationError(f"Missing required environment variables: {', '.join(missing)}")

        if len(self.auth_secret) < MIN_AUTH_SECRET_LENGTH:
            raise ConfigurationError(
                f"AUTH_SECRET must be at least {MIN_AUTH_SECRET_LENGTH} characters long"
            )
        if self.is_production and self.delivery_mode is DeliveryMode.CONSOLE:
            raise ConfigurationError("Console OTP delivery is not allowed in production")
        if self.default_country_code and region_for_calling_code(self.default_country_code) is None:
            raise ConfigurationError(
                f"OTP_DEFAULT_COUNTRY_CODE is not a known calling code: {self.default_country_code}"
            )
        if self.sms_timeout_seconds <= 0:
            raise ConfigurationError("OTP_SMS_TIMEOUT_SECONDS must be positive")
        if self.code_ttl_seconds <= 0 or self.code_max_attempts <= 0:
            raise ConfigurationError("OTP code TTL and max attempts must be positive")
        return self
