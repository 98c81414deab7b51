"""
Logging Setup
=============
structlog configuration for services embedding the OTP flow.

Usage:
    from phoneauth_core.logging_config import setup_logging

    setup_logging(service_name="spaces-auth", json_output=True)
"""

import logging
import sys
from contextvars import ContextVar
from typing import Any, Dict

import structlog

from .phone import redact_phones_in_text

service_name_var: ContextVar[str] = ContextVar("service_name", default="unknown")


def add_service_name(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Stamp every event with the configured service name."""
    event_dict.setdefault("service", service_name_var.get())
    return event_dict


def redact_phone_numbers(logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Mask any E.164 number in string values of an event."""
    for key, value in event_dict.items():
        if isinstance(value, str):
            event_dict[key] = redact_phones_in_text(value)
    return event_dict


def setup_logging(
    service_name: str = "phoneauth",
    level: str = "INFO",
    json_output: bool = True,
    redact_phones: bool = True,
) -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        service_name: Name of the service (e.g., "spaces-auth")
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_output: Render JSON (production) or console lines (development)
        redact_phones: Mask phone numbers in all events
    """
    service_name_var.set(service_name)
    log_level = getattr(logging, level.upper(), logging.INFO)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_service_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]
    if redact_phones:
        processors.append(redact_phone_numbers)
    processors.append(
        structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)

    structlog.get_logger(__name__).info("logging_configured", service=service_name)
