"""
Prometheus Metrics
==================
Counters and histograms for the OTP flow.
"""

from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# Custom registry so hosts can mount it next to their own
PHONEAUTH_REGISTRY = CollectorRegistry()

OTP_SEND_TOTAL = Counter(
    name="phoneauth_otp_send_total",
    documentation="OTP send requests by outcome",
    labelnames=["outcome"],
    registry=PHONEAUTH_REGISTRY,
)

OTP_VERIFY_TOTAL = Counter(
    name="phoneauth_otp_verify_total",
    documentation="OTP verify requests by outcome",
    labelnames=["outcome"],
    registry=PHONEAUTH_REGISTRY,
)

RATE_LIMIT_DENIALS = Counter(
    name="phoneauth_rate_limit_denials_total",
    documentation="Rate limit denials by keyspace and reason",
    labelnames=["scope", "reason"],
    registry=PHONEAUTH_REGISTRY,
)

DELIVERY_LATENCY = Histogram(
    name="phoneauth_otp_delivery_seconds",
    documentation="Time spent delivering OTP codes",
    labelnames=["mode", "outcome"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0],
    registry=PHONEAUTH_REGISTRY,
)


def get_metrics_text() -> bytes:
    """Metrics in Prometheus text exposition format."""
    return generate_latest(PHONEAUTH_REGISTRY)


__all__ = [
    "PHONEAUTH_REGISTRY",
    "OTP_SEND_TOTAL",
    "OTP_VERIFY_TOTAL",
    "RATE_LIMIT_DENIALS",
    "DELIVERY_LATENCY",
    "CONTENT_TYPE_LATEST",
    "get_metrics_text",
]
