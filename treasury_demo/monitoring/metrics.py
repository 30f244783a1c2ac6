"""
Prometheus metrics for the demo backend.

Tracks:
- Onboarding requests by outcome
- Outbound payments by network and forced settlement outcome
- Stripe API calls, durations and errors
"""
from prometheus_client import Counter, Histogram

# Onboarding metrics
onboarding_requests_total = Counter(
    "onboarding_requests_total",
    "Total number of onboarding requests",
    ["outcome"],  # onboarding_link, skipped, invalid
)

# Outbound payment metrics
outbound_payments_total = Counter(
    "outbound_payments_total",
    "Total outbound payments created",
    ["network", "settlement"],  # settlement: unforced, posted, failed
)

outbound_payment_amount_minor_units = Histogram(
    "outbound_payment_amount_minor_units",
    "Outbound payment amounts in minor currency units",
    buckets=(100, 500, 1000, 5000, 10000, 50000, 100000, 500000, 1000000),
)

# Stripe API metrics
stripe_api_requests_total = Counter(
    "stripe_api_requests_total",
    "Total Stripe API requests",
    ["operation", "status"],
)

stripe_api_errors_total = Counter(
    "stripe_api_errors_total",
    "Total Stripe API errors",
    ["error_type"],  # transient, permanent, rate_limit
)

stripe_api_duration_seconds = Histogram(
    "stripe_api_duration_seconds",
    "Stripe API call duration in seconds",
    ["operation"],
    buckets=(0.1, 0.25, 0.5, 0.75, 1.0, 2.5, 5.0, 7.5, 10.0),
)


class MetricsCollector:
    """Helper class for collecting metrics."""

    @staticmethod
    def record_onboarding(outcome: str) -> None:
        """Record an onboarding request."""
        onboarding_requests_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_outbound_payment(network: str, settlement: str, amount: int) -> None:
        """Record a created outbound payment."""
        outbound_payments_total.labels(network=network, settlement=settlement).inc()
        outbound_payment_amount_minor_units.observe(amount)

    @staticmethod
    def record_stripe_api_call(
        operation: str, status: str, duration_seconds: float
    ) -> None:
        """Record Stripe API call."""
        stripe_api_requests_total.labels(operation=operation, status=status).inc()
        stripe_api_duration_seconds.labels(operation=operation).observe(duration_seconds)

    @staticmethod
    def record_stripe_api_error(error_type: str) -> None:
        """Record Stripe API error."""
        stripe_api_errors_total.labels(error_type=error_type).inc()


# Export singleton instance
metrics = MetricsCollector()
