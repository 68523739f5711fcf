"""Prometheus metrics for monitoring balance lookups, payments, and ledger health"""

from prometheus_client import Counter, Histogram

# Flow metrics
balance_lookup_counter = Counter(
    "billpay_balance_lookups_total",
    "Balance retrievals by outcome",
    ["outcome"],  # loaded | nothing_to_pay | not_found | invalid | failed
)

payment_counter = Counter(
    "billpay_payments_total",
    "Bill payment attempts by outcome",
    ["outcome"],  # succeeded | nothing_to_pay | rejected | not_found | failed | unconfirmed
)

# Ledger API metrics
gateway_latency_histogram = Histogram(
    "billpay_gateway_latency_seconds",
    "Ledger API response time",
    ["operation"],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

gateway_failure_counter = Counter(
    "billpay_gateway_failures_total",
    "Failed ledger API calls",
    ["operation"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_balance_lookup(outcome: str) -> None:
    balance_lookup_counter.labels(outcome=outcome).inc()


def record_payment(outcome: str) -> None:
    """Record payment outcome for monitoring success and rejection rates"""
    payment_counter.labels(outcome=outcome).inc()
