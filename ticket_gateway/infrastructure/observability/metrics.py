"""Prometheus metrics for monitoring checkout pricing, backend calls and the payment lifecycle"""

from prometheus_client import Counter, Histogram

# Pricing metrics
quote_counter = Counter(
    "ticket_gateway_quote_total",
    "Price previews computed",
    ["discounted"],  # yes | no
)

discount_applied_counter = Counter(
    "ticket_gateway_discount_applied_total",
    "Discount selections validated by the backend",
)

# Lifecycle metrics
status_transition_counter = Counter(
    "ticket_gateway_status_transition_total",
    "Transaction status changes acknowledged by the backend",
    ["event"],  # upload_proof | accept | reject | expire | cancel
)

payment_window_expired_counter = Counter(
    "ticket_gateway_payment_window_expired_total",
    "Payment windows that ran out while being watched",
)

# Backend API metrics
backend_failures_counter = Counter(
    "backend_failures_total",
    "Failed ticketing backend calls",
    ["operation"],
)

# Storage
selection_storage_failures_counter = Counter(
    "selection_storage_failures_total",
    "Discount selection storage errors (store falls back to memory)",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_quote(total_discount: int) -> None:
    """Record whether a preview carried any discount"""
    quote_counter.labels(discounted="yes" if total_discount > 0 else "no").inc()
