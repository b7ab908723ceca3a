"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Gauge, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
payments_reconciled_total = Counter(
    "payments_reconciled_total",
    "Payments applied to local state",
    ["payment_type", "source"],  # credits/invoice, verify/confirm/webhook
)

payments_duplicate_total = Counter(
    "payments_duplicate_total",
    "Verifications of an already reconciled payment",
    ["source"],
)

payments_not_completed_total = Counter(
    "payments_not_completed_total",
    "Verifications where the provider had not settled the payment",
)

checkout_sessions_created_total = Counter(
    "checkout_sessions_created_total",
    "Checkout sessions / payment intents created",
    ["payment_type"],
)

credit_operations_total = Counter(
    "credit_operations_total",
    "Total credit ledger operations",
    ["operation"],  # CREDIT, DEBIT
)

insufficient_credits_total = Counter(
    "insufficient_credits_total",
    "Total debit attempts rejected for insufficient balance",
)

video_generations_total = Counter(
    "video_generations_total",
    "Video generation calls",
    ["kind", "status"],  # deal/insight, success/failed
)

notifications_total = Counter(
    "notifications_total",
    "Notification delivery attempts",
    ["status"],  # sent, retry, failed, dispatch_error
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 0.5=half-open, 1=open)",
    ["name"],
)

# Histograms
video_generation_duration_seconds = Histogram(
    "video_generation_duration_seconds",
    "Video generation endpoint latency",
    buckets=[5, 15, 30, 60, 120, 300],
)

stripe_request_duration_seconds = Histogram(
    "stripe_request_duration_seconds",
    "Stripe API request duration",
    ["method"],
    buckets=[0.1, 0.5, 1, 2, 5, 10],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
