"""
Prometheus metrics endpoint.

Exposes system metrics for monitoring.
"""
from fastapi import APIRouter, Response
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

router = APIRouter()

# ============================================
# HTTP Request Metrics
# ============================================

http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# ============================================
# Webhook Delivery Metrics
# ============================================

webhook_deliveries = Counter(
    'webhook_deliveries_total',
    'Total payment webhook deliveries by outcome',
    ['event_type', 'status']
)

webhook_signature_rejected = Counter(
    'webhook_signature_rejected_total',
    'Deliveries rejected for a missing or invalid signature'
)

stale_deliveries_reconciled = Counter(
    'webhook_stale_deliveries_reconciled_total',
    'Deliveries stuck in processing that were marked as failed'
)

# ============================================
# Business Metrics - Access
# ============================================

accounts_provisioned = Counter(
    'accounts_provisioned_total',
    'Accounts created for first-time buyers'
)

purchases_recorded = Counter(
    'purchases_recorded_total',
    'Purchases recorded with access granted',
    ['product_id']
)

access_revoked = Counter(
    'access_revoked_total',
    'Purchases whose access was revoked',
    ['event_type']
)

# ============================================
# Rate Limiting Metrics
# ============================================

rate_limit_exceeded = Counter(
    'rate_limit_exceeded_total',
    'Total requests blocked by rate limiting',
    ['scope']
)


# ============================================
# Metrics Helper Functions
# ============================================

def track_request(method: str, endpoint: str, status: int, duration_seconds: float):
    """
    Record HTTP request metrics.
    
    Call this after each request.
    """
    http_requests_total.labels(
        method=method,
        endpoint=endpoint,
        status=status
    ).inc()
    
    http_request_duration.labels(
        method=method,
        endpoint=endpoint
    ).observe(duration_seconds)


def track_delivery(event_type: str, status: str):
    """Record the terminal outcome of a webhook delivery."""
    webhook_deliveries.labels(event_type=event_type, status=status).inc()


def track_signature_rejected():
    """Record a delivery rejected by signature verification."""
    webhook_signature_rejected.inc()


def track_stale_reconciled(count: int):
    """Record deliveries closed by the reconciliation sweep."""
    stale_deliveries_reconciled.inc(count)


def track_account_provisioned():
    """Record a new account created by fulfillment."""
    accounts_provisioned.inc()


def track_purchase_recorded(product_id: str | None):
    """Record a purchase row inserted by fulfillment."""
    purchases_recorded.labels(product_id=product_id or "unknown").inc()


def track_access_revoked(event_type: str):
    """Record access removed by a refund, chargeback or cancellation."""
    access_revoked.labels(event_type=event_type).inc()


def track_rate_limit_exceeded(scope: str):
    """Record a rate limit block."""
    rate_limit_exceeded.labels(scope=scope).inc()


# ============================================
# Prometheus Endpoint
# ============================================

@router.get("/metrics")
async def metrics():
    """
    Prometheus metrics endpoint.
    
    Returns all registered metrics in Prometheus format.
    """
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)
