"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

catalog_fetches = Counter(
    'catalog_fetches_total',
    'Total catalog fetches from the commerce backend',
    ['status'],
    registry=registry
)

checkout_submissions = Counter(
    'checkout_submissions_total',
    'Total checkout submissions to the commerce backend',
    ['booking_type', 'status'],
    registry=registry
)

gateway_duration = Histogram(
    'gateway_request_duration_seconds',
    'Commerce backend request duration in seconds',
    ['operation'],
    registry=registry
)

ancillary_fee_missing = Counter(
    'ancillary_fee_missing_total',
    'Bookings composed without a parking fee because the category has no mapping',
    ['category'],
    registry=registry
)

cache_hits = Counter(
    'cache_hits_total',
    'Total cache hits',
    ['cache_key'],
    registry=registry
)

cache_misses = Counter(
    'cache_misses_total',
    'Total cache misses',
    ['cache_key'],
    registry=registry
)

webhook_deliveries = Counter(
    'webhook_deliveries_total',
    'Total webhook delivery attempts',
    ['status'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)

catalog_size = Gauge(
    'catalog_vehicles',
    'Number of vehicles in the cached catalog',
    registry=registry
)


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    from prometheus_client import generate_latest
    return generate_latest(registry).decode('utf-8')
