"""
Prometheus metrics configuration
"""
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from prometheus_client.registry import REGISTRY

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'rigidity_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'rigidity_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0)
)

http_errors_total = Counter(
    'rigidity_http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# LLM Request Metrics
# ============================================================================

llm_requests_total = Counter(
    'rigidity_llm_requests_total',
    'Total number of chat-completion requests',
    ['model', 'status']
)

llm_request_duration_seconds = Histogram(
    'rigidity_llm_request_duration_seconds',
    'Chat-completion request duration in seconds',
    ['model'],
    buckets=(0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0)
)

llm_tokens_total = Counter(
    'rigidity_llm_tokens_total',
    'Total number of tokens reported by the provider',
    ['model', 'type']  # type: 'input' or 'output'
)

# ============================================================================
# Deformation Metrics
# ============================================================================

deformation_requests_total = Counter(
    'rigidity_deformation_requests_total',
    'Deformation requests by reply variant and outcome',
    ['mode', 'outcome']  # outcome: 'success' or an error category
)

skipped_ids_total = Counter(
    'rigidity_skipped_ids_total',
    'Keys dropped while decoding model replies',
    ['reason']  # reason: 'non_numeric' or 'unknown_id'
)


def get_metrics() -> bytes:
    """Render all registered metrics in Prometheus text format"""
    return generate_latest(REGISTRY)


def get_metrics_content_type() -> str:
    """Content type for the metrics endpoint"""
    return CONTENT_TYPE_LATEST
