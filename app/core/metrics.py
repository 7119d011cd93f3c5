# app/core/metrics.py
from prometheus_client import Counter, Histogram

# Métricas de Prometheus para el API
api_requests_total = Counter(
    'watchtrack_api_requests_total',
    'Total API requests',
    ['method', 'endpoint', 'status']
)

api_request_duration_seconds = Histogram(
    'watchtrack_api_request_duration_seconds',
    'API request duration in seconds',
    ['method', 'endpoint']
)

progress_syncs_total = Counter(
    'watchtrack_progress_syncs_total',
    'Total progression sync operations',
    ['status']
)

segments_discarded_total = Counter(
    'watchtrack_segments_discarded_total',
    'Malformed watched segments dropped during sync'
)
