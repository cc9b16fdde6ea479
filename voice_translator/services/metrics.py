"""Prometheus metrics instrumentation for the voice translation engine.

Exposes metrics for monitoring latency, throughput, queue depth and
cache effectiveness of the translation pipeline. Metrics are exposed
via HTTP on port 8001 (configurable).

Metrics exported:
- voice_stage_latency_seconds: Histogram of processing time per pipeline stage
- voice_tasks_total: Counter of finished tasks by status
- voice_queue_depth: Gauge of tasks waiting for a batch
- voice_cache_requests_total: Counter of cache lookups by kind and result

Usage:
    from voice_translator.services.metrics import start_metrics_server, tasks_processed

    start_metrics_server(port=8001)
    tasks_processed.labels(status='resolved').inc()
"""

from prometheus_client import Histogram, Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

# Latency tracking per stage
stage_latency = Histogram(
    'voice_stage_latency_seconds',
    'Time spent in each pipeline stage',
    labelnames=['stage']  # stage: decode, normalize, recognize, translate, synthesize, pipeline
)

# Task outcome counters
tasks_processed = Counter(
    'voice_tasks_total',
    'Total translation tasks finished',
    labelnames=['status']  # status: resolved, partial, rejected, cache_hit, queue_full
)

# Pending queue depth
queue_depth_gauge = Gauge(
    'voice_queue_depth',
    'Number of translation tasks waiting to be batched'
)

# Cache effectiveness
cache_requests = Counter(
    'voice_cache_requests_total',
    'Cache lookups by entry kind and result',
    labelnames=['kind', 'result']  # result: hit, miss, error
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except OSError as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
