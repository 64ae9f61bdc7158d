"""
Prometheus metrics.

GET /metrics serves request latency and status counts plus quote calculation
counters. It is unauthenticated; expose it only to the monitoring network.
"""
import os
import time

from flask import Blueprint, Response, g, request
from prometheus_client import (
    CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Histogram, generate_latest, multiprocess
)

metrics_bp = Blueprint('metrics', __name__)

# Under Gunicorn each worker writes to PROMETHEUS_MULTIPROC_DIR and the
# endpoint aggregates them into a fresh registry
MULTIPROCESS_MODE = 'PROMETHEUS_MULTIPROC_DIR' in os.environ

_collect_registry = REGISTRY
if MULTIPROCESS_MODE:
    _collect_registry = CollectorRegistry()
    multiprocess.MultiProcessCollector(_collect_registry)

http_requests_total = Counter(
    'http_requests_total',
    'HTTP requests by endpoint and status',
    ['method', 'endpoint', 'http_status'],
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request latency in seconds',
    ['method', 'endpoint'],
    buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

price_quote_calculations_total = Counter(
    'price_quote_calculations_total',
    'Price quote calculations by operation and escalation status',
    ['operation', 'escalation_status'],
)


def record_quote_calculation(operation, escalation_status):
    """Count one preview, create or update by its escalation outcome."""
    price_quote_calculations_total.labels(
        operation=operation,
        escalation_status=escalation_status or 'unknown',
    ).inc()


def setup_metrics_instrumentation(app):
    """Time every request and count it by endpoint and status code."""

    @app.before_request
    def start_timer():
        g.request_started_at = time.perf_counter()

    @app.after_request
    def observe_request(response):
        started = g.pop('request_started_at', None)
        if started is None:
            return response

        endpoint = request.endpoint or 'unknown'
        http_request_duration_seconds.labels(request.method, endpoint).observe(time.perf_counter() - started)
        http_requests_total.labels(request.method, endpoint, response.status_code).inc()
        return response


@metrics_bp.route('/metrics')
def metrics():
    return Response(generate_latest(_collect_registry), mimetype=CONTENT_TYPE_LATEST)
