"""
Prometheus metrics for medallion-dwh batch loads

Step timings are already persisted in the per-layer load logs; these metrics
expose the same signals to a scraper when the CLI runs with --metrics-port.
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# STEP METRICS
# =======================

step_duration_seconds = Histogram(
    name="dwh_step_duration_seconds",
    documentation="Wall-clock duration of TRUNCATE/INSERT steps in seconds",
    labelnames=["layer", "job_name", "step_name"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0],
    registry=REGISTRY,
)

rows_written_total = Counter(
    name="dwh_rows_written_total",
    documentation="Total number of rows appended to warehouse tables",
    labelnames=["layer", "job_name"],
    registry=REGISTRY,
)

step_failures_total = Counter(
    name="dwh_step_failures_total",
    documentation="Total number of failed TRUNCATE/INSERT steps",
    labelnames=["layer", "job_name", "step_name", "error_type"],
    registry=REGISTRY,
)

# =======================
# BATCH METRICS
# =======================

batches_total = Counter(
    name="dwh_batches_total",
    documentation="Total number of layer batches run",
    labelnames=["layer", "status"],  # status: committed, rolled_back
    registry=REGISTRY,
)

batch_duration_seconds = Histogram(
    name="dwh_batch_duration_seconds",
    documentation="Wall-clock duration of a whole layer batch in seconds",
    labelnames=["layer"],
    buckets=[0.1, 0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 300.0, 900.0],
    registry=REGISTRY,
)


# =======================
# HELPER FUNCTIONS
# =======================

def generate_metrics() -> bytes:
    """
    Generate Prometheus metrics in text format

    Returns:
        Metrics in Prometheus text format
    """
    return generate_latest(REGISTRY)


def get_content_type() -> str:
    """Content type for Prometheus metrics"""
    return CONTENT_TYPE_LATEST


def start_metrics_server(port: Optional[int] = None) -> None:
    """
    Start HTTP server for Prometheus metrics

    Args:
        port: Port to listen on (defaults to env var METRICS_PORT or 8000)
    """
    # Imported lazily so importing this module never binds a port
    from prometheus_client import start_http_server

    metrics_port = port or int(os.getenv("METRICS_PORT", "8000"))
    start_http_server(metrics_port, registry=REGISTRY)


def record_step(layer: str, job_name: str, step_name: str, duration_seconds: float) -> None:
    """
    Record the duration of a successful step.

    Args:
        layer: Warehouse layer (bronze, silver, gold)
        job_name: Target table of the step
        step_name: TRUNCATE or INSERT
        duration_seconds: Measured wall-clock duration
    """
    step_duration_seconds.labels(
        layer=layer, job_name=job_name, step_name=step_name
    ).observe(duration_seconds)


def record_rows_written(layer: str, job_name: str, row_count: int) -> None:
    """Count rows appended by an INSERT step."""
    if row_count > 0:
        rows_written_total.labels(layer=layer, job_name=job_name).inc(row_count)


def record_step_failure(layer: str, job_name: str, step_name: str, error_type: str) -> None:
    """Count a failed step."""
    step_failures_total.labels(
        layer=layer, job_name=job_name, step_name=step_name, error_type=error_type
    ).inc()


def record_batch(layer: str, committed: bool, duration_seconds: float) -> None:
    """
    Record the outcome of a whole layer batch.

    Args:
        layer: Warehouse layer
        committed: True if the batch committed, False if it rolled back
        duration_seconds: Total batch duration
    """
    status = "committed" if committed else "rolled_back"
    batches_total.labels(layer=layer, status=status).inc()
    batch_duration_seconds.labels(layer=layer).observe(duration_seconds)
