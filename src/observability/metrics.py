"""
Prometheus metrics collection for the wastewater pipeline

Ingestion runs as a short-lived batch job, so besides the usual text
exposition the registry can be written to a node_exporter textfile.
"""
import os
from typing import Optional

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    write_to_textfile,
)

from src.core.models import BatchReport


# Global registry for metrics
REGISTRY = CollectorRegistry()


# =======================
# INGESTION METRICS
# =======================

# Per-element outcome counter
samples_total = Counter(
    name="wastewater_samples_total",
    documentation="Input elements processed by the sample store",
    labelnames=["status"],  # status: inserted, skipped_duplicate, failed_conversion
    registry=REGISTRY,
)

# Batch outcome counter
batches_total = Counter(
    name="wastewater_batches_total",
    documentation="Insert batches attempted",
    labelnames=["status"],  # status: success, error
    registry=REGISTRY,
)

# Batch duration histogram
batch_duration_seconds = Histogram(
    name="wastewater_batch_duration_seconds",
    documentation="Time spent writing one batch to the store",
    buckets=[0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
    registry=REGISTRY,
)

# Size of the last downloaded file
fetch_bytes = Gauge(
    name="wastewater_fetch_bytes",
    documentation="Size in bytes of the last downloaded source file",
    registry=REGISTRY,
)

# Unix time of the last successful batch
last_success_timestamp = Gauge(
    name="wastewater_last_success_timestamp_seconds",
    documentation="Unix time of the last batch that committed",
    registry=REGISTRY,
)


# =======================
# EXPORT
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


def write_metrics(path: Optional[str] = None) -> None:
    """
    Write the registry to a textfile-collector file

    Args:
        path: Output path (defaults to env var METRICS_FILE)

    Raises:
        ValueError: If no path is given or configured
    """
    metrics_path = path or os.getenv("METRICS_FILE")
    if not metrics_path:
        raise ValueError("No metrics file path given. Pass a path or set METRICS_FILE.")
    write_to_textfile(metrics_path, REGISTRY)


# =======================
# BATCH HELPERS
# =======================

def record_batch_report(report: BatchReport) -> None:
    """
    Record the outcome counts of a committed batch.

    Args:
        report: Result of SampleStore.insert_batch
    """
    samples_total.labels(status="inserted").inc(report.inserted)
    samples_total.labels(status="skipped_duplicate").inc(report.skipped_duplicate)
    samples_total.labels(status="failed_conversion").inc(report.failed_conversion)
    batches_total.labels(status="success").inc()
    last_success_timestamp.set_to_current_time()


def record_batch_failure() -> None:
    """Record a batch that was rolled back."""
    batches_total.labels(status="error").inc()
