"""Prometheus metrics for index builds and queries."""

from __future__ import annotations

from contextlib import contextmanager
import time
from typing import TYPE_CHECKING

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, Gauge, Histogram, generate_latest, write_to_textfile


if TYPE_CHECKING:
    from collections.abc import Generator
    from pathlib import Path


INDEX_BUILD_LATENCY = Histogram(
    "archive_search_index_build_seconds",
    "Index build latency in seconds",
    ["strategy"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 30.0),
)

INDEX_DOC_COUNT = Gauge(
    "archive_search_index_documents",
    "Documents in the most recently built index",
    ["strategy"],
)

SEARCH_LATENCY = Histogram(
    "archive_search_query_seconds",
    "Query latency in seconds",
    ["mode"],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5),
)

SEARCH_COUNT = Counter(
    "archive_search_queries_total",
    "Total queries served",
    ["mode", "status"],
)


@contextmanager
def track_latency(histogram: Histogram, **labels: str) -> Generator[None, None, None]:
    """Context manager to track operation latency."""
    start = time.perf_counter()
    try:
        yield
    finally:
        histogram.labels(**labels).observe(time.perf_counter() - start)


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST


def write_metrics(path: Path) -> None:
    """Dump the current metrics in text exposition format (node-exporter textfile style)."""
    write_to_textfile(str(path), registry=REGISTRY)
