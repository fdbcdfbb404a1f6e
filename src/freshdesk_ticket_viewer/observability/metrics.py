from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

upstream_requests_total = Counter(
    "upstream_requests_total",
    "Number of Freshdesk API requests, by operation and outcome.",
    labelnames=("operation", "outcome"),
)
upstream_request_seconds = Histogram(
    "upstream_request_seconds",
    "Seconds spent waiting for Freshdesk, by operation.",
    labelnames=("operation",),
)
retrieval_failures_total = Counter(
    "retrieval_failures_total",
    "Number of retrieval requests answered with an error, by error kind.",
    labelnames=("kind",),
)


def render_latest(*, registry=REGISTRY) -> tuple[bytes, str]:
    return generate_latest(registry), CONTENT_TYPE_LATEST
