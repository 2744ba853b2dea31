"""Prometheus metrics for the annotation server.

Each app gets its own ``CollectorRegistry``: the per-tag gauge is derived
from ``tag_stats()`` at scrape time, and request counters/latencies are
recorded by the HTTP middleware.
"""

from __future__ import annotations

from loguru import logger
from prometheus_client import CollectorRegistry, Counter, Histogram, generate_latest
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from annostore.storage.base import AnnotationStore, StorageError

TAG_GAUGE_NAME = "annotations_total"
TAG_GAUGE_HELP = "Number of annotations per tag."


class TagStatsCollector(Collector):
    """Publishes ``annotations_total{tag=...}``, recomputed on every scrape."""

    def __init__(self, store: AnnotationStore):
        self._store = store

    def describe(self):
        yield GaugeMetricFamily(TAG_GAUGE_NAME, TAG_GAUGE_HELP, labels=["tag"])

    def collect(self):
        family = GaugeMetricFamily(TAG_GAUGE_NAME, TAG_GAUGE_HELP, labels=["tag"])
        try:
            stats = self._store.tag_stats()
        except StorageError as e:
            logger.error(f"stats err: {e}")
            yield family
            return

        for tag, count in sorted(stats.items()):
            family.add_metric([tag], count)
        yield family


class ServerMetrics:
    """Registry plus the request instruments used by the HTTP layer."""

    def __init__(self, store: AnnotationStore, registry: CollectorRegistry | None = None):
        self.registry = registry or CollectorRegistry()
        self.registry.register(TagStatsCollector(store))
        self.requests = Counter(
            "annostore_http_requests_total",
            "Total HTTP requests handled",
            ["method", "path", "status"],
            registry=self.registry,
        )
        self.latency = Histogram(
            "annostore_http_request_duration_seconds",
            "Latency of HTTP requests in seconds",
            ["method", "path"],
            registry=self.registry,
        )

    def observe(self, method: str, path: str, status: int, duration: float) -> None:
        self.requests.labels(method=method, path=path, status=str(status)).inc()
        self.latency.labels(method=method, path=path).observe(duration)

    def render(self) -> bytes:
        return generate_latest(self.registry)
