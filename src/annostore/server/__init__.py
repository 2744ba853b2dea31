"""HTTP boundary: FastAPI app and Prometheus metrics."""

from .app import create_app
from .metrics import ServerMetrics, TagStatsCollector

__all__ = ["ServerMetrics", "TagStatsCollector", "create_app"]
