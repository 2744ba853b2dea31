"""annostore: a tag-indexed annotation store for time-series dashboards."""

__version__ = "0.4.0"
