"""Pydantic models for config validation.

``Config.validated()`` turns the merged config dict into a typed
``AnnostoreConfig``. The HTTP layer only ever sees ``ServerSettings``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, field_validator, model_validator

DEFAULT_HOST = "0.0.0.0"


def parse_listen_addr(addr: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``:port``) into its parts.

    An empty host means all interfaces.

    Raises:
        ValueError: if the port is missing, not an integer, or out of range.
    """
    host, sep, port_str = addr.strip().rpartition(":")
    if not sep:
        raise ValueError(f"listen address {addr!r} must look like [host]:port")
    try:
        port = int(port_str)
    except ValueError:
        raise ValueError(f"listen address {addr!r} has a non-numeric port") from None
    if not 1 <= port <= 65535:
        raise ValueError(f"listen address {addr!r}: port must be 1-65535")
    return host.strip("[]") or DEFAULT_HOST, port


class ServerSettings(BaseModel):
    """Settings for the HTTP boundary."""

    listen_addr: str = ":9119"
    endpoint: str = "/annotations"
    metrics_endpoint: str = "/metrics"

    @field_validator("endpoint", "metrics_endpoint")
    @classmethod
    def _absolute_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError(f"endpoint {v!r} must start with '/'")
        return v.rstrip("/") or "/"

    @field_validator("listen_addr")
    @classmethod
    def _valid_listen_addr(cls, v: str) -> str:
        parse_listen_addr(v)
        return v

    @model_validator(mode="after")
    def _distinct_endpoints(self) -> ServerSettings:
        if self.endpoint == self.metrics_endpoint:
            raise ValueError("endpoint and metrics_endpoint must differ")
        return self

    @property
    def host(self) -> str:
        return parse_listen_addr(self.listen_addr)[0]

    @property
    def port(self) -> int:
        return parse_listen_addr(self.listen_addr)[1]


class LoggingConfig(BaseModel):
    """loguru sink settings."""

    level: str = "INFO"
    file: str | None = None

    @field_validator("level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level {v!r}")
        return level


class AnnostoreConfig(BaseModel):
    """Root configuration model.

    Uses ``extra="allow"`` so deployments can carry their own sections.
    """

    model_config = ConfigDict(extra="allow")

    storage: str = "local:/tmp/annotations.db"
    server: ServerSettings = ServerSettings()
    logging: LoggingConfig = LoggingConfig()

    @field_validator("storage")
    @classmethod
    def _has_backend_prefix(cls, v: str) -> str:
        if ":" not in v:
            raise ValueError(f"storage {v!r} must look like <backend>:<options>")
        return v
