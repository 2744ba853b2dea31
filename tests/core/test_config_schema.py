"""Tests for config validation models."""

import pytest
from pydantic import ValidationError

from annostore.core.config_schema import AnnostoreConfig, LoggingConfig, ServerSettings, parse_listen_addr


class TestParseListenAddr:
    @pytest.mark.parametrize(
        ("addr", "expected"),
        [
            (":9119", ("0.0.0.0", 9119)),
            ("127.0.0.1:8080", ("127.0.0.1", 8080)),
            ("localhost:80", ("localhost", 80)),
            ("[::1]:9119", ("::1", 9119)),
        ],
    )
    def test_valid(self, addr, expected):
        assert parse_listen_addr(addr) == expected

    @pytest.mark.parametrize("addr", ["9119", "host:", "host:http", ":0", ":70000"])
    def test_invalid(self, addr):
        with pytest.raises(ValueError):
            parse_listen_addr(addr)


class TestServerSettings:
    def test_defaults(self):
        s = ServerSettings()
        assert s.listen_addr == ":9119"
        assert s.endpoint == "/annotations"
        assert s.metrics_endpoint == "/metrics"

    def test_trailing_slash_stripped(self):
        assert ServerSettings(endpoint="/api/annotations/").endpoint == "/api/annotations"

    def test_relative_endpoint_rejected(self):
        with pytest.raises(ValidationError):
            ServerSettings(endpoint="annotations")

    def test_endpoints_must_differ(self):
        with pytest.raises(ValidationError, match="must differ"):
            ServerSettings(endpoint="/x", metrics_endpoint="/x/")

    def test_bad_listen_addr(self):
        with pytest.raises(ValidationError):
            ServerSettings(listen_addr="everywhere")


class TestLoggingConfig:
    def test_level_uppercased(self):
        assert LoggingConfig(level="warning").level == "WARNING"

    def test_unknown_level(self):
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")


class TestAnnostoreConfig:
    def test_nested_dicts(self):
        cfg = AnnostoreConfig.model_validate(
            {"storage": "local:/tmp/x.db", "server": {"listen_addr": ":1234"}, "logging": {"file": "/tmp/a.log"}}
        )
        assert cfg.server.port == 1234
        assert cfg.logging.file == "/tmp/a.log"

    def test_storage_needs_backend(self):
        with pytest.raises(ValidationError):
            AnnostoreConfig(storage="/tmp/x.db")

    def test_extra_sections_allowed(self):
        cfg = AnnostoreConfig.model_validate({"custom": {"anything": 1}})
        assert cfg.model_extra == {"custom": {"anything": 1}}
