"""Tests for environment settings and logging configuration."""

import json
import logging

import pytest
import structlog

from topoplan import Topology, configure_logging
from topoplan._logging import get_logger
from topoplan.settings import Settings, get_settings


class TestSettings:
    """Tests for Settings and get_settings."""

    def test_defaults(self) -> None:
        """Without environment variables the defaults apply."""
        settings = Settings()
        assert settings.region == "us-east-1"
        assert settings.availability_zones == ["us-east-1a", "us-east-1b", "us-east-1c"]
        assert settings.log_level == "INFO"
        assert settings.log_json is False

    def test_environment_override(self, monkeypatch) -> None:
        """TOPOPLAN_* variables override the defaults."""
        monkeypatch.setenv("TOPOPLAN_REGION", "eu-west-1")
        monkeypatch.setenv("TOPOPLAN_AVAILABILITY_ZONES", '["eu-west-1a", "eu-west-1b"]')
        settings = Settings()
        assert settings.region == "eu-west-1"
        assert settings.availability_zones == ["eu-west-1a", "eu-west-1b"]

    def test_context(self) -> None:
        """The emission context carries the region."""
        assert Settings(region="ap-south-1").context() == {"region": "ap-south-1"}

    def test_get_settings_is_cached(self) -> None:
        """get_settings returns the same instance until the cache is cleared."""
        assert get_settings() is get_settings()

    def test_topology_uses_settings(self, monkeypatch, network_config) -> None:
        """A Topology without explicit AZs or context reads them from settings."""
        monkeypatch.setenv("TOPOPLAN_REGION", "eu-west-1")
        monkeypatch.setenv("TOPOPLAN_AVAILABILITY_ZONES", '["eu-west-1a", "eu-west-1b"]')
        get_settings.cache_clear()

        topology = Topology()
        handle = topology.define_network(network_config("VPC1", "10.42.11.0/24"))
        assert len(handle.private_subnets) == 2

        network = next(op for op in topology.emit() if op.resource_type == "Network")
        assert network.parameters["region"] == "eu-west-1"
        assert network.parameters["availability_zones"] == ["eu-west-1a", "eu-west-1b"]


class TestConfigureLogging:
    """Tests for configure_logging."""

    @pytest.fixture(autouse=True)
    def reset_logging(self):
        yield
        topoplan_logger = logging.getLogger("topoplan")
        topoplan_logger.handlers.clear()
        topoplan_logger.setLevel(logging.NOTSET)
        structlog.reset_defaults()

    def test_attaches_handler(self) -> None:
        """A single handler is attached to the package logger."""
        configure_logging(log_level="DEBUG")
        configure_logging(log_level="DEBUG")
        topoplan_logger = logging.getLogger("topoplan")
        assert len(topoplan_logger.handlers) == 1
        assert topoplan_logger.level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self) -> None:
        """An unrecognised level name uses INFO."""
        configure_logging(log_level="chatty")
        assert logging.getLogger("topoplan").level == logging.INFO

    def test_json_output(self, capsys) -> None:
        """JSON format renders one object per event."""
        configure_logging(json_format=True, log_level="INFO")
        get_logger("topoplan.test").info("network_defined", network="VPC1")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "network_defined"
        assert record["network"] == "VPC1"
        assert record["level"] == "info"

    def test_level_from_environment(self, monkeypatch) -> None:
        """Without arguments the level comes from TOPOPLAN_LOG_LEVEL."""
        monkeypatch.setenv("TOPOPLAN_LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()
        configure_logging()
        assert logging.getLogger("topoplan").level == logging.DEBUG

    def test_argument_overrides_environment(self, monkeypatch) -> None:
        monkeypatch.setenv("TOPOPLAN_LOG_LEVEL", "DEBUG")
        get_settings.cache_clear()
        configure_logging(log_level="WARNING")
        assert logging.getLogger("topoplan").level == logging.WARNING

    def test_json_from_environment(self, monkeypatch, capsys) -> None:
        """TOPOPLAN_LOG_JSON switches the renderer to JSON."""
        monkeypatch.setenv("TOPOPLAN_LOG_JSON", "true")
        get_settings.cache_clear()
        configure_logging()
        get_logger("topoplan.test").info("plan_emitted", operations=3)

        record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
        assert record["event"] == "plan_emitted"
        assert record["operations"] == 3
