"""Tests for cartridge-sink configuration."""

import pytest
from pydantic import ValidationError

from cartridge_sink.core.config import (
    DestinationConfig,
    PrometheusConfig,
    SinkConfig,
    TableConfig,
)


def test_load_config_from_file(sample_config_file):
    """Test loading configuration from YAML file."""
    config = SinkConfig.from_file(sample_config_file)

    assert config.destination.type == "postgresql"
    assert config.destination.target_schema == "replica"
    assert config.destination.max_connections == 3
    assert len(config.tables) == 2
    assert config.translation.identifier_policy == "strict"
    assert config.monitoring.log_level == "DEBUG"
    assert config.error_handling.fail_fast is True


def test_missing_config_file(tmp_path):
    """Test loading a configuration file that does not exist."""
    with pytest.raises(FileNotFoundError, match="Configuration file not found"):
        SinkConfig.from_file(tmp_path / "missing.yaml")


def test_default_config_is_dry_run():
    """Test that an empty configuration targets the dry-run executor."""
    config = SinkConfig()

    assert config.destination.type == "dry_run"
    assert config.tables == []
    assert config.dry_run is False
    assert config.error_handling.fail_fast is False


def test_destination_validation():
    """Test destination configuration validation."""
    with pytest.raises(ValidationError, match="Destination type must be one of"):
        DestinationConfig(type="mongodb", connection_string="mongodb://localhost")

    with pytest.raises(ValidationError, match="connection_string is required"):
        DestinationConfig(type="postgresql")

    with pytest.raises(ValidationError, match="min_connections cannot exceed"):
        DestinationConfig(
            type="postgresql",
            connection_string="postgresql://localhost/db",
            min_connections=10,
            max_connections=2,
        )


def test_table_mapping_requires_selector():
    """Test that a table mapping needs a topic or a source table."""
    with pytest.raises(ValidationError, match="needs a topic or source_table"):
        TableConfig(target_table="orders")


def test_invalid_identifier_policy():
    """Test that unknown identifier policies are rejected."""
    with pytest.raises(ValidationError):
        SinkConfig(translation={"identifier_policy": "quote"})


def test_resolve_table(sample_config_file):
    """Test routing lookups by topic and source table."""
    config = SinkConfig.from_file(sample_config_file)

    assert config.resolve_table(topic="oracle.INVENTORY.ORDERS") == "orders"
    assert config.resolve_table(source_table="CUSTOMERS") == "customers"
    assert config.resolve_table(topic="unknown", source_table="CUSTOMERS") == "customers"
    assert config.resolve_table(topic="unknown", source_table="UNKNOWN") is None


def test_topic_mapping_takes_precedence():
    """Test that topic mappings win over source table mappings."""
    config = SinkConfig(
        tables=[
            TableConfig(source_table="ORDERS", target_table="orders_by_table"),
            TableConfig(topic="server.ORDERS", target_table="orders_by_topic"),
        ]
    )

    assert config.resolve_table("server.ORDERS", "ORDERS") == "orders_by_topic"


def test_prometheus_config_defaults():
    """Test default Prometheus configuration."""
    config = PrometheusConfig()
    assert config.enabled is False
    assert config.port == 8080


def test_prometheus_config_ignores_legacy_path():
    """Test that an old metrics path setting does not break loading."""
    config = SinkConfig(monitoring={"prometheus": {"enabled": True, "port": 9100, "path": "/m"}})

    assert config.monitoring.prometheus.port == 9100
    assert not hasattr(config.monitoring.prometheus, "path")
