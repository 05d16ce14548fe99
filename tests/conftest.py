"""Test configuration for cartridge-sink."""

import json
from typing import Any, Optional

import pytest

VARIABLE_SCALE_DECIMAL = "io.debezium.data.VariableScaleDecimal"


def _column(name: str, type_: str = "int32", semantic: Optional[str] = None, **parameters):
    column: dict[str, Any] = {"type": type_, "optional": True, "field": name}
    if semantic:
        column["name"] = semantic
    if parameters:
        column["parameters"] = {k: str(v) for k, v in parameters.items()}
    return column


def _value_envelope(
    op: str,
    before: Optional[dict[str, Any]] = None,
    after: Optional[dict[str, Any]] = None,
    columns: Optional[list[dict[str, Any]]] = None,
    table: str = "orders",
    with_schema: bool = True,
) -> dict[str, Any]:
    columns = columns if columns is not None else [_column("id"), _column("total")]
    envelope: dict[str, Any] = {
        "payload": {
            "before": before,
            "after": after,
            "source": {"connector": "oracle", "schema": "INVENTORY", "table": table},
            "op": op,
            "ts_ms": 1640995200000,
        }
    }
    if with_schema:
        envelope["schema"] = {
            "type": "struct",
            "optional": False,
            "name": f"server.inventory.{table}.Envelope",
            "fields": [
                {
                    "type": "struct",
                    "optional": True,
                    "field": "before",
                    "name": f"server.inventory.{table}.Value",
                    "fields": columns,
                },
                {
                    "type": "struct",
                    "optional": True,
                    "field": "after",
                    "name": f"server.inventory.{table}.Value",
                    "fields": columns,
                },
                {"type": "struct", "optional": False, "field": "source", "fields": []},
                {"type": "string", "optional": False, "field": "op"},
                {"type": "int64", "optional": True, "field": "ts_ms"},
            ],
        }
    return envelope


def _key_envelope(
    payload: dict[str, Any], columns: Optional[list[dict[str, Any]]] = None
) -> dict[str, Any]:
    columns = columns if columns is not None else [_column("id")]
    return {
        "schema": {
            "type": "struct",
            "optional": False,
            "name": "server.inventory.orders.Key",
            "fields": columns,
        },
        "payload": payload,
    }


@pytest.fixture
def column():
    """Build a Connect field schema for a column."""
    return _column


@pytest.fixture
def make_value():
    """Build a Debezium value envelope."""
    return _value_envelope


@pytest.fixture
def make_key():
    """Build a Debezium key envelope."""
    return _key_envelope


@pytest.fixture
def price_columns():
    """Columns of a table with an imprecise numeric column."""
    return [_column("sku", "string"), _column("price", "struct", VARIABLE_SCALE_DECIMAL)]


@pytest.fixture
def sample_config_file(tmp_path):
    """Create a sample configuration file for testing."""
    config_content = """
destination:
  type: postgresql
  connection_string: "postgresql://localhost:5432/test_warehouse"
  target_schema: "replica"
  max_connections: 3

tables:
  - topic: "oracle.INVENTORY.ORDERS"
    target_table: "orders"
  - source_table: "CUSTOMERS"
    target_table: "customers"

translation:
  identifier_policy: strict

monitoring:
  prometheus:
    enabled: false
  log_level: "DEBUG"

error_handling:
  fail_fast: true
"""

    config_file = tmp_path / "test_config.yaml"
    config_file.write_text(config_content)
    return config_file


@pytest.fixture
def events_file(tmp_path):
    """Create a newline-delimited JSON events file for testing."""
    lines = [
        {"topic": "oracle.INVENTORY.ORDERS", "value": _value_envelope("r", after={"id": 1, "total": 10})},
        {"topic": "oracle.INVENTORY.ORDERS", "value": _value_envelope("c", after={"id": 2, "total": 30})},
        {
            "topic": "oracle.INVENTORY.ORDERS",
            "value": _value_envelope(
                "u", before={"id": 2, "total": 30}, after={"id": 2, "total": 35}
            ),
        },
        {"topic": "oracle.INVENTORY.ORDERS", "value": None},
    ]

    events = tmp_path / "events.jsonl"
    events.write_text("\n".join(json.dumps(line) for line in lines) + "\n\n")
    return events
