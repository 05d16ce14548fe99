"""Models of the CDC change-event envelope.

The shapes follow the Kafka Connect JSON converter output with schemas
enabled, as emitted by Debezium connectors::

    {"schema": {"type": "struct", "fields": [...]}, "payload": {...}}
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import MalformedEventError


class Operation(str, Enum):
    """Debezium operation codes."""

    READ = "r"
    CREATE = "c"
    UPDATE = "u"
    DELETE = "d"
    TRUNCATE = "t"
    MESSAGE = "m"

    @classmethod
    def for_code(cls, code: Optional[str]) -> Optional["Operation"]:
        """Return the operation for a code, or None if the code is unknown."""
        for operation in cls:
            if operation.value == code:
                return operation
        return None


class FieldSchema(BaseModel):
    """Schema of one field in a Connect struct."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    type: str
    field: Optional[str] = None
    name: Optional[str] = Field(None, description="Logical (semantic) type name")
    optional: bool = True
    parameters: dict[str, Any] = Field(default_factory=dict)
    fields: list["FieldSchema"] = Field(default_factory=list)

    def find(self, field_name: str) -> Optional["FieldSchema"]:
        """Find a direct child field by name."""
        for child in self.fields:
            if child.field == field_name:
                return child
        return None


FieldSchema.model_rebuild()


class KeyEnvelope(BaseModel):
    """Record key: the primary key columns of the changed row."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    schema_: Optional[FieldSchema] = Field(None, alias="schema")
    payload: dict[str, Any] = Field(default_factory=dict)


class ValuePayload(BaseModel):
    """Row images and metadata of one change."""

    model_config = ConfigDict(extra="ignore")

    before: Optional[dict[str, Any]] = None
    after: Optional[dict[str, Any]] = None
    op: str
    source: Optional[dict[str, Any]] = None
    ts_ms: Optional[int] = None

    @property
    def operation(self) -> Optional[Operation]:
        return Operation.for_code(self.op)


class ValueEnvelope(BaseModel):
    """Record value: the change itself."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    schema_: Optional[FieldSchema] = Field(None, alias="schema")
    payload: ValuePayload


def parse_key(data: Union[KeyEnvelope, dict[str, Any], None]) -> Optional[KeyEnvelope]:
    """Validate a raw key envelope.

    Raises:
        MalformedEventError: If the key does not match the envelope shape
    """
    if data is None or isinstance(data, KeyEnvelope):
        return data
    try:
        return KeyEnvelope.model_validate(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid key envelope: {e}") from e


def parse_value(data: Union[ValueEnvelope, dict[str, Any]]) -> ValueEnvelope:
    """Validate a raw value envelope.

    Raises:
        MalformedEventError: If the value is missing or malformed
    """
    if isinstance(data, ValueEnvelope):
        return data
    if data is None:
        raise MalformedEventError("Value envelope is required")
    try:
        return ValueEnvelope.model_validate(data)
    except ValidationError as e:
        raise MalformedEventError(f"Invalid value envelope: {e}") from e


__all__ = [
    "Operation",
    "FieldSchema",
    "KeyEnvelope",
    "ValuePayload",
    "ValueEnvelope",
    "parse_key",
    "parse_value",
]
