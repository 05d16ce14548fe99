"""Column metadata discovered from change-event schemas."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional

from .envelope import FieldSchema, KeyEnvelope, ValueEnvelope
from .errors import SchemaBootstrapError

VARIABLE_SCALE_DECIMAL = "io.debezium.data.VariableScaleDecimal"
CONNECT_DECIMAL = "org.apache.kafka.connect.data.Decimal"

# Source types that may not compare exactly against the target column
IMPRECISE_NUMERIC_TYPES = frozenset({VARIABLE_SCALE_DECIMAL, CONNECT_DECIMAL})


@dataclass(frozen=True)
class ColumnInfo:
    """Metadata of one physical column."""

    name: str
    type: str
    semantic_type: Optional[str] = None
    parameters: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(
            self, "parameters", MappingProxyType(dict(self.parameters or {}))
        )

    @classmethod
    def from_field(cls, field_schema: FieldSchema) -> "ColumnInfo":
        """Build column metadata from a Connect field schema."""
        if not field_schema.field:
            raise SchemaBootstrapError("Column schema has no field name")
        return cls(
            name=field_schema.field,
            type=field_schema.type,
            semantic_type=field_schema.name,
            parameters=field_schema.parameters,
        )

    @property
    def is_imprecise_numeric(self) -> bool:
        """Whether equality on this column must be compared as numeric."""
        return self.semantic_type in IMPRECISE_NUMERIC_TYPES


@dataclass(frozen=True)
class SchemaSnapshot:
    """Value and key columns of a table, frozen after the first event."""

    columns: tuple[ColumnInfo, ...]
    key_columns: tuple[ColumnInfo, ...] = ()

    @property
    def identity_columns(self) -> tuple[ColumnInfo, ...]:
        """Columns used to locate a row: the key if known, else the full row."""
        return self.key_columns if self.key_columns else self.columns

    @property
    def has_key(self) -> bool:
        return bool(self.key_columns)

    @property
    def column_names(self) -> list[str]:
        return [column.name for column in self.columns]

    @property
    def key_column_names(self) -> list[str]:
        return [column.name for column in self.key_columns]

    @classmethod
    def from_envelopes(
        cls, key: Optional[KeyEnvelope], value: ValueEnvelope
    ) -> "SchemaSnapshot":
        """Derive the snapshot from the schemas carried by one event.

        Value columns are read from the "before" row schema when the event
        carries a before image, otherwise from the "after" row schema.

        Raises:
            SchemaBootstrapError: If schema metadata is missing or empty
        """
        if value.schema_ is None:
            raise SchemaBootstrapError("Value envelope carries no schema")

        image = "before" if value.payload.before is not None else "after"
        row_schema = value.schema_.find(image)
        if row_schema is None:
            raise SchemaBootstrapError(f"Value schema has no '{image}' field")
        if not row_schema.fields:
            raise SchemaBootstrapError(f"Value schema '{image}' has no columns")

        columns = tuple(ColumnInfo.from_field(f) for f in row_schema.fields)

        key_columns: tuple[ColumnInfo, ...] = ()
        if key is not None:
            if key.schema_ is None:
                raise SchemaBootstrapError("Key envelope carries no schema")
            key_columns = tuple(ColumnInfo.from_field(f) for f in key.schema_.fields)

        return cls(columns=columns, key_columns=key_columns)


__all__ = [
    "VARIABLE_SCALE_DECIMAL",
    "CONNECT_DECIMAL",
    "IMPRECISE_NUMERIC_TYPES",
    "ColumnInfo",
    "SchemaSnapshot",
]
