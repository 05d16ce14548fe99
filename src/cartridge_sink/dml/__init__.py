"""Translation of change events into DML statements."""

from .coercion import ParserRegistry, TypeCoercionDispatcher
from .columns import ColumnInfo, SchemaSnapshot
from .envelope import (
    FieldSchema,
    KeyEnvelope,
    Operation,
    ValueEnvelope,
    ValuePayload,
    parse_key,
    parse_value,
)
from .errors import (
    CoercionError,
    ExecutionError,
    MalformedEventError,
    SchemaBootstrapError,
    SinkError,
    StatementBuildError,
    TranslationError,
)
from .processor import DMLProcessor, TranslatorState
from .sql import PreparedStatement, SQLTemplateBuilder, StatementKind, build_where_clause

__all__ = [
    # Event model
    "Operation",
    "FieldSchema",
    "KeyEnvelope",
    "ValuePayload",
    "ValueEnvelope",
    "parse_key",
    "parse_value",
    # Columns and SQL
    "ColumnInfo",
    "SchemaSnapshot",
    "StatementKind",
    "SQLTemplateBuilder",
    "PreparedStatement",
    "build_where_clause",
    # Coercion
    "ParserRegistry",
    "TypeCoercionDispatcher",
    # Processor
    "DMLProcessor",
    "TranslatorState",
    # Errors
    "SinkError",
    "TranslationError",
    "MalformedEventError",
    "SchemaBootstrapError",
    "StatementBuildError",
    "CoercionError",
    "ExecutionError",
]
