"""SQL text generation for change events.

Statements use ``?`` positional placeholders. Placeholder order always
matches the order in which values are bound.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping, Sequence

from .columns import ColumnInfo, SchemaSnapshot
from .errors import SchemaBootstrapError, StatementBuildError

PLACEHOLDER = "?"

INSERT_SQL = "INSERT INTO {table} ({columns}) VALUES ({placeholders})"
UPDATE_SQL = "UPDATE {table} SET {assignments} WHERE "
DELETE_SQL = "DELETE FROM {table} WHERE "

_COLUMN_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*$")
_TABLE_NAME = re.compile(r"^[A-Za-z_][A-Za-z0-9_$]*(\.[A-Za-z_][A-Za-z0-9_$]*)?$")


class StatementKind(Enum):
    """Kinds of statement a change event can produce."""

    INSERT = "insert"
    UPDATE = "update"
    DELETE = "delete"


def validate_table_name(table: str) -> None:
    """Reject table names that are unsafe to embed unquoted."""
    if not _TABLE_NAME.match(table or ""):
        raise SchemaBootstrapError(f"Invalid table name: {table!r}", table=table)


def validate_column_names(columns: Iterable[ColumnInfo]) -> None:
    """Reject column names that are unsafe to embed unquoted."""
    for column in columns:
        if not _COLUMN_NAME.match(column.name):
            raise SchemaBootstrapError(f"Invalid column name: {column.name!r}")


def reject_placeholder_names(names: Iterable[str]) -> None:
    """Reject identifiers that would be read as bind placeholders.

    Applies under every identifier policy.
    """
    for name in names:
        if PLACEHOLDER in name:
            raise SchemaBootstrapError(
                f"Identifier contains the placeholder character {PLACEHOLDER!r}: {name!r}"
            )


class SQLTemplateBuilder:
    """Builds the invariant part of each statement kind for one table."""

    def __init__(self, table: str, snapshot: SchemaSnapshot):
        self.table = table
        self.snapshot = snapshot

    def build(self, kind: StatementKind) -> str:
        if kind is StatementKind.INSERT:
            return self.insert_sql()
        if kind is StatementKind.UPDATE:
            return self.update_sql()
        return self.delete_sql()

    def insert_sql(self) -> str:
        names = self.snapshot.column_names
        return INSERT_SQL.format(
            table=self.table,
            columns=", ".join(names),
            placeholders=", ".join(PLACEHOLDER for _ in names),
        )

    def update_sql(self) -> str:
        assignments = ", ".join(
            f"{name} = {PLACEHOLDER}" for name in self.snapshot.column_names
        )
        return UPDATE_SQL.format(table=self.table, assignments=assignments)

    def delete_sql(self) -> str:
        return DELETE_SQL.format(table=self.table)


@dataclass
class WhereClause:
    """A WHERE body and the columns/values bound by its placeholders."""

    sql: str
    columns: list[ColumnInfo] = field(default_factory=list)
    values: list[Any] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.sql


def build_where_clause(
    identity_columns: Sequence[ColumnInfo], identity_values: Mapping[str, Any]
) -> WhereClause:
    """Build the row-identifying WHERE body.

    Null (or absent) values become ``col IS NULL`` and bind nothing.
    Imprecise numeric columns are compared as ``col::numeric = ?``.
    """
    fragments: list[str] = []
    clause = WhereClause(sql="")

    for column in identity_columns:
        value = identity_values.get(column.name)
        if value is None:
            fragments.append(f"{column.name} IS NULL")
            continue

        if column.is_imprecise_numeric:
            # FLOAT/REAL targets do not compare exactly against the source value
            fragments.append(f"{column.name}::numeric = {PLACEHOLDER}")
        else:
            fragments.append(f"{column.name} = {PLACEHOLDER}")
        clause.columns.append(column)
        clause.values.append(value)

    clause.sql = " AND ".join(fragments)
    return clause


@dataclass(frozen=True)
class PreparedStatement:
    """A fully bound statement ready for the executor."""

    table: str
    kind: StatementKind
    sql: str
    parameters: tuple[Any, ...] = ()

    def __post_init__(self):
        if self.placeholder_count != len(self.parameters):
            raise StatementBuildError(
                f"Statement has {self.placeholder_count} placeholders "
                f"but {len(self.parameters)} parameters",
                table=self.table,
                operation=self.kind.value,
            )

    @property
    def placeholder_count(self) -> int:
        return self.sql.count(PLACEHOLDER)


__all__ = [
    "PLACEHOLDER",
    "StatementKind",
    "SQLTemplateBuilder",
    "WhereClause",
    "build_where_clause",
    "PreparedStatement",
    "validate_table_name",
    "validate_column_names",
    "reject_placeholder_names",
]
