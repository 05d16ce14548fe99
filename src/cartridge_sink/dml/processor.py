"""Per-table translation of change events into DML statements."""

import time
from enum import Enum
from typing import Any, Literal, Optional, Union

import structlog

from .coercion import ParserRegistry, TypeCoercionDispatcher
from .columns import ColumnInfo, SchemaSnapshot
from .envelope import KeyEnvelope, Operation, ValueEnvelope, parse_key, parse_value
from .errors import StatementBuildError, TranslationError
from .sql import (
    PreparedStatement,
    SQLTemplateBuilder,
    StatementKind,
    WhereClause,
    build_where_clause,
    reject_placeholder_names,
    validate_column_names,
    validate_table_name,
)

logger = structlog.get_logger(__name__)

IdentifierPolicy = Literal["strict", "trust"]
RawKey = Union[KeyEnvelope, dict[str, Any], None]
RawValue = Union[ValueEnvelope, dict[str, Any]]


class TranslatorState(Enum):
    """Lifecycle of a processor's schema snapshot."""

    UNINITIALIZED = "uninitialized"
    READY = "ready"


def _operation_code(value: Any) -> Optional[str]:
    if isinstance(value, ValueEnvelope):
        return value.payload.op
    if isinstance(value, dict):
        payload = value.get("payload")
        if isinstance(payload, dict):
            return payload.get("op")
    return None


def _operation_label(op: Optional[str]) -> str:
    operation = Operation.for_code(op)
    return operation.name.lower() if operation else "unknown"


def _key_payload(key: Any) -> Optional[Any]:
    if isinstance(key, KeyEnvelope):
        return key.payload
    if isinstance(key, dict):
        return key.get("payload")
    return None


class DMLProcessor:
    """Translates change events for one target table and applies them.

    The table's columns are discovered from the first event and never change
    afterwards. SQL templates are built on first use per statement kind and
    reused. A processor must be driven by a single ordered stream of events.
    """

    def __init__(
        self,
        table: str,
        executor,
        registry: Optional[ParserRegistry] = None,
        identifier_policy: IdentifierPolicy = "strict",
        metrics=None,
    ):
        """Initialize the processor.

        Args:
            table: Target table name, optionally schema qualified
            executor: Statement executor the statements are handed to
            registry: Value parsers keyed by semantic type
            identifier_policy: "strict" validates table and column names,
                "trust" embeds them as-is, only rejecting "?"
            metrics: Optional metrics collector
        """
        if identifier_policy == "strict":
            validate_table_name(table)
        else:
            reject_placeholder_names([table])

        self.table = table
        self.executor = executor
        self.identifier_policy = identifier_policy
        self.metrics = metrics
        self.coercer = TypeCoercionDispatcher(registry or ParserRegistry.with_defaults())

        self._state = TranslatorState.UNINITIALIZED
        self._snapshot: Optional[SchemaSnapshot] = None
        self._templates: dict[StatementKind, str] = {}

        self.stats = {"insert": 0, "update": 0, "delete": 0, "skipped": 0, "failed": 0}
        self.logger = logger.bind(table=table)

    @property
    def state(self) -> TranslatorState:
        return self._state

    @property
    def snapshot(self) -> Optional[SchemaSnapshot]:
        return self._snapshot

    def bootstrap(
        self, key: Optional[KeyEnvelope], value: ValueEnvelope
    ) -> SchemaSnapshot:
        """Discover the table's columns from an event, once.

        Later calls return the existing snapshot untouched. A failed
        bootstrap leaves the processor uninitialized.
        """
        if self._state is TranslatorState.READY and self._snapshot is not None:
            return self._snapshot

        snapshot = SchemaSnapshot.from_envelopes(key, value)
        if self.identifier_policy == "strict":
            validate_column_names(snapshot.columns)
            validate_column_names(snapshot.key_columns)
        else:
            reject_placeholder_names(snapshot.column_names + snapshot.key_column_names)

        self._snapshot = snapshot
        self._state = TranslatorState.READY
        self.logger.info(
            "Discovered table columns",
            columns=snapshot.column_names,
            key_columns=snapshot.key_column_names,
        )
        return snapshot

    def template(self, kind: StatementKind) -> str:
        """Return the cached template for a statement kind, building it once."""
        if self._snapshot is None:
            raise StatementBuildError(
                "Cannot build SQL before the table schema is known", table=self.table
            )
        sql = self._templates.get(kind)
        if sql is None:
            sql = SQLTemplateBuilder(self.table, self._snapshot).build(kind)
            self._templates[kind] = sql
            self.logger.debug("Built SQL template", kind=kind.value, sql=sql)
        return sql

    def translate(self, key: RawKey, value: RawValue) -> Optional[PreparedStatement]:
        """Turn one change event into a bound statement.

        Returns None for snapshot reads and for operations that do not map
        to DML (truncate, messages, unknown codes).

        Raises:
            TranslationError: If the event cannot be translated completely
        """
        try:
            key_envelope = parse_key(key)
            value_envelope = parse_value(value)
            self.bootstrap(key_envelope, value_envelope)
            return self._translate(key_envelope, value_envelope)
        except TranslationError as e:
            e.with_context(
                table=self.table, operation=_operation_code(value), key=_key_payload(key)
            )
            raise

    async def process(self, key: RawKey, value: RawValue) -> Optional[PreparedStatement]:
        """Translate one change event and execute the resulting statement.

        Returns:
            The executed statement, or None if the event needed no statement
        """
        op = _operation_code(value)
        try:
            statement = self.translate(key, value)
        except TranslationError as e:
            self._record_failure(op, type(e).__name__)
            self.logger.debug(
                "Failed to translate change event",
                operation=op,
                key=e.key,
                error=str(e),
            )
            raise

        if self.metrics:
            self.metrics.record_event(self.table, _operation_label(op))

        if statement is None:
            self.stats["skipped"] += 1
            if self.metrics:
                reason = "snapshot" if op == Operation.READ.value else "unsupported"
                self.metrics.record_skipped(self.table, reason)
            return None

        started = time.perf_counter()
        try:
            await self.executor.execute(statement.sql, statement.parameters)
        except Exception as e:
            self._record_failure(op, type(e).__name__)
            self.logger.debug(
                "Failed to apply statement",
                operation=statement.kind.value,
                key=_key_payload(key),
                sql=statement.sql,
                error=str(e),
            )
            raise

        kind = statement.kind.value
        self.stats[kind] += 1
        if self.metrics:
            self.metrics.record_applied(self.table, kind, time.perf_counter() - started)
        self.logger.info(
            "Applied statement", operation=kind, count=self.stats[kind]
        )
        return statement

    def get_status(self) -> dict[str, Any]:
        """Get current status of the processor."""
        snapshot = self._snapshot
        return {
            "table": self.table,
            "state": self._state.value,
            "columns": snapshot.column_names if snapshot else [],
            "key_columns": snapshot.key_column_names if snapshot else [],
            "templates": sorted(kind.value for kind in self._templates),
            "stats": dict(self.stats),
        }

    def _translate(
        self, key: Optional[KeyEnvelope], value: ValueEnvelope
    ) -> Optional[PreparedStatement]:
        operation = value.payload.operation

        if operation is Operation.READ:
            # Snapshot rows are expected to be loaded into the target already
            self.logger.debug("Ignoring snapshot record")
            return None
        if operation is Operation.CREATE:
            return self._insert_statement(value)
        if operation is Operation.UPDATE:
            return self._update_statement(key, value)
        if operation is Operation.DELETE:
            return self._delete_statement(key, value)

        self.logger.debug("Ignoring unsupported operation", op=value.payload.op)
        return None

    def _insert_statement(self, value: ValueEnvelope) -> PreparedStatement:
        columns = list(self._snapshot.columns)
        values = self._row_values(value.payload.after, "after", columns)
        return self._bind(StatementKind.INSERT, self.template(StatementKind.INSERT), columns, values)

    def _update_statement(
        self, key: Optional[KeyEnvelope], value: ValueEnvelope
    ) -> PreparedStatement:
        columns = list(self._snapshot.columns)
        values = self._row_values(value.payload.after, "after", columns)
        where = self._where_clause(key, value)

        sql = self.template(StatementKind.UPDATE) + where.sql
        return self._bind(
            StatementKind.UPDATE, sql, columns + where.columns, values + where.values
        )

    def _delete_statement(
        self, key: Optional[KeyEnvelope], value: ValueEnvelope
    ) -> PreparedStatement:
        where = self._where_clause(key, value)
        sql = self.template(StatementKind.DELETE) + where.sql
        return self._bind(StatementKind.DELETE, sql, where.columns, where.values)

    def _where_clause(
        self, key: Optional[KeyEnvelope], value: ValueEnvelope
    ) -> WhereClause:
        snapshot = self._snapshot
        if snapshot.has_key and key is not None:
            identity_columns = snapshot.key_columns
            identity_values = key.payload
        else:
            # Keyless events are located by their full before image
            if value.payload.before is None:
                raise StatementBuildError("Event has no 'before' image to locate the row")
            identity_columns = snapshot.columns
            identity_values = value.payload.before

        where = build_where_clause(identity_columns, identity_values)
        if where.is_empty:
            raise StatementBuildError("No identity columns to locate the row")
        return where

    @staticmethod
    def _row_values(
        image: Optional[dict[str, Any]], image_name: str, columns: list[ColumnInfo]
    ) -> list[Any]:
        if image is None:
            raise StatementBuildError(f"Event has no '{image_name}' image")
        missing = [column.name for column in columns if column.name not in image]
        if missing:
            raise StatementBuildError(
                f"'{image_name}' image lacks columns: {', '.join(missing)}"
            )
        return [image[column.name] for column in columns]

    def _bind(
        self,
        kind: StatementKind,
        sql: str,
        columns: list[ColumnInfo],
        values: list[Any],
    ) -> PreparedStatement:
        parameters = tuple(self.coercer.coerce_all(columns, values))
        return PreparedStatement(table=self.table, kind=kind, sql=sql, parameters=parameters)

    def _record_failure(self, op: Optional[str], error_type: str) -> None:
        self.stats["failed"] += 1
        if self.metrics:
            self.metrics.record_failure(self.table, _operation_label(op), error_type)


__all__ = ["DMLProcessor", "TranslatorState"]
