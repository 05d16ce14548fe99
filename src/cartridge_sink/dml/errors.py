"""Exception types raised while translating and applying change events."""

from typing import Any, Optional


class SinkError(Exception):
    """Base class for all cartridge-sink errors."""


class TranslationError(SinkError):
    """A change event could not be turned into a statement.

    Carries enough context (table, operation, key) for the failed event to
    be located and replayed externally.
    """

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        key: Optional[Any] = None,
    ):
        super().__init__(message)
        self.message = message
        self.table = table
        self.operation = operation
        self.key = key

    def with_context(
        self,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        key: Optional[Any] = None,
    ) -> "TranslationError":
        """Fill in context that was unknown where the error was raised."""
        self.table = self.table or table
        self.operation = self.operation or operation
        if self.key is None:
            self.key = key
        return self

    def __str__(self) -> str:
        context = []
        if self.table:
            context.append(f"table={self.table}")
        if self.operation:
            context.append(f"operation={self.operation}")
        if self.key is not None:
            context.append(f"key={self.key!r}")
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class MalformedEventError(TranslationError):
    """The envelope does not have the expected shape."""


class SchemaBootstrapError(TranslationError):
    """Column metadata could not be derived from the first event."""


class StatementBuildError(TranslationError):
    """A statement could not be fully bound from the event payload."""


class CoercionError(TranslationError):
    """A registered value parser rejected a raw value."""


class ExecutionError(SinkError):
    """The executor failed to apply a statement."""


__all__ = [
    "SinkError",
    "TranslationError",
    "MalformedEventError",
    "SchemaBootstrapError",
    "StatementBuildError",
    "CoercionError",
    "ExecutionError",
]
