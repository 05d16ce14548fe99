"""Semantic-type value coercion."""

from typing import Any, Iterable, Mapping, Optional, Sequence

import structlog

from .columns import ColumnInfo
from .errors import CoercionError
from .parsers import DEFAULT_PARSERS, Parser

logger = structlog.get_logger(__name__)


class ParserRegistry:
    """Registry of value parsers keyed by semantic type name.

    Registries are plain objects passed to each processor, so independent
    processors can share one registry or use their own.
    """

    def __init__(self, parsers: Optional[Mapping[str, Parser]] = None) -> None:
        self._parsers: dict[str, Parser] = dict(parsers or {})

    @classmethod
    def with_defaults(cls) -> "ParserRegistry":
        """Create a registry pre-loaded with the Debezium logical-type parsers."""
        return cls(DEFAULT_PARSERS)

    def register(self, semantic_type: str, parser: Optional[Parser] = None):
        """Register a parser for a semantic type.

        Can be called directly or used as a decorator:

            @registry.register("io.debezium.data.Uuid")
            def parse_uuid(parameters, value):
                ...
        """

        def decorator(func: Parser) -> Parser:
            logger.debug(
                "Registering value parser",
                semantic_type=semantic_type,
                parser=getattr(func, "__name__", repr(func)),
            )
            self._parsers[semantic_type] = func
            return func

        if parser is not None:
            return decorator(parser)
        return decorator

    def lookup(self, semantic_type: Optional[str]) -> Optional[Parser]:
        """Return the parser for a semantic type, or None."""
        if semantic_type is None:
            return None
        return self._parsers.get(semantic_type)

    def semantic_types(self) -> list[str]:
        """List all registered semantic types."""
        return list(self._parsers.keys())

    def __contains__(self, semantic_type: object) -> bool:
        return semantic_type in self._parsers

    def __len__(self) -> int:
        return len(self._parsers)


class TypeCoercionDispatcher:
    """Converts raw decoded values into values the executor can bind."""

    def __init__(self, registry: ParserRegistry):
        self.registry = registry

    def coerce(self, column: ColumnInfo, value: Any) -> Any:
        """Coerce one value using the parser registered for the column's type.

        Raises:
            CoercionError: If the registered parser rejects the value
        """
        if value is None:
            return None

        parser = self.registry.lookup(column.semantic_type)
        if parser is None:
            return value

        try:
            return parser(column.parameters, value)
        except Exception as e:
            raise CoercionError(
                f"Cannot coerce value {value!r} of column '{column.name}' "
                f"({column.semantic_type}): {e}"
            ) from e

    def coerce_all(
        self, columns: Sequence[ColumnInfo], values: Iterable[Any]
    ) -> list[Any]:
        """Coerce values pairwise against their columns."""
        return [self.coerce(column, value) for column, value in zip(columns, values)]


__all__ = ["Parser", "ParserRegistry", "TypeCoercionDispatcher"]
