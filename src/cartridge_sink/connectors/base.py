"""Executor interfaces for cartridge-sink."""

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any, Optional, Protocol, runtime_checkable


@runtime_checkable
class StatementExecutor(Protocol):
    """Protocol for statement executors.

    An executor applies one prepared statement at a time against the target
    database. Transactions, retries and timeouts are its own business.
    """

    async def execute(self, sql: str, parameters: Sequence[Any]) -> None:
        """Run one statement.

        Args:
            sql: Statement text with positional ``?`` placeholders
            parameters: Values bound to the placeholders, in order
        """
        ...

    async def connect(self) -> None:
        ...

    async def disconnect(self) -> None:
        ...

    async def test_connection(self) -> bool:
        """Report whether statements can currently be executed."""
        ...


class BaseStatementExecutor(ABC):
    """Shared state and lifecycle helpers for executor implementations."""

    def __init__(self, connection_string: Optional[str] = None, **options: Any):
        """Initialize the executor.

        Args:
            connection_string: Target database DSN
            **options: Executor-specific settings
        """
        self.connection_string = connection_string
        self.options = options
        self.connected = False

    async def __aenter__(self) -> "BaseStatementExecutor":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.disconnect()

    @abstractmethod
    async def execute(self, sql: str, parameters: Sequence[Any]) -> None:
        """Run one statement with ``?`` placeholders."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection to the target database."""

    @abstractmethod
    async def disconnect(self) -> None:
        """Release the connection to the target database."""

    async def test_connection(self) -> bool:
        return self.connected


__all__ = ["StatementExecutor", "BaseStatementExecutor"]
