"""Executor factory for creating statement executors."""

from typing import Optional

import structlog

from ..core.config import DestinationConfig
from .base import BaseStatementExecutor, StatementExecutor

logger = structlog.get_logger(__name__)


class ExecutorRegistry:
    """Registry for executor implementations."""

    def __init__(self) -> None:
        self._executors: dict[str, type[BaseStatementExecutor]] = {}

    def register_executor(
        self, executor_type: str, executor_class: type[BaseStatementExecutor]
    ) -> None:
        """Register an executor implementation.

        Args:
            executor_type: Destination type (e.g., "postgresql")
            executor_class: Class that implements BaseStatementExecutor
        """
        logger.debug(
            "Registering executor",
            type=executor_type,
            class_name=executor_class.__name__,
        )
        self._executors[executor_type] = executor_class

    def get_executor_class(
        self, executor_type: str
    ) -> Optional[type[BaseStatementExecutor]]:
        """Get executor class for given type.

        Args:
            executor_type: Destination type

        Returns:
            Executor class or None if not found
        """
        return self._executors.get(executor_type)

    def list_executors(self) -> list[str]:
        """List all registered executor types."""
        return list(self._executors.keys())


# Global registry instance
_registry = ExecutorRegistry()


def register_executor(executor_type: str):
    """Decorator for registering executor implementations.

    Usage:
        @register_executor("postgresql")
        class PostgreSQLExecutor(BaseStatementExecutor):
            ...
    """

    def decorator(executor_class: type[BaseStatementExecutor]):
        _registry.register_executor(executor_type, executor_class)
        return executor_class

    return decorator


class ExecutorFactory:
    """Factory for creating statement executors."""

    def __init__(self, registry: Optional[ExecutorRegistry] = None):
        """Initialize the factory with an executor registry.

        Args:
            registry: Executor registry to use. If None, uses global registry.
        """
        self.registry = registry or _registry

    def create_executor(self, config: DestinationConfig) -> StatementExecutor:
        """Create an executor based on destination configuration.

        Args:
            config: Destination configuration

        Returns:
            Executor instance (not yet connected)

        Raises:
            ValueError: If no executor is registered for the destination type
        """
        executor_class = self.registry.get_executor_class(config.type)
        if not executor_class:
            available = self.registry.list_executors()
            raise ValueError(
                f"Unsupported destination type: {config.type}. "
                f"Available types: {', '.join(available)}"
            )

        logger.info("Creating executor", type=config.type)
        return executor_class(
            connection_string=config.connection_string,
            min_connections=config.min_connections,
            max_connections=config.max_connections,
            connection_timeout=config.connection_timeout,
            command_timeout=config.command_timeout,
        )


def get_executor_factory() -> ExecutorFactory:
    """Get the default executor factory instance."""
    return ExecutorFactory()
