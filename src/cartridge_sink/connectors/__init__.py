"""Statement executors for cartridge-sink."""

# Import executors to register them
from . import dry_run, postgresql  # noqa: F401
from .base import BaseStatementExecutor, StatementExecutor
from .dry_run import DryRunExecutor
from .factory import (
    ExecutorFactory,
    ExecutorRegistry,
    get_executor_factory,
    register_executor,
)
from .postgresql import PostgreSQLExecutor

__all__ = [
    # Base types and interfaces
    "StatementExecutor",
    "BaseStatementExecutor",
    # Implementations
    "DryRunExecutor",
    "PostgreSQLExecutor",
    # Factory and registry
    "ExecutorFactory",
    "ExecutorRegistry",
    "register_executor",
    "get_executor_factory",
]
