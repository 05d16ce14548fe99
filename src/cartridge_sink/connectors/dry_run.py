"""Executor that records statements instead of running them."""

from collections.abc import Sequence
from typing import Any, Optional

import structlog

from .base import BaseStatementExecutor
from .factory import register_executor

logger = structlog.get_logger(__name__)


@register_executor("dry_run")
class DryRunExecutor(BaseStatementExecutor):
    """Keeps every statement in memory and logs it."""

    def __init__(self, connection_string: Optional[str] = None, **kwargs: Any) -> None:
        super().__init__(connection_string, **kwargs)
        self.statements: list[tuple[str, tuple[Any, ...]]] = []

    async def connect(self) -> None:
        self.connected = True

    async def disconnect(self) -> None:
        self.connected = False

    async def test_connection(self) -> bool:
        return True

    async def execute(self, sql: str, parameters: Sequence[Any]) -> None:
        self.statements.append((sql, tuple(parameters)))
        logger.info("Dry run statement", sql=sql, parameters=[repr(p) for p in parameters])


__all__ = ["DryRunExecutor"]
