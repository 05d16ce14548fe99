"""PostgreSQL statement executor for cartridge-sink.

Statements are run one at a time on a pooled asyncpg connection, each in
its own implicit transaction. Nothing is retried.
"""

import itertools
import re
from collections.abc import Sequence
from functools import lru_cache
from typing import Any, Optional

import asyncpg
import structlog
from asyncpg import Pool

from .base import BaseStatementExecutor
from .factory import register_executor

logger = structlog.get_logger(__name__)

_QMARK = re.compile(r"\?")


@lru_cache(maxsize=1024)
def to_native_placeholders(sql: str) -> str:
    """Rewrite ``?`` placeholders as asyncpg's ``$1, $2, ...``."""
    counter = itertools.count(1)
    return _QMARK.sub(lambda _: f"${next(counter)}", sql)


@register_executor("postgresql")
class PostgreSQLExecutor(BaseStatementExecutor):
    """Runs prepared statements against PostgreSQL (or openGauss) via asyncpg."""

    def __init__(
        self,
        connection_string: Optional[str] = None,
        min_connections: int = 1,
        max_connections: int = 5,
        connection_timeout: float = 30.0,
        command_timeout: float = 60.0,
        **options: Any,
    ) -> None:
        """Initialize the executor.

        Args:
            connection_string: PostgreSQL DSN
            min_connections: Pool size kept open
            max_connections: Upper bound on the pool size
            connection_timeout: Seconds to wait when opening a connection
            command_timeout: Seconds a single statement may run
        """
        super().__init__(connection_string, **options)
        if not connection_string:
            raise ValueError("connection_string is required for PostgreSQL")

        self.pool_options = {
            "min_size": min_connections,
            "max_size": max_connections,
            "timeout": connection_timeout,
            "command_timeout": command_timeout,
        }
        self.pool: Optional[Pool] = None

    @property
    def min_connections(self) -> int:
        return self.pool_options["min_size"]

    @property
    def max_connections(self) -> int:
        return self.pool_options["max_size"]

    @property
    def command_timeout(self) -> float:
        return self.pool_options["command_timeout"]

    async def connect(self) -> None:
        """Open the pool and check that the server answers."""
        if self.connected:
            return

        logger.info("Opening PostgreSQL pool", **self.pool_options)
        try:
            self.pool = await asyncpg.create_pool(
                self.connection_string, **self.pool_options
            )
            await self._ping()
        except Exception as e:
            logger.error("Cannot reach PostgreSQL", error=str(e))
            raise

        self.connected = True
        logger.info("PostgreSQL pool ready")

    async def disconnect(self) -> None:
        """Close the pool."""
        if self.pool is None:
            return

        pool, self.pool = self.pool, None
        self.connected = False
        await pool.close()
        logger.info("PostgreSQL pool closed")

    async def test_connection(self) -> bool:
        if self.pool is None:
            return False
        try:
            await self._ping()
        except (OSError, asyncpg.PostgresError) as e:
            logger.warning("PostgreSQL ping failed", error=str(e))
            return False
        return True

    async def execute(self, sql: str, parameters: Sequence[Any]) -> None:
        """Run one statement on a pooled connection."""
        if self.pool is None:
            raise RuntimeError("Connection pool not initialized. Call connect() first.")

        query = to_native_placeholders(sql)
        try:
            async with self.pool.acquire() as conn:
                status = await conn.execute(query, *parameters)
        except asyncpg.PostgresError as e:
            logger.error(
                "PostgreSQL rejected statement",
                sql=query,
                sqlstate=getattr(e, "sqlstate", None),
                error=str(e),
            )
            raise
        logger.debug("Statement executed", sql=query, status=status)

    async def _ping(self) -> None:
        async with self.pool.acquire() as conn:
            await conn.execute("SELECT 1")


__all__ = ["PostgreSQLExecutor", "to_native_placeholders"]
