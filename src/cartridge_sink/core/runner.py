"""Main runner for cartridge-sink."""

import logging
from collections.abc import AsyncIterable, Iterable
from dataclasses import dataclass
from typing import Any, Optional, Union

import structlog

from ..connectors.dry_run import DryRunExecutor
from ..connectors.factory import ExecutorFactory
from ..dml.coercion import ParserRegistry
from ..dml.errors import ExecutionError, MalformedEventError, SinkError
from ..dml.processor import DMLProcessor
from ..dml.sql import PreparedStatement
from ..monitoring.metrics import MetricsCollector
from .config import SinkConfig
from .records import SinkRecord

logger = structlog.get_logger(__name__)


@dataclass
class RunSummary:
    """Counts of records handled by one run."""

    received: int = 0
    applied: int = 0
    skipped: int = 0
    failed: int = 0


class SinkRunner:
    """Routes change-event records to one DMLProcessor per target table."""

    def __init__(
        self,
        config: SinkConfig,
        executor=None,
        registry: Optional[ParserRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        """Initialize the runner with configuration.

        Args:
            config: Sink configuration
            executor: Statement executor; created from the destination
                configuration when omitted
            registry: Value parsers shared by all table processors
            metrics: Metrics collector
        """
        self.config = config
        self.executor = executor or self._create_executor()
        self.registry = registry or ParserRegistry.with_defaults()
        self.metrics = metrics or MetricsCollector(config.monitoring.prometheus)
        self._processors: dict[str, DMLProcessor] = {}
        self._running = False

        # Setup logging
        self._setup_logging()

    def _create_executor(self):
        if self.config.dry_run:
            return DryRunExecutor()
        return ExecutorFactory().create_executor(self.config.destination)

    def _setup_logging(self):
        """Configure structured logging."""
        log_format = (
            "%(message)s"
            if self.config.monitoring.structured_logging
            else "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

        logging.basicConfig(
            level=getattr(logging, self.config.monitoring.log_level), format=log_format
        )

        if self.config.monitoring.structured_logging:
            structlog.configure(
                processors=[
                    structlog.stdlib.filter_by_level,
                    structlog.stdlib.add_logger_name,
                    structlog.stdlib.add_log_level,
                    structlog.stdlib.PositionalArgumentsFormatter(),
                    structlog.processors.TimeStamper(fmt="iso"),
                    structlog.processors.StackInfoRenderer(),
                    structlog.processors.format_exc_info,
                    structlog.processors.UnicodeDecoder(),
                    structlog.processors.JSONRenderer(default=str),
                ],
                context_class=dict,
                logger_factory=structlog.stdlib.LoggerFactory(),
                wrapper_class=structlog.stdlib.BoundLogger,
                cache_logger_on_first_use=True,
            )

    async def start(self):
        """Connect the executor and start the metrics server."""
        logger.info("Starting cartridge-sink", dry_run=self.config.dry_run)

        try:
            await self.executor.connect()
            if self.config.monitoring.prometheus.enabled:
                await self.metrics.start_server()
        except Exception as e:
            logger.error("Failed to start cartridge-sink", error=str(e))
            raise

        self._running = True

    async def stop(self):
        """Disconnect the executor and stop the metrics server."""
        logger.info("Stopping cartridge-sink")
        self._running = False

        await self.executor.disconnect()
        if self.config.monitoring.prometheus.enabled:
            await self.metrics.stop_server()

        logger.info("Cartridge-sink stopped successfully")

    def resolve_table(self, record: SinkRecord) -> str:
        """Work out the target table of a record.

        Configured mappings win; otherwise the source table named in the
        event is used, falling back to the last segment of the topic.
        """
        table = self.config.resolve_table(record.topic, record.source_table)
        if table is None:
            table = record.source_table
        if table is None and record.topic:
            table = record.topic.rsplit(".", 1)[-1]
        if not table:
            raise MalformedEventError("Cannot determine the target table of a record")

        target_schema = self.config.destination.target_schema
        if target_schema and "." not in table:
            table = f"{target_schema}.{table}"
        return table

    def get_processor(self, table: str) -> DMLProcessor:
        """Get the processor of a table, creating it on first use."""
        processor = self._processors.get(table)
        if processor is None:
            logger.info("Creating table processor", table=table)
            processor = DMLProcessor(
                table,
                self.executor,
                registry=self.registry,
                identifier_policy=self.config.translation.identifier_policy,
                metrics=self.metrics,
            )
            self._processors[table] = processor
        return processor

    async def handle(self, record: SinkRecord) -> Optional[PreparedStatement]:
        """Apply one record.

        Returns:
            The executed statement, or None if the record needed none
        """
        if record.is_tombstone:
            logger.debug("Skipping tombstone", topic=record.topic)
            return None

        table = self.resolve_table(record)
        return await self.get_processor(table).process(record.key, record.value)

    async def run(
        self, records: Union[Iterable[SinkRecord], AsyncIterable[SinkRecord]]
    ) -> RunSummary:
        """Apply records in order.

        Failed records are logged and counted; with ``fail_fast`` the first
        failure stops the run.
        """
        summary = RunSummary()

        if isinstance(records, AsyncIterable):
            async for record in records:
                await self._run_one(record, summary)
        else:
            for record in records:
                await self._run_one(record, summary)

        logger.info(
            "Run finished",
            received=summary.received,
            applied=summary.applied,
            skipped=summary.skipped,
            failed=summary.failed,
        )
        return summary

    async def _run_one(self, record: SinkRecord, summary: RunSummary) -> None:
        summary.received += 1
        try:
            statement = await self.handle(record)
        except Exception as e:
            summary.failed += 1
            self._log_failure(record, e)
            if not self.config.error_handling.fail_fast:
                return
            if isinstance(e, SinkError):
                raise
            raise ExecutionError(f"Failed to apply record: {e}") from e

        if statement is None:
            summary.skipped += 1
        else:
            summary.applied += 1

    def _log_failure(self, record: SinkRecord, error: Exception) -> None:
        context: dict[str, Any] = {
            "topic": record.topic,
            "source_table": record.source_table,
            "error_type": type(error).__name__,
            "error": str(error),
        }
        if self.config.error_handling.log_failed_payloads:
            context["key"] = record.key
            context["value"] = record.value
        logger.error("Failed to apply record", **context)

    def get_status(self) -> dict[str, Any]:
        """Get current status of the runner.

        Returns:
            Dictionary with status information
        """
        return {
            "running": self._running,
            "dry_run": self.config.dry_run,
            "tables": list(self._processors.keys()),
            "processor_status": {
                table: processor.get_status()
                for table, processor in self._processors.items()
            },
            "metrics_enabled": self.config.monitoring.prometheus.enabled,
        }


__all__ = ["RunSummary", "SinkRunner"]
