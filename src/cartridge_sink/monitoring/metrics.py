"""Prometheus metrics for cartridge-sink."""

from prometheus_client import CollectorRegistry, Counter, Histogram, start_http_server
import structlog

logger = structlog.get_logger(__name__)

TABLE_OPERATION = ["table", "operation"]


class MetricsCollector:
    """Counts change events at each stage of translation and execution.

    Each collector owns its registry so several runners (or tests) can live
    in one process.
    """

    def __init__(self, prometheus_config):
        self.config = prometheus_config
        self.registry = CollectorRegistry()
        self._server = None
        self._thread = None

        self.events_total = Counter(
            "cartridge_sink_events_total",
            "Change events translated, by source operation",
            TABLE_OPERATION,
            registry=self.registry,
        )
        self.statements_applied_total = Counter(
            "cartridge_sink_statements_applied_total",
            "Statements executed against the target",
            TABLE_OPERATION,
            registry=self.registry,
        )
        self.events_skipped_total = Counter(
            "cartridge_sink_events_skipped_total",
            "Change events that needed no statement",
            ["table", "reason"],
            registry=self.registry,
        )
        self.event_failures_total = Counter(
            "cartridge_sink_event_failures_total",
            "Change events that failed to translate or apply",
            ["table", "operation", "error_type"],
            registry=self.registry,
        )
        self.statement_duration = Histogram(
            "cartridge_sink_statement_duration_seconds",
            "Statement execution time",
            TABLE_OPERATION,
            registry=self.registry,
        )

    async def start_server(self):
        """Expose the registry over HTTP if enabled."""
        if not self.config.enabled or self._server is not None:
            return

        logger.info("Serving Prometheus metrics", port=self.config.port)
        self._server, self._thread = start_http_server(
            self.config.port, registry=self.registry
        )

    async def stop_server(self):
        if self._server is None:
            return

        logger.info("Shutting down Prometheus metrics server")
        self._server.shutdown()
        self._server, self._thread = None, None

    def record_event(self, table: str, operation: str):
        self.events_total.labels(table=table, operation=operation).inc()

    def record_applied(self, table: str, operation: str, duration: float):
        self.statements_applied_total.labels(table=table, operation=operation).inc()
        self.statement_duration.labels(table=table, operation=operation).observe(duration)

    def record_skipped(self, table: str, reason: str):
        self.events_skipped_total.labels(table=table, reason=reason).inc()

    def record_failure(self, table: str, operation: str, error_type: str):
        self.event_failures_total.labels(
            table=table, operation=operation, error_type=error_type
        ).inc()
