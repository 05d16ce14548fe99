"""Command-line interface for cartridge-sink."""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.table import Table

from .connectors.dry_run import DryRunExecutor
from .core.config import SinkConfig
from .core.records import read_records
from .core.runner import RunSummary, SinkRunner

console = Console()


@click.group()
@click.version_option(version="0.1.0", prog_name="cartridge-sink")
def cli():
    """Cartridge-Sink: CDC write applier

    Applies Debezium change events to a relational database, one
    parameterized statement per event.
    """
    pass


def _load_config(config: Optional[Path]) -> SinkConfig:
    if config is None:
        return SinkConfig()
    console.print(f"[blue]Loading configuration from {config}[/blue]")
    return SinkConfig.from_file(config)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to configuration file",
)
@click.option(
    "--events",
    "-e",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Newline-delimited JSON file of change events",
)
@click.option(
    "--dry-run", is_flag=True, help="Log statements instead of executing them"
)
@click.option("--fail-fast", is_flag=True, help="Stop at the first failed event")
def run(config: Path, events: Path, dry_run: bool, fail_fast: bool):
    """Apply change events to the target database."""

    try:
        sink_config = _load_config(config)

        # Override with CLI options
        if dry_run:
            sink_config.dry_run = True
        if fail_fast:
            sink_config.error_handling.fail_fast = True

        _display_config_summary(sink_config)

        console.print("[green]Starting cartridge-sink...[/green]")
        runner = SinkRunner(sink_config)

        async def run_events() -> RunSummary:
            await runner.start()
            try:
                return await runner.run(read_records(events))
            finally:
                await runner.stop()

        summary = asyncio.run(run_events())
        _display_run_summary(summary)

        if summary.failed:
            sys.exit(1)

    except Exception as e:
        console.print(f"[red]Failed: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.option(
    "--events",
    "-e",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Newline-delimited JSON file of change events",
)
def render(config: Optional[Path], events: Path):
    """Print the statements change events translate to, without a database."""

    try:
        sink_config = _load_config(config)
        sink_config.dry_run = True
        executor = DryRunExecutor()
        runner = SinkRunner(sink_config, executor=executor)

        summary = asyncio.run(runner.run(read_records(events)))

        table = Table(title="Rendered Statements")
        table.add_column("#", style="cyan")
        table.add_column("SQL", style="green")
        table.add_column("Parameters", style="magenta")

        for index, (sql, parameters) in enumerate(executor.statements, start=1):
            table.add_row(str(index), sql, ", ".join(repr(p) for p in parameters))

        console.print(table)
        _display_run_summary(summary)

    except Exception as e:
        console.print(f"[red]Failed to render events: {e}[/red]")
        sys.exit(1)


@cli.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to configuration file",
)
def validate(config: Path):
    """Validate configuration file."""

    try:
        console.print(f"[blue]Validating configuration: {config}[/blue]")
        sink_config = SinkConfig.from_file(config)

        console.print("[green]✓ Configuration is valid[/green]")
        _display_config_summary(sink_config)

    except Exception as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        sys.exit(1)


@cli.command()
def init():
    """Initialize a new cartridge-sink configuration file."""

    config_template = """# Cartridge-Sink Configuration

# Target database configuration
destination:
  type: postgresql  # postgresql or dry_run
  connection_string: "postgresql://localhost:5432/warehouse"
  target_schema: "public"
  min_connections: 1
  max_connections: 5
  command_timeout: 60

# Routing of topics or source tables to target tables (optional).
# Unmapped events go to the table named in their source block.
tables:
  - topic: "oracle.INVENTORY.ORDERS"
    target_table: "orders"
  - source_table: "CUSTOMERS"
    target_table: "customers"

# Statement translation
translation:
  identifier_policy: strict  # strict or trust

# Monitoring configuration
monitoring:
  prometheus:
    enabled: false
    port: 8080
  log_level: "INFO"
  structured_logging: true

# Error handling configuration
error_handling:
  fail_fast: false
  log_failed_payloads: false

# Runtime settings
dry_run: false
"""

    config_file = Path("cartridge-sink-config.yaml")

    if config_file.exists():
        console.print(
            f"[yellow]Configuration file already exists: {config_file}[/yellow]"
        )
        if not click.confirm("Overwrite existing file?"):
            return

    config_file.write_text(config_template)
    console.print(f"[green]Created configuration file: {config_file}[/green]")
    console.print(
        "[blue]Edit the file with your database connection and table routing.[/blue]"
    )


def _display_config_summary(config: SinkConfig):
    """Display a summary of the configuration."""

    table = Table(title="Configuration Summary")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    table.add_row("Destination Type", config.destination.type)
    table.add_row("Target Schema", config.destination.target_schema or "Not specified")
    table.add_row("Table Mappings", str(len(config.tables)))
    table.add_row("Identifier Policy", config.translation.identifier_policy)
    table.add_row("Dry Run", "Yes" if config.dry_run else "No")
    table.add_row("Fail Fast", "Yes" if config.error_handling.fail_fast else "No")
    table.add_row(
        "Prometheus", "Enabled" if config.monitoring.prometheus.enabled else "Disabled"
    )

    console.print(table)

    if config.tables:
        mapping_table = Table(title="Table Routing")
        mapping_table.add_column("Topic", style="cyan")
        mapping_table.add_column("Source Table", style="green")
        mapping_table.add_column("Target Table", style="yellow")

        for mapping in config.tables:
            mapping_table.add_row(
                mapping.topic or "-", mapping.source_table or "-", mapping.target_table
            )

        console.print(mapping_table)


def _display_run_summary(summary: RunSummary):
    """Display the outcome of a run."""

    table = Table(title="Run Summary")
    table.add_column("Records", style="cyan")
    table.add_column("Count", style="magenta")

    table.add_row("Received", str(summary.received))
    table.add_row("Applied", str(summary.applied))
    table.add_row("Skipped", str(summary.skipped))
    table.add_row("Failed", str(summary.failed))

    console.print(table)


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
