"""Configuration management for cartridge-sink."""

from pathlib import Path
from typing import Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class DestinationConfig(BaseModel):
    """Target database configuration."""

    type: str = Field("postgresql", description="Type of target database")
    connection_string: Optional[str] = Field(None, description="Database connection string")
    target_schema: Optional[str] = Field(
        None, description="Schema prefixed to target table names"
    )

    # Pool settings
    min_connections: int = Field(1, description="Minimum connections in pool")
    max_connections: int = Field(5, description="Maximum connections in pool")
    connection_timeout: float = Field(30.0, description="Connection timeout in seconds")
    command_timeout: float = Field(60.0, description="Statement timeout in seconds")

    @field_validator("type")
    @classmethod
    def validate_type(cls, v):
        """Validate destination type."""
        allowed_types = ["postgresql", "dry_run"]
        if v not in allowed_types:
            raise ValueError(
                f"Destination type must be one of: {', '.join(allowed_types)}"
            )
        return v

    @model_validator(mode="after")
    def validate_connection_string(self):
        """A real database needs a connection string."""
        if self.type == "postgresql" and not self.connection_string:
            raise ValueError("connection_string is required for postgresql destinations")
        if self.min_connections > self.max_connections:
            raise ValueError("min_connections cannot exceed max_connections")
        return self


class TableConfig(BaseModel):
    """Routing of one source table or topic to a target table."""

    target_table: str = Field(description="Target table name")
    topic: Optional[str] = Field(None, description="Topic whose events go to this table")
    source_table: Optional[str] = Field(
        None, description="Source table name (from the event's source block)"
    )

    @model_validator(mode="after")
    def validate_selector(self):
        """Each mapping needs something to match on."""
        if not self.topic and not self.source_table:
            raise ValueError(
                f"Table mapping for '{self.target_table}' needs a topic or source_table"
            )
        return self


class TranslationConfig(BaseModel):
    """Statement translation settings."""

    identifier_policy: Literal["strict", "trust"] = Field(
        "strict",
        description="'strict' rejects unsafe table/column names, 'trust' embeds them as-is",
    )


class PrometheusConfig(BaseModel):
    """Prometheus monitoring configuration."""

    enabled: bool = False
    port: int = 8080


class MonitoringConfig(BaseModel):
    """Monitoring and observability configuration."""

    prometheus: PrometheusConfig = PrometheusConfig()
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    structured_logging: bool = True


class ErrorHandlingConfig(BaseModel):
    """Per-event failure handling."""

    fail_fast: bool = Field(False, description="Stop at the first failed event")
    log_failed_payloads: bool = Field(
        False, description="Include the full event in failure logs"
    )


class SinkConfig(BaseSettings):
    """Main configuration for cartridge-sink."""

    destination: DestinationConfig = DestinationConfig(type="dry_run")
    tables: list[TableConfig] = Field(default_factory=list)

    translation: TranslationConfig = TranslationConfig()
    monitoring: MonitoringConfig = MonitoringConfig()
    error_handling: ErrorHandlingConfig = ErrorHandlingConfig()

    # Runtime settings
    dry_run: bool = False

    model_config = {"env_prefix": "CARTRIDGE_SINK_", "case_sensitive": False}

    @classmethod
    def from_file(cls, config_path: Union[str, Path]) -> "SinkConfig":
        """Load configuration from YAML file."""
        config_path = Path(config_path)

        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}

        return cls(**config_data)

    def resolve_table(
        self, topic: Optional[str] = None, source_table: Optional[str] = None
    ) -> Optional[str]:
        """Get the configured target table for a topic or source table.

        Topic mappings take precedence over source table mappings.
        """
        if topic:
            for table_config in self.tables:
                if table_config.topic == topic:
                    return table_config.target_table

        if source_table:
            for table_config in self.tables:
                if table_config.source_table == source_table:
                    return table_config.target_table

        return None
