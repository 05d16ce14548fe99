"""Core components for cartridge-sink."""

from .config import SinkConfig
from .records import SinkRecord, read_records
from .runner import RunSummary, SinkRunner

__all__ = ["SinkConfig", "SinkRecord", "read_records", "RunSummary", "SinkRunner"]
