"""
Cartridge-Sink: CDC write applier

Applies Debezium change events to a relational database, one
parameterized INSERT, UPDATE or DELETE per event.
"""

__version__ = "0.1.0"
__author__ = "Cartridge Team"
__email__ = "team@cartridge.dev"

from .core.config import SinkConfig
from .core.runner import SinkRunner
from .dml.processor import DMLProcessor

__all__ = ["SinkConfig", "SinkRunner", "DMLProcessor"]
