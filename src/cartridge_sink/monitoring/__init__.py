"""Monitoring for cartridge-sink."""

from .metrics import MetricsCollector

__all__ = ["MetricsCollector"]
