"""Logging module for Yttrium."""

from yttrium.logging.setup import configure_logging, get_logger
from yttrium.logging.telemetry import CycleTelemetry, TelemetryCollector

__all__ = [
    "configure_logging",
    "get_logger",
    "CycleTelemetry",
    "TelemetryCollector",
]
