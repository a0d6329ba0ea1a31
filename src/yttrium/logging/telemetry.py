"""
Telemetry data collection for Yttrium.

Provides structures for collecting and reporting per-cycle filter metrics.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass
class CycleTelemetry:
    """Metrics of one predict/update cycle."""

    cycle: int
    latency_ms: float
    covariance_trace: float
    log_likelihood_max: Optional[float] = None
    log_likelihood_spread: Optional[float] = None
    update_applied: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return {
            "cycle": self.cycle,
            "latency_ms": round(self.latency_ms, 2),
            "covariance_trace": self.covariance_trace,
            "log_likelihood_max": self.log_likelihood_max,
            "log_likelihood_spread": self.log_likelihood_spread,
            "update_applied": self.update_applied,
        }


@dataclass
class TelemetryCollector:
    """
    Collects and aggregates cycle telemetry.

    Maintains a sliding window of recent cycles for statistics.
    """

    window_size: int = 100
    _data: deque[CycleTelemetry] = field(default_factory=deque)
    _failures: int = 0

    def __post_init__(self) -> None:
        """Initialize deque with correct maxlen."""
        self._data = deque(maxlen=self.window_size)

    def record(self, data: CycleTelemetry) -> None:
        """Record a cycle measurement."""
        self._data.append(data)

    def record_failure(self) -> None:
        """Count a cycle that raised."""
        self._failures += 1

    @property
    def history(self) -> list[CycleTelemetry]:
        """Cycles in the current window, oldest first."""
        return list(self._data)

    @property
    def latest(self) -> Optional[CycleTelemetry]:
        """Most recent cycle, if any."""
        return self._data[-1] if self._data else None

    def get_latency_stats(self) -> dict[str, float]:
        """
        Calculate latency statistics.

        Returns:
            Dictionary with mean, min, max latency in ms.
        """
        if not self._data:
            return {"mean": 0.0, "min": 0.0, "max": 0.0}

        latencies = [d.latency_ms for d in self._data]
        return {
            "mean": sum(latencies) / len(latencies),
            "min": min(latencies),
            "max": max(latencies),
        }

    def get_summary(self) -> dict[str, Any]:
        """
        Get summary of collected telemetry.

        Returns:
            Summary dictionary.
        """
        if not self._data:
            return {
                "sample_count": 0,
                "failures": self._failures,
                "latency": {"mean": 0.0, "min": 0.0, "max": 0.0},
            }

        return {
            "sample_count": len(self._data),
            "failures": self._failures,
            "latency": self.get_latency_stats(),
            "covariance_trace": {
                "latest": self._data[-1].covariance_trace,
                "min": min(d.covariance_trace for d in self._data),
                "max": max(d.covariance_trace for d in self._data),
            },
        }

    def clear(self) -> None:
        """Clear all collected data."""
        self._data.clear()
        self._failures = 0
