"""
Cycle latency measurement.

ObjectTracker wraps every predict/update cycle in a Timer and records the
elapsed milliseconds in its telemetry.
"""

import time
from typing import Optional


class Timer:
    """
    Monotonic stopwatch usable as a context manager.

    Example:
        with Timer() as timer:
            belief = tracker.step(depth)
        telemetry.record(CycleTelemetry(cycle, timer.elapsed_ms, belief.trace))
    """

    def __init__(self) -> None:
        self._start: float = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *args: object) -> None:
        self._end = time.perf_counter()

    @property
    def running(self) -> bool:
        """True while inside the with block."""
        return self._end is None

    @property
    def elapsed_s(self) -> float:
        """Seconds since entry, frozen once the block exits."""
        end = time.perf_counter() if self._end is None else self._end
        return end - self._start

    @property
    def elapsed_ms(self) -> float:
        """Elapsed time in milliseconds."""
        return self.elapsed_s * 1000.0
