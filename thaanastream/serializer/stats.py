"""Rolling latency statistics for incremental flushes."""

import math
from collections import deque
from typing import Deque, Dict, Optional, Tuple

DEFAULT_WINDOW = 50


class PerformanceSampler:
    """FIFO window of flush durations (ms) with average and p95."""

    def __init__(self, window: int = DEFAULT_WINDOW) -> None:
        self._samples: Deque[float] = deque(maxlen=window)
        self.total_recorded: int = 0

    def record(self, duration_ms: float) -> None:
        self._samples.append(duration_ms)
        self.total_recorded += 1

    @property
    def samples(self) -> int:
        return len(self._samples)

    @property
    def average(self) -> Optional[float]:
        if not self._samples:
            return None
        return sum(self._samples) / len(self._samples)

    @property
    def p95(self) -> Optional[float]:
        if not self._samples:
            return None
        ordered = sorted(self._samples)
        return ordered[math.floor(0.95 * (len(ordered) - 1))]

    def summary(self) -> Tuple[Optional[float], Optional[float], int]:
        return self.average, self.p95, self.samples

    def get_stats(self) -> Dict:
        return {
            "samples": self.samples,
            "avg_ms": self.average,
            "p95_ms": self.p95,
            "total_recorded": self.total_recorded,
        }
