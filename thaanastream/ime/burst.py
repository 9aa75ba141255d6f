"""Burst detection: silences auxiliary events under extremely fast input."""

from collections import deque
from typing import Deque, Dict, Optional

# Window and thresholds in milliseconds
MAX_WINDOW = 32
MIN_SAMPLES = 8
BURST_MS_PER_8 = 25.0
RECOVER_SPAN_MS = 120.0


class BurstDetector:
    """Sliding window of recent symbol arrival times.

    Enter suppression when the window span is below
    ``25ms * (len(window) / 8)`` (needs at least 8 samples). Leave it once
    the span exceeds 120ms. Suppression only affects event emission.
    """

    def __init__(
        self,
        window_size: int = MAX_WINDOW,
        min_samples: int = MIN_SAMPLES,
        burst_ms_per_8: float = BURST_MS_PER_8,
        recover_span_ms: float = RECOVER_SPAN_MS,
    ) -> None:
        self._window: Deque[float] = deque(maxlen=window_size)
        self._min_samples = min_samples
        self._burst_ms_per_8 = burst_ms_per_8
        self._recover_span_ms = recover_span_ms
        self.suppressed: bool = False

        # Stats
        self.total_symbols: int = 0
        self.bursts_entered: int = 0

    def record(self, timestamp_ms: float) -> bool:
        """Record an arrival and return the updated ``suppressed`` flag."""
        self.total_symbols += 1
        self._window.append(timestamp_ms)
        if len(self._window) < self._min_samples:
            return self.suppressed

        span = self.span_ms
        if not self.suppressed:
            if span < self._burst_ms_per_8 * (len(self._window) / 8):
                self.suppressed = True
                self.bursts_entered += 1
        elif span > self._recover_span_ms:
            self.suppressed = False
        return self.suppressed

    @property
    def span_ms(self) -> float:
        if len(self._window) < 2:
            return 0.0
        return self._window[-1] - self._window[0]

    @property
    def window_length(self) -> int:
        return len(self._window)

    @property
    def last_timestamp(self) -> Optional[float]:
        return self._window[-1] if self._window else None

    def reset(self) -> None:
        self._window.clear()
        self.suppressed = False

    def get_stats(self) -> Dict:
        return {
            "total_symbols": self.total_symbols,
            "bursts_entered": self.bursts_entered,
            "suppressed": self.suppressed,
            "window_length": self.window_length,
            "span_ms": self.span_ms,
        }
