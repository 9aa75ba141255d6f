"""Full vs incremental recomputation policies."""

from typing import Iterable, Optional

DEFAULT_FALLBACK_THRESHOLD = 0.4
STRUCTURAL_SOURCES = ("enter", "paste", "drop")


class FallbackPolicy:
    """Fall back to a full pass when the dirty ratio exceeds the threshold.

    The comparison is strict: exactly 4 of 10 dirty stays incremental.
    """

    def __init__(self, threshold: float = DEFAULT_FALLBACK_THRESHOLD) -> None:
        self.threshold = threshold

    @staticmethod
    def dirty_ratio(dirty: int, blocks: int) -> float:
        return dirty / max(blocks, 1)

    def should_fallback(self, dirty: int, blocks: int) -> bool:
        return self.dirty_ratio(dirty, blocks) > self.threshold


class ForceFullHeuristic:
    """Decides when a caller should skip the incremental path entirely.

    Best-effort: after a structural edit (newline, paste, drop) with more
    than ``max_dirty`` dirty blocks, or with no recorded block list, a full
    reserialize is forced. Tune or replace as needed; it does not prove
    the incremental result would have been wrong.
    """

    def __init__(
        self,
        max_dirty: int = 2,
        structural_sources: Iterable[str] = STRUCTURAL_SOURCES,
    ) -> None:
        self.max_dirty = max_dirty
        self.structural_sources = tuple(s.lower() for s in structural_sources)

    def is_structural(self, source: Optional[str]) -> bool:
        if not source:
            return False
        lowered = source.lower()
        return any(s in lowered for s in self.structural_sources)

    def should_force_full(self, source: Optional[str], dirty: int, has_block_list: bool) -> bool:
        if not self.is_structural(source):
            return False
        return dirty > self.max_dirty or not has_block_list
