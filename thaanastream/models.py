"""Core data structures for ThaanaStream."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional


class SymbolKind(Enum):
    CONSONANT = "consonant"    # akuru: may fuse with a following vowel sign
    VOWEL_SIGN = "vowel_sign"  # fili: fuses with a pending consonant
    IMMEDIATE = "immediate"    # punctuation/control, never buffered
    OTHER = "other"


class InterruptKind(Enum):
    """Host events that invalidate a speculative pending consonant."""
    FOCUS_LOSS = "focus_loss"
    SELECTION_CHANGE = "selection_change"
    POINTER = "pointer"
    DELETION = "deletion"
    SHORTCUT = "shortcut"
    PASTE = "paste"


@dataclass(frozen=True)
class Symbol:
    """A single classified input unit."""
    char: str
    kind: SymbolKind
    timestamp_ms: float = 0.0


@dataclass
class CompositionState:
    """Pending composition held by the phonetic composer."""
    pending_consonant: Optional[Symbol] = None
    pending_glyph: str = ""
    awaiting_vowel: bool = False
    inserted: bool = False
    timer_handle: Any = None

    @property
    def is_pending(self) -> bool:
        return self.pending_consonant is not None

    def reset(self) -> None:
        self.pending_consonant = None
        self.pending_glyph = ""
        self.awaiting_vowel = False
        self.inserted = False
        self.timer_handle = None


@dataclass
class PerfSample:
    """Payload of the ``perf`` event emitted after every serializer flush."""
    phase: str  # 'incremental' | 'full-fallback'
    duration: float  # ms
    blocks: int
    dirty: int
    forced_full: bool
    avg_incremental: Optional[float] = None
    p95_incremental: Optional[float] = None
    samples: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase,
            "duration": self.duration,
            "blocks": self.blocks,
            "dirty": self.dirty,
            "forced_full": self.forced_full,
            "avg_incremental": self.avg_incremental,
            "p95_incremental": self.p95_incremental,
            "samples": self.samples,
        }


# Event names
COMPOSITION_START = "composition-start"
COMPOSITION_COMMIT = "composition-commit"
COMPOSITION_FLUSH = "composition-flush"
PERF = "perf"
CONTENT_CHANGE = "content-change"


# Standard phonetic keyboard: akuru keys (consonants), uppercase variants included.
AKURU: FrozenSet[str] = frozenset(
    "dkstfghjlzvbnmrypc"
    "DKSTFGHJLZVBNMRYPC"
)

# Fili keys (vowel signs); 'q' is sukun.
FILI: FrozenSet[str] = frozenset("aiueoqAIUEO")

IMMEDIATE_CHARS: FrozenSet[str] = frozenset({
    " ", ".", ",", "!", "?", "\n", "\t", ";", ":", "(", ")",
    "[", "]", "{", "}", "<", ">", "/", "\\",
})


@dataclass
class SymbolSets:
    """Membership sets driving symbol classification."""
    consonants: FrozenSet[str] = field(default_factory=lambda: AKURU)
    vowel_signs: FrozenSet[str] = field(default_factory=lambda: FILI)
    immediate: FrozenSet[str] = field(default_factory=lambda: IMMEDIATE_CHARS)
