"""Phonetic composer: fuses a buffered consonant with a following vowel sign.

States are ``Idle`` and ``PendingConsonant``. A consonant is written to the
surface immediately and held for ``flush_timeout_ms``; a vowel sign arriving
in that window replaces the written glyph with the fused syllable. Anything
else (another consonant, punctuation, an interrupt, the timer) flushes the
pending consonant, leaving it standalone.
"""

import logging
import threading
import time
from typing import Any, Dict, Mapping, Optional, Union

from thaanastream.events import EventBus
from thaanastream.ime.burst import BurstDetector
from thaanastream.ime.classify import SymbolClassifier, should_convert_text
from thaanastream.ime.surface import DocumentSurface
from thaanastream.layouts import STANDARD, LayoutRegistry, LayoutTable, create_default_registry
from thaanastream.models import (
    COMPOSITION_COMMIT, COMPOSITION_FLUSH, COMPOSITION_START,
    CompositionState, InterruptKind, Symbol, SymbolKind,
)
from thaanastream.scheduling import Scheduler

logger = logging.getLogger("thaanastream.ime.composer")

DEFAULT_FLUSH_TIMEOUT_MS = 500.0

LayoutLike = Union[LayoutTable, Mapping[str, str], str]


def _resolve_layout(layout: Optional[LayoutLike], registry: Optional[LayoutRegistry] = None) -> LayoutTable:
    if layout is None:
        return STANDARD
    if isinstance(layout, LayoutTable):
        return layout
    if isinstance(layout, str):
        return (registry or create_default_registry()).get(layout)
    return LayoutTable(layout)


class PhoneticComposer:
    """Live composition engine bound to one document surface.

    All transitions run under a re-entrant lock so a timer firing on another
    thread never observes a half-finished transition.
    """

    def __init__(
        self,
        surface: DocumentSurface,
        layout: Optional[LayoutLike] = None,
        classifier: Optional[SymbolClassifier] = None,
        scheduler: Optional[Scheduler] = None,
        bus: Optional[EventBus] = None,
        flush_timeout_ms: float = DEFAULT_FLUSH_TIMEOUT_MS,
        emit_events: bool = True,
        enabled: bool = True,
        burst: Optional[BurstDetector] = None,
        registry: Optional[LayoutRegistry] = None,
    ) -> None:
        self.surface = surface
        self._registry = registry or create_default_registry()
        self.layout = _resolve_layout(layout, self._registry)
        self.classifier = classifier or SymbolClassifier()
        self.scheduler = scheduler
        self.bus = bus
        self.flush_timeout_ms = flush_timeout_ms
        self.emit_events = emit_events
        self.burst = burst or BurstDetector()

        self._enabled = enabled
        self._destroyed = False
        self._lock = threading.RLock()
        self._state = CompositionState()
        self._pending_layout: Optional[LayoutTable] = None
        self._generation = 0
        self._degraded = scheduler is None
        if self._degraded:
            logger.info("No scheduler supplied; composing without fusion")

        # Stats
        self.commits = 0
        self.flushes = 0
        self.timeouts = 0
        self.write_failures = 0

        self._unsubscribe = surface.on_interrupt(self._on_interrupt)

    # ---- public API -------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def state(self) -> CompositionState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state.is_pending

    @property
    def degraded(self) -> bool:
        """True when the timer facility is unavailable and fusion is off."""
        return self._degraded

    def process(self, char: str, timestamp_ms: Optional[float] = None) -> None:
        """Feed one input symbol through the state machine."""
        if self._destroyed or not self._enabled or not char:
            return
        if timestamp_ms is None:
            timestamp_ms = time.monotonic() * 1000
        with self._lock:
            symbol = self.classifier.classify(char, timestamp_ms)
            self.burst.record(timestamp_ms)

            if symbol.kind is SymbolKind.CONSONANT:
                self._handle_consonant(symbol)
            elif symbol.kind is SymbolKind.VOWEL_SIGN:
                self._handle_vowel(symbol)
            else:
                self._flush_locked()
                self._insert_direct(self.layout.glyph(symbol.char))

    def handle_key(
        self,
        char: str,
        timestamp_ms: Optional[float] = None,
        ctrl: bool = False,
        meta: bool = False,
    ) -> bool:
        """Route a raw key press. Chorded shortcuts flush instead of composing.

        Returns True when the key was consumed as input.
        """
        if ctrl or meta:
            self._on_interrupt(InterruptKind.SHORTCUT)
            return False
        self.process(char, timestamp_ms)
        return self._enabled and not self._destroyed

    def flush(self) -> bool:
        """Force the composer back to Idle. Returns True if anything was pending."""
        with self._lock:
            return self._flush_locked()

    def set_enabled(self, enabled: bool) -> None:
        with self._lock:
            if not enabled:
                self._flush_locked()
            self._enabled = enabled

    def set_layout(self, layout: LayoutLike) -> None:
        """Hot-swap the layout. A pending composition keeps its own layout."""
        try:
            table = _resolve_layout(layout, self._registry)
        except KeyError:
            logger.warning("Ignoring unknown layout %r; keeping %s", layout, self.layout.name)
            return
        with self._lock:
            self.layout = table

    def destroy(self) -> None:
        if self._destroyed:
            return
        with self._lock:
            self._flush_locked()
            self._destroyed = True
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def stats(self) -> Dict[str, Any]:
        return {
            "commits": self.commits,
            "flushes": self.flushes,
            "timeouts": self.timeouts,
            "write_failures": self.write_failures,
            "pending": self.is_pending,
            "degraded": self._degraded,
            "layout": self.layout.name,
            "burst": self.burst.get_stats(),
        }

    # ---- transitions ------------------------------------------------------

    def _handle_consonant(self, symbol: Symbol) -> None:
        self._flush_locked()

        glyph = self.layout.glyph(symbol.char)
        if not self._write(self.surface.insert_at_cursor, glyph):
            return

        state = self._state
        state.pending_consonant = symbol
        state.pending_glyph = glyph
        state.awaiting_vowel = True
        state.inserted = True
        self._pending_layout = self.layout
        self._generation += 1

        if not self._start_timer():
            # No timer: nothing can fuse, leave the consonant standalone.
            self._clear()
            self.flushes += 1
            self._emit(COMPOSITION_START, {"consonant": glyph})
            self._emit(COMPOSITION_FLUSH, {})
            return
        self._emit(COMPOSITION_START, {"consonant": glyph})

    def _handle_vowel(self, symbol: Symbol) -> None:
        state = self._state
        if not (state.is_pending and state.inserted):
            self._flush_locked()
            self._insert_direct(self.layout.glyph(symbol.char))
            return

        self._cancel_timer()
        layout = self._pending_layout or self.layout
        syllable = state.pending_glyph + layout.glyph(symbol.char)
        if not self._write(self.surface.replace_last_inserted, syllable):
            return

        self.commits += 1
        self._clear()
        self._emit(COMPOSITION_COMMIT, {"syllable": syllable})

    def _flush_locked(self) -> bool:
        if not self._state.is_pending:
            return False
        self._cancel_timer()
        self._clear()
        self.flushes += 1
        self._emit(COMPOSITION_FLUSH, {})
        return True

    def _clear(self) -> None:
        self._state.reset()
        self._pending_layout = None
        self._generation += 1

    def _insert_direct(self, glyph: str) -> None:
        self._write(self.surface.insert_at_cursor, glyph)

    def _write(self, op, text: str) -> bool:
        """Apply a surface write. On failure drop any pending state."""
        try:
            op(text)
            return True
        except Exception as e:
            self.write_failures += 1
            logger.warning("Surface write failed (%s); clearing pending composition", e)
            self._cancel_timer()
            self._clear()
            return False

    # ---- timer ------------------------------------------------------------

    def _start_timer(self) -> bool:
        if self._degraded:
            return False
        generation = self._generation
        try:
            handle = self.scheduler.schedule(
                self.flush_timeout_ms, lambda: self._on_timeout(generation)
            )
        except Exception as e:
            logger.warning("Scheduler unavailable (%s); composing without fusion", e)
            self._degraded = True
            return False
        self._state.timer_handle = handle
        return True

    def _cancel_timer(self) -> None:
        handle = self._state.timer_handle
        if handle is None:
            return
        self._state.timer_handle = None
        try:
            self.scheduler.cancel(handle)
        except Exception as e:
            logger.debug("Timer cancel failed: %s", e)

    def _on_timeout(self, generation: int) -> None:
        with self._lock:
            # Stale timer from a composition that already moved on.
            if generation != self._generation or not self._state.is_pending:
                return
            self._state.timer_handle = None
            self.timeouts += 1
            self._flush_locked()

    # ---- events -----------------------------------------------------------

    def _on_interrupt(self, kind: InterruptKind) -> None:
        if self._destroyed or not self._enabled:
            return
        if self.flush():
            logger.debug("Flushed pending composition on %s", kind.value)

    def _emit(self, event: str, payload: Dict[str, Any]) -> None:
        if self.bus is None or not self.emit_events or self.burst.suppressed:
            return
        self.bus.emit(event, payload)


def compose(
    text: str,
    layout: Optional[LayoutLike] = None,
    classifier: Optional[SymbolClassifier] = None,
) -> str:
    """Convert a whole string as if typed with no timeouts firing.

    A consonant immediately followed by a vowel sign always fuses.
    """
    table = _resolve_layout(layout)
    classifier = classifier or SymbolClassifier()
    out = []
    i = 0
    while i < len(text):
        char = text[i]
        if (
            i + 1 < len(text)
            and classifier.kind_of(char) is SymbolKind.CONSONANT
            and classifier.kind_of(text[i + 1]) is SymbolKind.VOWEL_SIGN
        ):
            out.append(table.glyph(char) + table.glyph(text[i + 1]))
            i += 2
            continue
        out.append(table.glyph(char))
        i += 1
    return "".join(out)


def compose_selective(
    text: str,
    layout: Optional[LayoutLike] = None,
    classifier: Optional[SymbolClassifier] = None,
) -> str:
    """Like :func:`compose`, but leaves markdown, URLs, code and latin prose alone."""
    if not should_convert_text(text):
        return text
    return compose(text, layout, classifier)
