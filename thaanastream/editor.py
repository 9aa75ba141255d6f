"""ThaanaEditor: wires the composer and the serializer to one document.

Pipeline: keystrokes -> PhoneticComposer -> DocumentSurface.
Tree changes -> IncrementalSerializer.mark_dirty -> ChangeBuffer ->
get_markdown -> ``content-change``.
"""

import logging
import threading
from typing import Any, Callable, Dict, Optional

from thaanastream.change_buffer import ChangeBuffer
from thaanastream.config import EditorConfig
from thaanastream.events import EventBus, EventHandler
from thaanastream.ime.burst import BurstDetector
from thaanastream.ime.classify import SymbolClassifier
from thaanastream.ime.composer import LayoutLike, PhoneticComposer, compose, compose_selective
from thaanastream.ime.surface import DocumentSurface, TextSurface
from thaanastream.models import CONTENT_CHANGE
from thaanastream.scheduling import Scheduler, ThreadingScheduler
from thaanastream.serializer.incremental import BlockSerializer, IncrementalSerializer
from thaanastream.serializer.markdown import MarkdownSerializer
from thaanastream.serializer.policy import ForceFullHeuristic
from thaanastream.serializer.tree import ChangeBatch, Node

logger = logging.getLogger("thaanastream.editor")


class ThaanaEditor:
    """Per-editor object owning every stateful component. Call ``destroy``.

    Without a ``scheduler`` composition timeouts run on a timer thread, while
    content updates are computed synchronously on the thread calling
    ``notify``. Pass a scheduler to defer and coalesce content updates too.
    """

    def __init__(
        self,
        root: Optional[Node] = None,
        surface: Optional[DocumentSurface] = None,
        config: Optional[EditorConfig] = None,
        scheduler: Optional[Scheduler] = None,
        serialize_block: Optional[BlockSerializer] = None,
        sanitize: Optional[Callable[[str], str]] = None,
        heuristic: Optional[ForceFullHeuristic] = None,
    ) -> None:
        self.config = (config or EditorConfig()).validate()
        self.root = root if root is not None else Node("div")
        self.surface = surface if surface is not None else TextSurface()
        self.bus = EventBus()
        self._owns_scheduler = scheduler is None
        self.scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.RLock()
        self.sanitize = sanitize
        self.heuristic = heuristic or ForceFullHeuristic()

        ime = self.config.ime
        self.composer = PhoneticComposer(
            self.surface,
            layout=ime.layout,
            classifier=SymbolClassifier(ime.symbol_sets()),
            scheduler=self.scheduler,
            bus=self.bus,
            flush_timeout_ms=ime.flush_timeout_ms,
            emit_events=ime.emit_events,
            enabled=ime.enabled,
            burst=BurstDetector(window_size=ime.burst_window),
        )

        ser = self.config.serializer
        self.markdown = MarkdownSerializer(list_style=ser.list_style)
        self.incremental: Optional[IncrementalSerializer] = None
        if ser.incremental:
            self.incremental = IncrementalSerializer(
                serialize_block or self.markdown.serialize_block,
                fallback_threshold=ser.fallback_threshold,
                prune_every=ser.prune_every,
                stat_window=ser.stat_window,
                error_fragment=ser.error_fragment,
                strict=ser.strict,
                bus=self.bus if ser.instrumentation else None,
            )

        # Content updates are deferred only on a caller-supplied scheduler;
        # the default timer thread serves composition timeouts alone.
        self.change_buffer = ChangeBuffer(self.get_markdown, self._emit_content, scheduler)
        self._destroyed = False

    # ---- events -----------------------------------------------------------

    def on(self, event: str, handler: EventHandler) -> None:
        self.bus.on(event, handler)

    def off(self, event: str, handler: EventHandler) -> None:
        self.bus.off(event, handler)

    def _emit_content(self, markdown: str) -> None:
        self.bus.emit(CONTENT_CHANGE, {"markdown": markdown})

    # ---- input ------------------------------------------------------------

    def type_char(self, char: str, timestamp_ms: Optional[float] = None) -> None:
        self.composer.process(char, timestamp_ms)

    def handle_key(self, char: str, timestamp_ms: Optional[float] = None,
                   ctrl: bool = False, meta: bool = False) -> bool:
        return self.composer.handle_key(char, timestamp_ms, ctrl=ctrl, meta=meta)

    def flush_composition(self) -> bool:
        return self.composer.flush()

    def set_enabled(self, enabled: bool) -> None:
        self.composer.set_enabled(enabled)

    def set_layout(self, layout: LayoutLike) -> None:
        self.composer.set_layout(layout)

    def convert_content(self, text: str, selective: bool = False) -> str:
        """Bulk-convert latin phonetic text with the active layout."""
        convert = compose_selective if selective else compose
        return convert(text, self.composer.layout, self.composer.classifier)

    # ---- document ---------------------------------------------------------

    def notify(self, batch: ChangeBatch, source: str = "mutation", immediate: bool = False) -> None:
        """Feed a tree change notification and schedule a content update."""
        if self._destroyed:
            return
        with self._lock:
            if self.incremental is not None:
                self.incremental.apply_changes(batch)
        self.change_buffer.schedule(source, immediate)

    def get_markdown(self) -> str:
        with self._lock:
            raw = self._serialize()
        return self.sanitize(raw) if self.sanitize else raw

    def _serialize(self) -> str:
        if self.incremental is None:
            return self.markdown.serialize(self.root)
        inc = self.incremental
        force_full = self.heuristic.should_force_full(
            self.change_buffer.last_source, len(inc.dirty_ids), inc.has_block_list,
        )
        return inc.get_full(self.root) if force_full else inc.get_incremental(self.root)

    def stats(self) -> Dict[str, Any]:
        return {
            "composer": self.composer.stats(),
            "serializer": self.incremental.get_stats() if self.incremental else None,
            "changes": {
                "scheduled": self.change_buffer.scheduled,
                "emitted": self.change_buffer.emitted,
            },
        }

    def destroy(self) -> None:
        if self._destroyed:
            return
        self._destroyed = True
        self.composer.destroy()
        self.change_buffer.destroy()
        if self.incremental is not None:
            self.incremental.destroy()
        if self._owns_scheduler:
            self.scheduler.close()
        self.bus.clear()
        logger.debug("Editor destroyed")
