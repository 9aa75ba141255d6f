"""Incremental serializer: per-block cache with dirty-region invalidation.

Pipeline per flush: resolve top-level blocks -> fallback decision ->
recompute dirty blocks (or all) -> newline join -> post-process ->
periodic prune -> latency stats.
"""

import logging
import time
from typing import Callable, Dict, List, Optional, Set, Tuple

from thaanastream.errors import BlockSerializationError
from thaanastream.events import EventBus
from thaanastream.models import PERF, PerfSample
from thaanastream.serializer.blocks import BlockIdentifier, DirtyTracker
from thaanastream.serializer.markdown import post_process
from thaanastream.serializer.policy import DEFAULT_FALLBACK_THRESHOLD, FallbackPolicy
from thaanastream.serializer.stats import DEFAULT_WINDOW, PerformanceSampler
from thaanastream.serializer.tree import ChangeBatch, Node, is_blank_text, is_block

logger = logging.getLogger("thaanastream.serializer.incremental")

BlockSerializer = Callable[[Node], str]

DEFAULT_PRUNE_EVERY = 25


class IncrementalSerializer:
    """Serialization cache bound to one document tree.

    A block whose serialization raises gets ``error_fragment`` in its cache
    entry and stays dirty, so the next flush retries it; other blocks are
    unaffected. With ``strict=True`` the flush is aborted instead with
    :class:`BlockSerializationError` and the cache is left as it was.
    """

    def __init__(
        self,
        serialize_block: BlockSerializer,
        fallback_threshold: float = DEFAULT_FALLBACK_THRESHOLD,
        prune_every: int = DEFAULT_PRUNE_EVERY,
        stat_window: int = DEFAULT_WINDOW,
        error_fragment: str = "",
        strict: bool = False,
        bus: Optional[EventBus] = None,
        identifier: Optional[BlockIdentifier] = None,
    ) -> None:
        self.serialize_block = serialize_block
        self.policy = FallbackPolicy(fallback_threshold)
        self.prune_every = max(prune_every, 1)
        self.sampler = PerformanceSampler(stat_window)
        self.error_fragment = error_fragment
        self.strict = strict
        self.bus = bus
        self.identifier = identifier or BlockIdentifier()

        self._cache: Dict[str, str] = {}
        self._dirty = DirtyTracker()
        self._last_root: Optional[Node] = None
        self._top_blocks: List[Node] = []
        self._mixed = False
        self._destroyed = False

        # Stats
        self.flush_count: int = 0
        self.full_fallbacks: int = 0
        self.recompute_count: int = 0
        self.last_recomputed: List[str] = []
        self.fast_path_hits: int = 0
        self.serialize_failures: int = 0
        self.prunes: int = 0

    # ---- change tracking --------------------------------------------------

    def mark_dirty(self, node: Node) -> Optional[str]:
        """Mark the top-level block enclosing ``node``. Returns its ID."""
        block = self._enclosing_block(node)
        if block is None:
            return None
        block_id = self.identifier.ensure_id(block)
        self._dirty.add(block_id)
        if (
            self._last_root is not None
            and block.parent is self._last_root
            and self._top_blocks
            and not any(b is block for b in self._top_blocks)
        ):
            # New sibling block; the fast path re-validates order on next flush.
            self._top_blocks.append(block)
        return block_id

    def apply_changes(self, batch: ChangeBatch) -> None:
        for node in batch.nodes():
            self.mark_dirty(node)

    def _enclosing_block(self, node: Node) -> Optional[Node]:
        candidate = None
        cur: Optional[Node] = node
        while cur is not None:
            if cur is self._last_root:
                return cur if self._mixed else candidate
            if cur.parent is None:
                # Top of the tree before the first flush, or a detached subtree.
                return candidate if self._last_root is None else None
            if is_block(cur):
                candidate = cur
            cur = cur.parent
        return None

    # ---- flushing ---------------------------------------------------------

    def get_incremental(self, root: Node) -> str:
        t0 = time.perf_counter()
        blocks = self._resolve_blocks(root)
        ids = self.identifier.ids_for(blocks)
        dirty_count = len(self._dirty)

        if self.policy.should_fallback(dirty_count, len(blocks)):
            out = self._rebuild(blocks, ids)
            self.full_fallbacks += 1
            self._emit_perf("full-fallback", t0, len(blocks), dirty_count, forced_full=True)
            return out

        live = set(ids)
        dirty = self._dirty.take()
        targets = [
            (block_id, block) for block_id, block in zip(ids, blocks)
            if block_id in dirty or block_id not in self._cache
        ]
        try:
            fresh, failed = self._serialize_all(targets)
        except BlockSerializationError:
            self._dirty.restore(dirty)
            raise
        self._cache.update(fresh)
        self._dirty.restore(failed)
        self.last_recomputed = [block_id for block_id, _ in targets]

        out = post_process("\n".join(self._cache[block_id] for block_id in ids))

        self.flush_count += 1
        if self.flush_count % self.prune_every == 0:
            self._prune(live)

        self.sampler.record((time.perf_counter() - t0) * 1000)
        self._emit_perf("incremental", t0, len(blocks), dirty_count, forced_full=False)
        return out

    def get_full(self, root: Node) -> str:
        """Serialize everything and rebuild the cache wholesale."""
        blocks = self._resolve_blocks(root)
        ids = self.identifier.ids_for(blocks)
        return self._rebuild(blocks, ids)

    def _rebuild(self, blocks: List[Node], ids: List[str]) -> str:
        dirty = self._dirty.take()
        try:
            fresh, failed = self._serialize_all(list(zip(ids, blocks)))
        except BlockSerializationError:
            self._dirty.restore(dirty)
            raise
        self._cache = fresh
        self._dirty.restore(failed)
        self.last_recomputed = list(ids)
        return post_process("\n".join(fresh[block_id] for block_id in ids))

    def _serialize_all(self, targets: List[Tuple[str, Node]]) -> Tuple[Dict[str, str], Set[str]]:
        """Serialize every target before anything is committed to the cache."""
        fresh: Dict[str, str] = {}
        failed: Set[str] = set()
        for block_id, block in targets:
            self.recompute_count += 1
            try:
                fresh[block_id] = self.serialize_block(block.clone())
            except Exception as e:
                self.serialize_failures += 1
                if self.strict:
                    raise BlockSerializationError(block_id, e) from e
                logger.warning("Serializing block %s failed: %s", block_id, e)
                fresh[block_id] = self.error_fragment
                failed.add(block_id)
        return fresh, failed

    # ---- block resolution -------------------------------------------------

    def _resolve_blocks(self, root: Node) -> List[Node]:
        significant = [c for c in root.children if not is_blank_text(c)]
        if (
            root is self._last_root
            and not self._mixed
            and self._top_blocks
            and len(significant) == len(self._top_blocks)
            and all(a is b for a, b in zip(significant, self._top_blocks))
        ):
            self.fast_path_hits += 1
            return list(self._top_blocks)
        return self._collect_blocks(root, significant)

    def _collect_blocks(self, root: Node, significant: List[Node]) -> List[Node]:
        if root is not self._last_root:
            self._last_root = root
        blocks = [c for c in significant if is_block(c)]
        if not blocks or len(blocks) != len(significant):
            # Stray text or inline siblings make block identity ambiguous.
            if not self._mixed:
                logger.debug("Mixed top-level content; treating root as one block")
            self._mixed = True
            self._top_blocks = []
            return [root]
        if self._mixed:
            # Edits made in mixed mode were only recorded against the root.
            logger.debug("Top-level content is blocks again; dropping cached entries")
            self._cache.clear()
            self._dirty.clear()
        self._mixed = False
        self._top_blocks = blocks
        return list(blocks)

    # ---- maintenance ------------------------------------------------------

    def _prune(self, live: Set[str]) -> None:
        for block_id in [k for k in self._cache if k not in live]:
            del self._cache[block_id]
        self._dirty.prune(live)
        self.prunes += 1

    def _emit_perf(self, phase: str, t0: float, blocks: int, dirty: int, forced_full: bool) -> None:
        if self.bus is None:
            return
        avg, p95, samples = self.sampler.summary()
        sample = PerfSample(
            phase=phase,
            duration=(time.perf_counter() - t0) * 1000,
            blocks=blocks,
            dirty=dirty,
            forced_full=forced_full,
            avg_incremental=avg,
            p95_incremental=p95,
            samples=samples,
        )
        self.bus.emit(PERF, sample)

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    @property
    def dirty_ids(self) -> Set[str]:
        return self._dirty.snapshot()

    @property
    def has_block_list(self) -> bool:
        return bool(self._top_blocks)

    @property
    def mixed_content(self) -> bool:
        return self._mixed

    def cached(self, block_id: str) -> Optional[str]:
        return self._cache.get(block_id)

    def invalidate(self) -> None:
        """Drop every cache entry; the next flush recomputes all blocks."""
        self._cache.clear()
        self._dirty.clear()
        self._top_blocks = []

    def destroy(self) -> None:
        if self._destroyed:
            return
        self.invalidate()
        self._last_root = None
        self._destroyed = True

    def get_stats(self) -> Dict:
        return {
            "flush_count": self.flush_count,
            "full_fallbacks": self.full_fallbacks,
            "recompute_count": self.recompute_count,
            "fast_path_hits": self.fast_path_hits,
            "serialize_failures": self.serialize_failures,
            "prunes": self.prunes,
            "cache_size": self.cache_size,
            "dirty": len(self._dirty),
            "latency": self.sampler.get_stats(),
        }
