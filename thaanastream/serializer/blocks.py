"""Stable block identities and the dirty set."""

import itertools
from typing import Iterable, List, Optional, Set

from thaanastream.serializer.tree import Node

BLOCK_ID_ATTR = "data-md-block-id"


class BlockIdentifier:
    """Assigns monotonically increasing opaque IDs (``b1``, ``b2``, ...).

    The ID lives on the node itself, so it survives in-place edits and is
    lost only with the node.
    """

    def __init__(self, attr: str = BLOCK_ID_ATTR, prefix: str = "b") -> None:
        self.attr = attr
        self.prefix = prefix
        self._counter = itertools.count(1)
        self.issued: int = 0

    def id_of(self, node: Node) -> Optional[str]:
        return node.attrs.get(self.attr)

    def ensure_id(self, node: Node) -> str:
        block_id = node.attrs.get(self.attr)
        if not block_id:
            block_id = self.assign(node)
        return block_id

    def assign(self, node: Node) -> str:
        block_id = f"{self.prefix}{next(self._counter)}"
        node.attrs[self.attr] = block_id
        self.issued += 1
        return block_id

    def ids_for(self, blocks: Iterable[Node]) -> List[str]:
        """IDs in document order; a node carrying a copied ID gets a fresh one."""
        seen: Set[str] = set()
        ids: List[str] = []
        for block in blocks:
            block_id = self.ensure_id(block)
            if block_id in seen:
                block_id = self.assign(block)
            seen.add(block_id)
            ids.append(block_id)
        return ids


class DirtyTracker:
    """Set of block IDs invalidated since the last flush."""

    def __init__(self) -> None:
        self._ids: Set[str] = set()

    def add(self, block_id: str) -> None:
        self._ids.add(block_id)

    def discard(self, block_id: str) -> None:
        self._ids.discard(block_id)

    def take(self) -> Set[str]:
        """Return the current dirty IDs and clear the set."""
        ids, self._ids = self._ids, set()
        return ids

    def restore(self, ids: Iterable[str]) -> None:
        self._ids.update(ids)

    def prune(self, live: Set[str]) -> int:
        before = len(self._ids)
        self._ids &= live
        return before - len(self._ids)

    def snapshot(self) -> Set[str]:
        return set(self._ids)

    def clear(self) -> None:
        self._ids.clear()

    def __contains__(self, block_id: object) -> bool:
        return block_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)
