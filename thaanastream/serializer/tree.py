"""Minimal document tree with stable node references.

Any tree works with the serializer as long as nodes expose ``tag``,
``children``, ``parent``, ``text`` and ``attrs``. This module ships the
in-memory model used by the editor facade, the CLI and the tests.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

TEXT = "#text"

BLOCK_TAGS = frozenset({
    "div", "p", "h1", "h2", "h3", "h4", "h5", "h6",
    "blockquote", "pre", "ul", "ol",
})


class Node:
    """Element or text node. Identity (``is``) is the node's reference."""

    __slots__ = ("tag", "text", "attrs", "children", "parent", "__weakref__")

    def __init__(
        self,
        tag: str,
        children: Optional[List["Node"]] = None,
        text: str = "",
        attrs: Optional[Dict[str, str]] = None,
    ) -> None:
        self.tag = tag.lower() if tag != TEXT else tag
        self.text = text
        self.attrs: Dict[str, str] = dict(attrs or {})
        self.children: List[Node] = []
        self.parent: Optional[Node] = None
        for child in children or ():
            self.append(child)

    @property
    def is_text(self) -> bool:
        return self.tag == TEXT

    def append(self, child: "Node") -> "Node":
        return self.insert(len(self.children), child)

    def insert(self, index: int, child: "Node") -> "Node":
        if child.parent is not None:
            child.parent.remove(child)
        self.children.insert(index, child)
        child.parent = self
        return child

    def remove(self, child: "Node") -> "Node":
        for i, c in enumerate(self.children):
            if c is child:
                del self.children[i]
                child.parent = None
                return child
        raise ValueError("node is not a child of this node")

    def replace(self, old: "Node", new: "Node") -> "Node":
        index = self.index_of(old)
        self.remove(old)
        return self.insert(index, new)

    def index_of(self, child: "Node") -> int:
        for i, c in enumerate(self.children):
            if c is child:
                return i
        raise ValueError("node is not a child of this node")

    def clone(self) -> "Node":
        """Deep copy, detached from any parent."""
        copy = Node(self.tag, text=self.text, attrs=self.attrs)
        for child in self.children:
            copy.append(child.clone())
        return copy

    def walk(self) -> Iterator["Node"]:
        yield self
        for child in self.children:
            yield from child.walk()

    def text_content(self) -> str:
        if self.is_text:
            return self.text
        return "".join(c.text_content() for c in self.children)

    def __repr__(self) -> str:
        if self.is_text:
            return f"Text({self.text!r})"
        return f"Node({self.tag!r}, children={len(self.children)})"


def element(tag: str, *children: Any, **attrs: str) -> Node:
    """Build an element; plain strings become text nodes."""
    nodes = [text(c) if isinstance(c, str) else c for c in children]
    return Node(tag, nodes, attrs=attrs)


def text(value: str) -> Node:
    return Node(TEXT, text=value)


def is_block(node: Node) -> bool:
    return not node.is_text and node.tag in BLOCK_TAGS


def is_blank_text(node: Node) -> bool:
    return node.is_text and not node.text.strip()


def node_from_dict(data: Any) -> Node:
    """Build a tree from JSON-style data.

    Strings are text nodes; dicts are ``{"tag", "children", "attrs"}``.
    """
    if isinstance(data, str):
        return text(data)
    return Node(
        data.get("tag", "div"),
        [node_from_dict(c) for c in data.get("children", [])],
        text=data.get("text", ""),
        attrs=data.get("attrs"),
    )


@dataclass
class ChangeBatch:
    """One structural change notification from the tree."""
    changed: Optional[Node] = None
    added: List[Node] = field(default_factory=list)
    removed: List[Node] = field(default_factory=list)

    def nodes(self) -> Iterator[Node]:
        if self.changed is not None:
            yield self.changed
        yield from self.added
        yield from self.removed
