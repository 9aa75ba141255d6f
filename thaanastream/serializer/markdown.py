"""Reference block serializer: node tree -> markdown.

Covers the block and inline elements the editor produces. It never mutates
the tree it is given.
"""

import re
from typing import List

from thaanastream.errors import ConfigError
from thaanastream.serializer.tree import Node, is_block

LIST_MARKERS = {"dash": "-", "asterisk": "*", "plus": "+"}

INLINE_WRAPPERS = {
    "strong": "**", "b": "**",
    "em": "*", "i": "*",
    "s": "~~", "del": "~~", "strike": "~~",
    "code": "`",
}

ZERO_WIDTH = re.compile("[\u200b\ufeff]")
MARKER_ONLY_LINE = re.compile("^[\u200f\u200e\u200b]+$", re.MULTILINE)
BLANK_SPACE_LINE = re.compile(r"^[ \t]+$", re.MULTILINE)
MULTI_NEWLINE = re.compile(r"\n{3,}")


def post_process(markdown: str) -> str:
    """Collapse 3+ newlines to 2 and trim leading/trailing blank lines."""
    markdown = MULTI_NEWLINE.sub("\n\n", markdown)
    return markdown.strip("\n")


class MarkdownSerializer:
    """Serialize blocks to markdown.

    ``serialize_block(node)`` is the per-block primitive used by the
    incremental cache; ``serialize(root)`` renders a whole container.
    """

    def __init__(self, list_style: str = "dash") -> None:
        if list_style not in LIST_MARKERS:
            raise ConfigError(f"unknown list style: {list_style!r}")
        self.bullet = LIST_MARKERS[list_style]

    def serialize(self, root: Node) -> str:
        return self._clean(self._children_as_blocks(root))

    def serialize_block(self, node: Node) -> str:
        return self._clean(self._render(node))

    __call__ = serialize_block

    # ---- rendering --------------------------------------------------------

    def _render(self, node: Node) -> str:
        if node.is_text:
            return node.text
        tag = node.tag
        if tag in ("h1", "h2", "h3", "h4", "h5", "h6"):
            return "#" * int(tag[1]) + " " + self._inline(node).strip()
        if tag == "blockquote":
            inner = self._children_as_blocks(node)
            return "\n".join("> " + line if line else ">" for line in inner.split("\n"))
        if tag == "pre":
            return "```\n" + node.text_content().rstrip("\n") + "\n```"
        if tag in ("ul", "ol"):
            return self._list(node, ordered=tag == "ol")
        if tag in ("div", "p"):
            if any(is_block(c) for c in node.children):
                return self._children_as_blocks(node)
            return self._inline(node)
        return self._inline_node(node)

    def _children_as_blocks(self, node: Node) -> str:
        lines: List[str] = []
        run: List[str] = []
        for child in node.children:
            if is_block(child):
                if run:
                    lines.append("".join(run))
                    run = []
                lines.append(self._render(child))
            else:
                run.append(self._inline_node(child))
        if run:
            lines.append("".join(run))
        return "\n".join(line for line in lines if line.strip())

    def _list(self, node: Node, ordered: bool) -> str:
        items = []
        n = 0
        for child in node.children:
            if child.is_text and not child.text.strip():
                continue
            n += 1
            marker = f"{n}." if ordered else self.bullet
            items.append(f"{marker} {self._inline(child).strip()}")
        return "\n".join(items)

    def _inline(self, node: Node) -> str:
        return "".join(self._inline_node(c) for c in node.children)

    def _inline_node(self, node: Node) -> str:
        if node.is_text:
            return node.text
        tag = node.tag
        if tag == "br":
            return "\n"
        content = self._inline(node)
        if tag in INLINE_WRAPPERS:
            if not content.strip():
                return content
            mark = INLINE_WRAPPERS[tag]
            return f"{mark}{content}{mark}"
        if tag == "a":
            return f"[{content}]({node.attrs.get('href', '')})"
        if tag == "img":
            return f"![{node.attrs.get('alt', '')}]({node.attrs.get('src', '')})"
        if is_block(node):
            return self._render(node)
        return content

    @staticmethod
    def _clean(markdown: str) -> str:
        markdown = ZERO_WIDTH.sub("", markdown).replace("\r\n", "\n").replace("\r", "\n")
        markdown = BLANK_SPACE_LINE.sub("", markdown)
        markdown = MARKER_ONLY_LINE.sub("", markdown)
        return post_process(markdown)
