"""Incremental document serialization."""

from thaanastream.serializer.blocks import BlockIdentifier, DirtyTracker
from thaanastream.serializer.incremental import IncrementalSerializer
from thaanastream.serializer.markdown import MarkdownSerializer, post_process
from thaanastream.serializer.policy import FallbackPolicy, ForceFullHeuristic
from thaanastream.serializer.stats import PerformanceSampler
from thaanastream.serializer.tree import ChangeBatch, Node, element, node_from_dict, text

__all__ = [
    "BlockIdentifier", "DirtyTracker",
    "IncrementalSerializer",
    "MarkdownSerializer", "post_process",
    "FallbackPolicy", "ForceFullHeuristic",
    "PerformanceSampler",
    "ChangeBatch", "Node", "element", "node_from_dict", "text",
]
