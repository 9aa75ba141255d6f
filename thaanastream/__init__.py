"""ThaanaStream: live Thaana phonetic composition and incremental markdown serialization."""

from thaanastream.config import EditorConfig, load_config
from thaanastream.editor import ThaanaEditor
from thaanastream.events import EventBus
from thaanastream.ime import PhoneticComposer, TextSurface, compose, compose_selective
from thaanastream.layouts import STANDARD, LayoutTable
from thaanastream.models import InterruptKind, Symbol, SymbolKind
from thaanastream.serializer import ChangeBatch, IncrementalSerializer, MarkdownSerializer, Node

__all__ = [
    "EditorConfig",
    "load_config",
    "ThaanaEditor",
    "EventBus",
    "PhoneticComposer",
    "TextSurface",
    "compose",
    "compose_selective",
    "STANDARD",
    "LayoutTable",
    "InterruptKind",
    "Symbol",
    "SymbolKind",
    "ChangeBatch",
    "IncrementalSerializer",
    "MarkdownSerializer",
    "Node",
]
