"""Phonetic input: classification, burst detection and syllable composition."""

from thaanastream.ime.burst import BurstDetector
from thaanastream.ime.classify import SymbolClassifier, should_convert_text
from thaanastream.ime.composer import PhoneticComposer, compose, compose_selective
from thaanastream.ime.surface import DocumentSurface, TextSurface

__all__ = [
    "BurstDetector",
    "SymbolClassifier", "should_convert_text",
    "PhoneticComposer", "compose", "compose_selective",
    "DocumentSurface", "TextSurface",
]
