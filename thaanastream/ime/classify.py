"""Symbol classification for the phonetic composer.

Also hosts the heuristics that decide whether pasted or bulk text should be
converted at all (markdown, URLs, code and latin prose are left alone).
"""

import re
from typing import Optional

from thaanastream.models import Symbol, SymbolKind, SymbolSets


class SymbolClassifier:
    """Categorizes input symbols using fixed membership sets.

    Precedence when sets overlap: immediate, consonant, vowel sign.
    """

    def __init__(self, sets: Optional[SymbolSets] = None) -> None:
        self.sets = sets or SymbolSets()

    def kind_of(self, char: str) -> SymbolKind:
        if char in self.sets.immediate:
            return SymbolKind.IMMEDIATE
        if char in self.sets.consonants:
            return SymbolKind.CONSONANT
        if char in self.sets.vowel_signs:
            return SymbolKind.VOWEL_SIGN
        return SymbolKind.OTHER

    def classify(self, char: str, timestamp_ms: float = 0.0) -> Symbol:
        return Symbol(char=char, kind=self.kind_of(char), timestamp_ms=timestamp_ms)


MARKDOWN_SYNTAX = re.compile(r"[#*`>\-\[\](){}]")
URL_PATTERN = re.compile(r"https?://|www\.", re.IGNORECASE)
LATIN_WORD = re.compile(r"\b[a-zA-Z]{3,}\b")
NUMERIC_ONLY = re.compile(r"^\d+[\d\s.,;:()-]*$")


def should_convert_text(text: str) -> bool:
    """Return False for text that should not be phonetically converted.

    Skips text with markdown syntax, URLs, more than two latin words of
    three or more letters, and plain numbers.
    """
    if MARKDOWN_SYNTAX.search(text):
        return False
    if URL_PATTERN.search(text):
        return False
    if len(LATIN_WORD.findall(text)) > 2:
        return False
    if NUMERIC_ONLY.match(text.strip()):
        return False
    return True
