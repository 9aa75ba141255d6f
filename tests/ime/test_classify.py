"""Tests for symbol classification and conversion heuristics."""

from thaanastream.ime.classify import SymbolClassifier, should_convert_text
from thaanastream.models import SymbolKind, SymbolSets


def test_default_classes():
    c = SymbolClassifier()
    assert c.kind_of("d") is SymbolKind.CONSONANT
    assert c.kind_of("K") is SymbolKind.CONSONANT
    assert c.kind_of("a") is SymbolKind.VOWEL_SIGN
    assert c.kind_of("q") is SymbolKind.VOWEL_SIGN
    assert c.kind_of(".") is SymbolKind.IMMEDIATE
    assert c.kind_of(" ") is SymbolKind.IMMEDIATE
    assert c.kind_of("\n") is SymbolKind.IMMEDIATE
    assert c.kind_of("x") is SymbolKind.OTHER
    assert c.kind_of("7") is SymbolKind.OTHER


def test_classify_carries_timestamp():
    sym = SymbolClassifier().classify("d", 42.0)
    assert sym.char == "d"
    assert sym.kind is SymbolKind.CONSONANT
    assert sym.timestamp_ms == 42.0


def test_custom_sets():
    sets = SymbolSets(consonants=frozenset("x"), vowel_signs=frozenset("y"), immediate=frozenset("z"))
    c = SymbolClassifier(sets)
    assert c.kind_of("x") is SymbolKind.CONSONANT
    assert c.kind_of("y") is SymbolKind.VOWEL_SIGN
    assert c.kind_of("z") is SymbolKind.IMMEDIATE
    assert c.kind_of("d") is SymbolKind.OTHER


def test_immediate_wins_on_overlap():
    sets = SymbolSets(consonants=frozenset("d"), immediate=frozenset("d"))
    assert SymbolClassifier(sets).kind_of("d") is SymbolKind.IMMEDIATE


def test_should_convert_plain_phonetic_text():
    assert should_convert_text("dhivehi bas")


def test_should_not_convert_markdown_urls_prose_numbers():
    assert not should_convert_text("# heading")
    assert not should_convert_text("see www.example.mv")
    assert not should_convert_text("https://example.mv")
    assert not should_convert_text("the quick brown fox")
    assert not should_convert_text(" 12, 34.5 ")
