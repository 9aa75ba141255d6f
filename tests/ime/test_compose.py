"""Tests for batch composition."""

import pytest

from thaanastream.ime.composer import PhoneticComposer, compose, compose_selective
from thaanastream.ime.surface import TextSurface
from thaanastream.layouts import IDENTITY, LayoutTable
from thaanastream.scheduling import ManualScheduler


def test_compose_fuses_pairs():
    assert compose("da") == "ދަ"
    assert compose("dhivehi") == "ދހިވެހި"


def test_compose_maps_standalone_symbols():
    assert compose("dk") == "ދކ"
    assert compose("a") == "ަ"
    assert compose("d, k?") == "ދ، ކ؟"


def test_compose_identity_layout():
    assert compose("hello world", IDENTITY) == "hello world"


def test_compose_by_layout_name():
    assert compose("da", "identity") == "da"


def test_compose_with_mapping():
    assert compose("da", {"d": "D"}) == "Da"


def test_compose_matches_live_typing_without_timeouts():
    source = "thaanaa liyumaai, dhivehi bas!"
    surface = TextSurface()
    composer = PhoneticComposer(surface, scheduler=ManualScheduler())
    for i, char in enumerate(source):
        composer.process(char, i * 100.0)
    composer.destroy()
    assert surface.text == compose(source)


def test_compose_selective_leaves_markdown():
    assert compose_selective("**bold**") == "**bold**"
    assert compose_selective("raajje") == compose("raajje")


def test_layout_table_is_immutable():
    table = LayoutTable({"d": "D"})
    with pytest.raises(TypeError):
        table._map["d"] = "X"
    assert table.glyph("d") == "D"
