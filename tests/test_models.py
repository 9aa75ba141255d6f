"""Tests for ThaanaStream data structures."""

import dataclasses

import pytest

from thaanastream.models import (
    AKURU, FILI, IMMEDIATE_CHARS, CompositionState, PerfSample, Symbol, SymbolKind, SymbolSets,
)


def test_symbol_is_frozen():
    s = Symbol(char="d", kind=SymbolKind.CONSONANT, timestamp_ms=1.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.char = "k"


def test_composition_state_defaults():
    state = CompositionState()
    assert not state.is_pending
    assert state.pending_glyph == ""
    assert state.timer_handle is None


def test_composition_state_reset():
    state = CompositionState(
        pending_consonant=Symbol("d", SymbolKind.CONSONANT),
        pending_glyph="ދ", awaiting_vowel=True, inserted=True, timer_handle=3,
    )
    assert state.is_pending
    state.reset()
    assert not state.is_pending
    assert not state.awaiting_vowel
    assert not state.inserted
    assert state.timer_handle is None


def test_perf_sample_to_dict():
    sample = PerfSample(phase="incremental", duration=1.5, blocks=10, dirty=1, forced_full=False)
    d = sample.to_dict()
    assert d["phase"] == "incremental"
    assert d["avg_incremental"] is None
    assert d["samples"] == 0


def test_default_symbol_sets_are_disjoint():
    assert not AKURU & FILI
    assert not AKURU & IMMEDIATE_CHARS
    assert not FILI & IMMEDIATE_CHARS
    assert " " in IMMEDIATE_CHARS
    assert "q" in FILI


def test_symbol_sets_defaults():
    sets = SymbolSets()
    assert sets.consonants == AKURU
    assert sets.vowel_signs == FILI
