import pytest

from thaanastream.serializer.policy import FallbackPolicy, ForceFullHeuristic


@pytest.mark.parametrize("dirty,blocks,expected", [
    (0, 10, False),
    (4, 10, False),
    (5, 10, True),
    (6, 10, True),
    (1, 1, True),
    (0, 0, False),
    (1, 0, True),
])
def test_fallback_threshold(dirty, blocks, expected):
    assert FallbackPolicy().should_fallback(dirty, blocks) is expected


def test_custom_threshold():
    policy = FallbackPolicy(threshold=0.8)
    assert not policy.should_fallback(8, 10)
    assert policy.should_fallback(9, 10)


def test_dirty_ratio_guards_empty_documents():
    assert FallbackPolicy.dirty_ratio(3, 0) == 3.0


def test_non_structural_source_never_forces():
    h = ForceFullHeuristic()
    assert not h.should_force_full("mutation", 10, True)
    assert not h.should_force_full(None, 10, False)


def test_structural_source_with_many_dirty_blocks():
    h = ForceFullHeuristic()
    assert h.should_force_full("paste", 3, True)
    assert not h.should_force_full("paste", 2, True)


def test_structural_source_without_block_list():
    assert ForceFullHeuristic().should_force_full("Enter", 0, False)


def test_structural_match_is_substring_and_case_insensitive():
    h = ForceFullHeuristic()
    assert h.is_structural("insertParagraph-ENTER")
    assert h.is_structural("drop")
    assert not h.is_structural("keypress")


def test_custom_sources():
    h = ForceFullHeuristic(max_dirty=0, structural_sources=["Undo"])
    assert h.should_force_full("undo", 1, True)
    assert not h.should_force_full("paste", 5, True)
