from thaanastream.serializer.blocks import BLOCK_ID_ATTR, BlockIdentifier, DirtyTracker
from thaanastream.serializer.tree import element


def test_ids_are_monotonic():
    ident = BlockIdentifier()
    a, b = element("p", "a"), element("p", "b")
    assert ident.ensure_id(a) == "b1"
    assert ident.ensure_id(b) == "b2"
    assert ident.issued == 2


def test_id_is_stable_on_node():
    ident = BlockIdentifier()
    node = element("p", "x")
    first = ident.ensure_id(node)
    node.children[0].text = "changed"
    assert ident.ensure_id(node) == first
    assert node.attrs[BLOCK_ID_ATTR] == first


def test_ids_for_keeps_document_order():
    ident = BlockIdentifier()
    blocks = [element("p", str(i)) for i in range(3)]
    ident.ensure_id(blocks[2])
    assert ident.ids_for(blocks) == ["b2", "b3", "b1"]


def test_duplicate_id_is_reassigned():
    ident = BlockIdentifier()
    original = element("p", "x")
    ident.ensure_id(original)
    copy = original.clone()
    ids = ident.ids_for([original, copy])
    assert ids[0] == "b1"
    assert ids[1] != "b1"
    assert ident.id_of(copy) == ids[1]


def test_custom_attribute_and_prefix():
    ident = BlockIdentifier(attr="data-id", prefix="blk-")
    node = element("p")
    assert ident.ensure_id(node) == "blk-1"
    assert node.attrs == {"data-id": "blk-1"}


def test_dirty_take_clears():
    d = DirtyTracker()
    d.add("b1")
    d.add("b2")
    assert d.take() == {"b1", "b2"}
    assert len(d) == 0


def test_dirty_restore_and_prune():
    d = DirtyTracker()
    d.restore(["b1", "b2", "b3"])
    assert d.prune({"b2"}) == 2
    assert d.snapshot() == {"b2"}
    assert "b2" in d
    d.discard("b2")
    assert "b2" not in d
