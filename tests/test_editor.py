"""Integration tests for the editor facade."""

import threading

import pytest

from thaanastream.config import EditorConfig, SerializerConfig
from thaanastream.editor import ThaanaEditor
from thaanastream.serializer.tree import ChangeBatch, element


@pytest.fixture
def editor(ten_blocks, clock):
    ed = ThaanaEditor(root=ten_blocks, scheduler=clock)
    yield ed
    ed.destroy()


@pytest.fixture
def changes(editor):
    seen = []
    editor.on("content-change", lambda payload: seen.append(payload["markdown"]))
    return seen


def test_typing_composes_on_surface(editor):
    editor.type_char("d", 0)
    editor.type_char("a", 10)
    editor.type_char(" ", 20)
    assert editor.surface.text == "ދަ "


def test_composition_events_reach_subscribers(editor):
    seen = []
    editor.on("composition-commit", seen.append)
    editor.type_char("k", 0)
    editor.type_char("i", 10)
    assert seen == [{"syllable": "ކި"}]


def test_timeout_through_editor_scheduler(editor, clock):
    editor.type_char("d", 0)
    clock.advance(500)
    assert not editor.composer.is_pending


def test_notify_emits_markdown_once_per_burst(editor, ten_blocks, clock, changes):
    node = ten_blocks.children[2].children[0]
    node.text = "ދިވެހި"
    editor.notify(ChangeBatch(changed=node))
    editor.notify(ChangeBatch(changed=node))
    assert changes == []
    clock.advance(0)
    assert len(changes) == 1
    assert changes[0].split("\n")[2] == "ދިވެހި"


def test_unchanged_document_is_not_reemitted(editor, ten_blocks, clock, changes):
    editor.notify(ChangeBatch(changed=ten_blocks), immediate=True)
    editor.notify(ChangeBatch(changed=ten_blocks), immediate=True)
    assert len(changes) == 1


def test_structural_change_without_block_list_forces_full(editor, ten_blocks):
    editor.notify(ChangeBatch(changed=ten_blocks), source="paste", immediate=True)
    assert editor.incremental.flush_count == 0
    assert editor.incremental.cache_size == 10


def test_plain_change_uses_incremental_path(editor, ten_blocks):
    editor.notify(ChangeBatch(changed=ten_blocks), immediate=True)
    assert editor.incremental.flush_count == 1


def test_new_block_appears_in_output(editor, ten_blocks, changes):
    editor.notify(ChangeBatch(changed=ten_blocks), immediate=True)
    new = element("h2", "ސުރުޚީ")
    ten_blocks.insert(0, new)
    editor.notify(ChangeBatch(changed=ten_blocks, added=[new]), source="enter", immediate=True)
    assert changes[-1].startswith("## ސުރުޚީ\npara 0")


def test_sanitize_hook(ten_blocks, clock):
    ed = ThaanaEditor(root=ten_blocks, scheduler=clock, sanitize=str.upper)
    assert ed.get_markdown().startswith("PARA 0")
    ed.destroy()


def test_non_incremental_config(ten_blocks, clock):
    config = EditorConfig(serializer=SerializerConfig(incremental=False))
    ed = ThaanaEditor(root=ten_blocks, scheduler=clock, config=config)
    assert ed.incremental is None
    assert ed.get_markdown() == "\n".join(f"para {i}" for i in range(10))
    assert ed.stats()["serializer"] is None
    ed.destroy()


def test_instrumentation_emits_perf(ten_blocks, clock):
    config = EditorConfig(serializer=SerializerConfig(instrumentation=True))
    ed = ThaanaEditor(root=ten_blocks, scheduler=clock, config=config)
    samples = []
    ed.on("perf", samples.append)
    ed.get_markdown()
    assert [s.phase for s in samples] == ["incremental"]
    ed.destroy()


def test_perf_silent_without_instrumentation(editor):
    samples = []
    editor.on("perf", samples.append)
    editor.get_markdown()
    assert samples == []


def test_convert_content(editor):
    assert editor.convert_content("dhivehi") == "ދހިވެހި"
    assert editor.convert_content("see https://example.mv", selective=True) == "see https://example.mv"


def test_shortcut_and_layout(editor):
    editor.type_char("d", 0)
    assert editor.handle_key("z", 5, ctrl=True) is False
    assert not editor.composer.is_pending
    editor.set_layout("identity")
    editor.type_char("d", 10)
    assert editor.surface.text == "ދd"


def test_disable(editor):
    editor.set_enabled(False)
    editor.type_char("d", 0)
    assert editor.surface.text == ""


def test_flush_composition(editor):
    editor.type_char("d", 0)
    assert editor.flush_composition() is True
    assert editor.flush_composition() is False


def test_destroy_is_idempotent_and_stops_updates(editor, ten_blocks, clock, changes):
    editor.type_char("d", 0)
    editor.destroy()
    editor.destroy()
    assert not editor.composer.is_pending
    editor.notify(ChangeBatch(changed=ten_blocks))
    clock.advance(10)
    assert changes == []
    assert clock.pending == 0


def test_stats(editor, ten_blocks):
    editor.type_char("d", 0)
    editor.type_char("a", 1)
    editor.notify(ChangeBatch(changed=ten_blocks), immediate=True)
    stats = editor.stats()
    assert stats["composer"]["commits"] == 1
    assert stats["serializer"]["flush_count"] == 1
    assert stats["changes"]["emitted"] == 1


def test_default_editor_updates_content_on_calling_thread(ten_blocks):
    ed = ThaanaEditor(root=ten_blocks)
    threads = []
    ed.on("content-change", lambda payload: threads.append(threading.current_thread()))
    ed.notify(ChangeBatch(changed=ten_blocks))
    assert threads == [threading.current_thread()]
    assert not ed.change_buffer.pending
    ed.destroy()
