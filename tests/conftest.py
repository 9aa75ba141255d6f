"""Shared pytest fixtures for ThaanaStream tests."""

import pytest

from thaanastream.events import EventBus
from thaanastream.ime.composer import PhoneticComposer
from thaanastream.ime.surface import TextSurface
from thaanastream.layouts import STANDARD
from thaanastream.scheduling import ManualScheduler
from thaanastream.serializer.incremental import IncrementalSerializer
from thaanastream.serializer.markdown import MarkdownSerializer
from thaanastream.serializer.tree import element


@pytest.fixture
def clock():
    return ManualScheduler()


@pytest.fixture
def surface():
    return TextSurface()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def recorded(bus):
    """List of (event, payload) tuples emitted on the bus."""
    events = []
    for name in ("composition-start", "composition-commit", "composition-flush", "perf"):
        bus.on(name, lambda payload, name=name: events.append((name, payload)))
    return events


@pytest.fixture
def composer(surface, clock, bus):
    c = PhoneticComposer(surface, layout=STANDARD, scheduler=clock, bus=bus)
    yield c
    c.destroy()


@pytest.fixture
def markdown():
    return MarkdownSerializer()


class CountingSerializer:
    """Block serializer that records which blocks it was asked for."""

    def __init__(self, fail_on=None):
        self.inner = MarkdownSerializer()
        self.calls = []
        self.fail_on = fail_on or set()

    def __call__(self, node):
        text = node.text_content()
        self.calls.append(text)
        if text in self.fail_on:
            raise RuntimeError(f"cannot serialize {text!r}")
        return self.inner.serialize_block(node)


@pytest.fixture
def counting():
    return CountingSerializer()


@pytest.fixture
def ten_blocks():
    """Root div with ten paragraphs 'para 0' .. 'para 9'."""
    return element("div", *[element("p", f"para {i}") for i in range(10)])


@pytest.fixture
def serializer(counting, bus):
    return IncrementalSerializer(counting, bus=bus)


@pytest.fixture
def counting_factory():
    return CountingSerializer
