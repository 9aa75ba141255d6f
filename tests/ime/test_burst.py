"""Tests for burst detection."""

from thaanastream.ime.burst import BurstDetector


def test_needs_eight_samples():
    b = BurstDetector()
    for t in range(7):
        assert b.record(t) is False
    assert b.record(7) is True


def test_fast_cadence_enters_suppression():
    b = BurstDetector()
    for t in range(0, 16, 2):  # 8 samples spanning 14ms
        b.record(t)
    assert b.suppressed
    assert b.bursts_entered == 1


def test_normal_typing_never_suppresses():
    b = BurstDetector()
    for i in range(40):
        b.record(i * 80.0)
    assert not b.suppressed
    assert b.bursts_entered == 0


def test_threshold_is_strict():
    b = BurstDetector()
    for t in [0, 1, 2, 3, 4, 5, 6, 25]:  # span exactly 25ms over 8 samples
        b.record(t)
    assert not b.suppressed
    b2 = BurstDetector()
    for t in [0, 1, 2, 3, 4, 5, 6, 24.9]:
        b2.record(t)
    assert b2.suppressed


def test_recovers_once_span_exceeds_120ms():
    b = BurstDetector()
    for t in range(8):
        b.record(t)
    assert b.suppressed
    b.record(100)
    assert b.suppressed  # span 100ms, still within recovery limit
    b.record(121)
    assert not b.suppressed


def test_window_is_bounded():
    b = BurstDetector(window_size=32)
    for i in range(100):
        b.record(i * 1000.0)
    assert b.window_length == 32
    assert b.span_ms == 31 * 1000.0


def test_reset():
    b = BurstDetector()
    for t in range(8):
        b.record(t)
    b.reset()
    assert not b.suppressed
    assert b.window_length == 0


def test_stats():
    b = BurstDetector()
    b.record(0)
    b.record(10)
    stats = b.get_stats()
    assert stats["total_symbols"] == 2
    assert stats["span_ms"] == 10
    assert stats["suppressed"] is False
