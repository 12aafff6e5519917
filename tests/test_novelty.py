"""
Tests for the novelty filter (filter_novel, newest_signature).
"""

from __future__ import annotations

from interaction_indexer.indexer.novelty import filter_novel, newest_signature
from interaction_indexer.ledger.models import TransactionRef


def _window(*sigs: str) -> list[TransactionRef]:
    """Newest-first window of refs."""
    return [TransactionRef(signature=s, slot=100 - i, err=None, block_time=None, position=i) for i, s in enumerate(sigs)]


def test_prefix_before_checkpoint_is_novel():
    window = _window("s5", "s4", "s3", "s2", "s1")
    novel = filter_novel(window, "s3")
    assert [r.signature for r in novel] == ["s5", "s4"]


def test_absent_checkpoint_keeps_whole_window():
    window = _window("s3", "s2", "s1")
    assert [r.signature for r in filter_novel(window, None)] == ["s3", "s2", "s1"]


def test_aged_out_checkpoint_keeps_whole_window():
    """Checkpoint older than the fetch limit: everything fetched is new."""
    window = _window("s9", "s8", "s7")
    assert [r.signature for r in filter_novel(window, "s1")] == ["s9", "s8", "s7"]


def test_checkpoint_at_head_yields_nothing():
    window = _window("s3", "s2")
    assert filter_novel(window, "s3") == []


def test_empty_window():
    assert filter_novel([], "s1") == []
    assert filter_novel([], None) == []
    assert newest_signature([]) is None


def test_newest_signature_is_head():
    assert newest_signature(_window("s5", "s4")) == "s5"
