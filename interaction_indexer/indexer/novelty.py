"""
Novelty filter: which signatures in a newest-first window are not yet processed.
"""

from __future__ import annotations

from typing import Sequence

from interaction_indexer.ledger.models import TransactionRef


def filter_novel(window: Sequence[TransactionRef], checkpoint: str | None) -> list[TransactionRef]:
    """
    Return the prefix of window strictly newer than checkpoint, newest first.

    If the checkpoint is absent, or has aged out of the window, the whole
    window is novel.
    """
    if checkpoint is not None:
        for k, ref in enumerate(window):
            if ref.signature == checkpoint:
                return list(window[:k])
    return list(window)


def newest_signature(window: Sequence[TransactionRef]) -> str | None:
    return window[0].signature if window else None
