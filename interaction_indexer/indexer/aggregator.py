"""
Aggregator: fold countable transactions into wallet -> increment for one cycle.
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from interaction_indexer.ledger.models import TransactionBody
from interaction_indexer.ledger.parser import is_countable


def aggregate(bodies: Iterable[TransactionBody | None]) -> dict[str, int]:
    """Sum 1 per countable body per attributed wallet. Non-countable entries are ignored."""
    tally = InteractionTally()
    tally.add_many(bodies)
    return tally.as_deltas()


class InteractionTally:
    """Accumulates a cycle's deltas chunk by chunk; no state survives the cycle."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()
        self.counted = 0
        self.skipped = 0

    def add(self, body: TransactionBody | None) -> bool:
        if not is_countable(body):
            self.skipped += 1
            return False
        self._counts[body.attributed_wallet] += 1
        self.counted += 1
        return True

    def add_many(self, bodies: Iterable[TransactionBody | None]) -> None:
        for body in bodies:
            self.add(body)

    def as_deltas(self) -> dict[str, int]:
        return dict(self._counts)

    def __len__(self) -> int:
        return len(self._counts)
