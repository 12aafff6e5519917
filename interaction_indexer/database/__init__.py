"""
Storage layer: per-wallet interaction counters and the indexer checkpoint.

SQLite for local runs, PostgreSQL via DATABASE_URL; both through SQLAlchemy.
"""

from interaction_indexer.database.database import (
    CounterStore,
    IndexerCheckpoint,
    WalletScore,
    get_counter_store,
)
from interaction_indexer.database.models import Checkpoint, WalletCounter

__all__ = [
    "Checkpoint",
    "CounterStore",
    "IndexerCheckpoint",
    "WalletCounter",
    "WalletScore",
    "get_counter_store",
]
