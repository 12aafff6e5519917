"""
Incremental transaction indexer.

Determines which program transactions are new since the checkpoint, fetches
and parses them, aggregates per-wallet increments and commits them together
with the checkpoint advance.
"""

from interaction_indexer.indexer.aggregator import InteractionTally, aggregate
from interaction_indexer.indexer.batch_fetcher import BatchDetailFetcher, chunked
from interaction_indexer.indexer.cycle import CycleResult, IndexerCycle
from interaction_indexer.indexer.novelty import filter_novel, newest_signature
from interaction_indexer.indexer.scheduler import IndexerScheduler, SchedulerState
from interaction_indexer.indexer.window import fetch_signature_window

__all__ = [
    "BatchDetailFetcher",
    "CycleResult",
    "IndexerCycle",
    "IndexerScheduler",
    "InteractionTally",
    "SchedulerState",
    "aggregate",
    "chunked",
    "fetch_signature_window",
    "filter_novel",
    "newest_signature",
]
