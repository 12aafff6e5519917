"""
Wiring from settings to a ready scheduler: counter store, RPC client, cycle.
"""

from __future__ import annotations

from dataclasses import dataclass

from interaction_indexer.config.env import mask_rpc_url
from interaction_indexer.config.settings import IndexerSettings
from interaction_indexer.database import CounterStore, get_counter_store
from interaction_indexer.indexer.cycle import IndexerCycle
from interaction_indexer.indexer.scheduler import IndexerScheduler
from interaction_indexer.indexer_logging import get_logger
from interaction_indexer.ledger.rpc_client import SolanaRpcClient

logger = get_logger(__name__)


@dataclass
class IndexerRuntime:
    store: CounterStore
    client: SolanaRpcClient
    scheduler: IndexerScheduler

    def close(self) -> None:
        self.scheduler.stop()
        self.client.close()
        self.store.dispose()


def build_runtime(settings: IndexerSettings) -> IndexerRuntime:
    """Build store (schema ensured; failure here is fatal), client, cycle and scheduler."""
    store = get_counter_store(settings.database_url, settings.program_id)
    client = SolanaRpcClient(
        settings.rpc_url,
        commitment=settings.commitment,
        timeout_sec=settings.rpc_timeout_sec,
    )
    cycle = IndexerCycle(
        store,
        client,
        settings.program_id,
        fetch_limit=settings.signature_fetch_limit,
        fetch_pages=settings.signature_fetch_pages,
        batch_size=settings.batch_fetch_size,
        delay_sec=settings.batch_delay_sec,
    )
    scheduler = IndexerScheduler(cycle, settings.check_interval_sec)
    logger.info(
        "indexer_runtime_ready",
        program_id=settings.program_id,
        rpc_url=mask_rpc_url(settings.rpc_url),
        commitment=settings.commitment,
        interval_sec=settings.check_interval_sec,
    )
    return IndexerRuntime(store=store, client=client, scheduler=scheduler)
