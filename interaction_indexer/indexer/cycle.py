"""
One indexer cycle: window -> novelty -> paced detail fetch -> extract ->
aggregate -> atomic merge with checkpoint advance.

The checkpoint is read from storage at the start and written only by
store.commit_cycle(), in the same transaction as the counter increments.
Any exception raised here leaves storage untouched; the next cycle sees the
same checkpoint and redoes the same work.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Callable, Mapping, Protocol

from interaction_indexer.indexer.aggregator import InteractionTally
from interaction_indexer.indexer.batch_fetcher import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DELAY_SEC,
    BatchDetailFetcher,
)
from interaction_indexer.indexer.novelty import filter_novel, newest_signature
from interaction_indexer.indexer.window import fetch_signature_window
from interaction_indexer.indexer_logging import bind_cycle
from interaction_indexer.ledger.parser import parse_transaction

OUTCOME_EMPTY = "empty"
OUTCOME_FAST_FORWARD = "fast_forward"
OUTCOME_COMMITTED = "committed"


class CheckpointStore(Protocol):
    def read_checkpoint(self) -> str | None:
        ...

    def commit_cycle(self, deltas: Mapping[str, int], new_checkpoint: str) -> None:
        ...


@dataclass
class CycleResult:
    """What one cycle observed and committed."""

    outcome: str
    fetched: int = 0
    novel: int = 0
    failed_on_chain: int = 0
    """Novel signatures whose signature entry already reported an error; not fetched."""
    fetched_bodies: int = 0
    missing_bodies: int = 0
    counted: int = 0
    wallets: int = 0
    checkpoint_before: str | None = None
    checkpoint_after: str | None = None
    duration_sec: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class IndexerCycle:
    """Wires the ledger client and the counter store for one pass."""

    def __init__(
        self,
        store: CheckpointStore,
        client: Any,
        program_id: str,
        *,
        fetch_limit: int = 100,
        fetch_pages: int = 1,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_sec: float = DEFAULT_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._store = store
        self._client = client
        self._program_id = program_id
        self._fetch_limit = fetch_limit
        self._fetch_pages = fetch_pages
        self._fetcher = BatchDetailFetcher(
            client, batch_size=batch_size, delay_sec=delay_sec, sleep=sleep
        )

    @property
    def program_id(self) -> str:
        return self._program_id

    def run(self, cycle_id: int = 0) -> CycleResult:
        log = bind_cycle(cycle_id)
        started = time.monotonic()
        checkpoint = self._store.read_checkpoint()
        log.info("indexer_cycle_started", program_id=self._program_id, checkpoint=checkpoint)

        window = fetch_signature_window(
            self._client,
            self._program_id,
            checkpoint,
            limit=self._fetch_limit,
            max_pages=self._fetch_pages,
        )
        newest = newest_signature(window)
        if newest is None:
            log.info("indexer_no_new_signatures")
            return CycleResult(
                outcome=OUTCOME_EMPTY,
                checkpoint_before=checkpoint,
                checkpoint_after=checkpoint,
                duration_sec=time.monotonic() - started,
            )

        novel = filter_novel(window, checkpoint)
        if not novel:
            # Nothing new to count; still move the cursor so a quiet program
            # does not re-fetch the same dead window every cycle.
            self._store.commit_cycle({}, newest)
            log.info("indexer_checkpoint_fast_forward", checkpoint=newest)
            return CycleResult(
                outcome=OUTCOME_FAST_FORWARD,
                fetched=len(window),
                checkpoint_before=checkpoint,
                checkpoint_after=newest,
                duration_sec=time.monotonic() - started,
            )

        to_fetch = [ref.signature for ref in novel if not ref.failed]
        failed_on_chain = len(novel) - len(to_fetch)
        log.info(
            "indexer_novel_signatures",
            fetched=len(window),
            novel=len(novel),
            failed_on_chain=failed_on_chain,
        )

        tally = InteractionTally()
        missing = 0
        for chunk, raws in self._fetcher.iter_batches(to_fetch):
            for sig, raw in zip(chunk, raws):
                body = parse_transaction(raw, self._program_id, signature=sig)
                if body is None:
                    missing += 1
                if not tally.add(body):
                    log.debug("indexer_transaction_not_counted", signature=sig[:16])

        deltas = tally.as_deltas()
        for wallet, increment in deltas.items():
            log.info("indexer_wallet_incremented", wallet_id=wallet, increment=increment)
        self._store.commit_cycle(deltas, newest)

        result = CycleResult(
            outcome=OUTCOME_COMMITTED,
            fetched=len(window),
            novel=len(novel),
            failed_on_chain=failed_on_chain,
            fetched_bodies=len(to_fetch) - missing,
            missing_bodies=missing,
            counted=tally.counted,
            wallets=len(deltas),
            checkpoint_before=checkpoint,
            checkpoint_after=newest,
            duration_sec=time.monotonic() - started,
        )
        log.info("indexer_cycle_done", **result.to_dict())
        return result
