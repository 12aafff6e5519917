"""
Signature window fetcher.

Asks the RPC node for the newest signatures referencing the program, bounded
by a fetch limit and stopping at the checkpoint. Optional paging walks back
with `before` while pages come back full and the checkpoint is not reached.
"""

from __future__ import annotations

from typing import Protocol

from interaction_indexer.indexer_logging import get_logger
from interaction_indexer.ledger.models import TransactionRef

logger = get_logger(__name__)


class SignatureSource(Protocol):
    def list_recent_signatures(
        self,
        program_id: str,
        limit: int,
        *,
        until: str | None = None,
        before: str | None = None,
    ) -> list[TransactionRef]:
        ...


def fetch_signature_window(
    source: SignatureSource,
    program_id: str,
    checkpoint: str | None,
    *,
    limit: int = 100,
    max_pages: int = 1,
) -> list[TransactionRef]:
    """
    Return one newest-first window of at most limit * max_pages signatures.

    RPC errors propagate unchanged; retrying is the scheduler's job.
    """
    window: list[TransactionRef] = []
    before: str | None = None
    for page in range(max(1, max_pages)):
        refs = source.list_recent_signatures(program_id, limit, until=checkpoint, before=before)
        window.extend(refs)
        if len(refs) < limit:
            break
        if checkpoint is not None and any(r.signature == checkpoint for r in refs):
            break
        before = refs[-1].signature
        logger.debug("window_next_page", page=page + 2, before=before[:16])

    # Re-number positions across pages so they index the combined window
    return [
        TransactionRef(
            signature=r.signature,
            slot=r.slot,
            err=r.err,
            block_time=r.block_time,
            position=i,
        )
        for i, r in enumerate(window)
    ]
