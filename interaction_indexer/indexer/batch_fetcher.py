"""
Batch detail fetcher: transaction bodies in fixed-size, paced chunks.

Chunks are fetched sequentially with a fixed delay between them to stay under
upstream rate limits. An RPC error on any chunk propagates and aborts the
cycle before anything is merged.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterator, Protocol, Sequence

from interaction_indexer.indexer_logging import get_logger

logger = get_logger(__name__)

DEFAULT_BATCH_SIZE = 20
DEFAULT_DELAY_SEC = 0.5


class TransactionSource(Protocol):
    def get_transactions(self, signatures: Sequence[str]) -> list[dict[str, Any] | None]:
        ...


def chunked(items: Sequence[str], size: int) -> Iterator[list[str]]:
    if size < 1:
        raise ValueError("size must be positive")
    for start in range(0, len(items), size):
        yield list(items[start:start + size])


class BatchDetailFetcher:
    """Yields (signatures, raw bodies) per chunk; one body or None per signature."""

    def __init__(
        self,
        source: TransactionSource,
        *,
        batch_size: int = DEFAULT_BATCH_SIZE,
        delay_sec: float = DEFAULT_DELAY_SEC,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self._source = source
        self._batch_size = batch_size
        self._delay_sec = max(0.0, delay_sec)
        self._sleep = sleep

    def iter_batches(
        self, signatures: Sequence[str]
    ) -> Iterator[tuple[list[str], list[dict[str, Any] | None]]]:
        total = len(signatures)
        done = 0
        for i, chunk in enumerate(chunked(signatures, self._batch_size)):
            if i > 0 and self._delay_sec:
                self._sleep(self._delay_sec)
            bodies = self._source.get_transactions(chunk)
            if len(bodies) != len(chunk):
                # Pad or trim so every signature maps to exactly one entry
                bodies = (list(bodies) + [None] * len(chunk))[: len(chunk)]
            done += len(chunk)
            logger.info(
                "indexer_batch_fetched",
                batch_size=len(chunk),
                progress=f"{done}/{total}",
                missing=sum(1 for b in bodies if b is None),
            )
            yield chunk, bodies
