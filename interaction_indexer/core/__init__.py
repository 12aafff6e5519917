"""
Core utilities: shared exceptions used across the ledger client, storage,
indexer cycle and API server.
"""

from interaction_indexer.core.exceptions import (
    ConfigError,
    CycleInProgressError,
    IndexerError,
    RateLimitedError,
    RpcError,
    StorageCommitError,
)

__all__ = [
    "ConfigError",
    "CycleInProgressError",
    "IndexerError",
    "RateLimitedError",
    "RpcError",
    "StorageCommitError",
]
