"""
Application-level exceptions.

Per-cycle errors (RpcError, RateLimitedError, StorageCommitError) abort the
current cycle and are contained by the scheduler. ConfigError is fatal at
startup.
"""

from __future__ import annotations


class IndexerError(Exception):
    """Base class for all indexer errors."""


class ConfigError(IndexerError):
    """Missing or invalid configuration; the process must not start."""


class RpcError(IndexerError):
    """Transport failure, non-2xx response or JSON-RPC error from the Solana node."""

    def __init__(self, message: str, *, code: int | None = None, method: str | None = None) -> None:
        super().__init__(message)
        self.code = code
        self.method = method


class RateLimitedError(RpcError):
    """The RPC node rejected the request with HTTP 429 / too many requests."""


class StorageCommitError(IndexerError):
    """The merge transaction failed and was rolled back; nothing was applied."""


class CycleInProgressError(IndexerError):
    """A cycle was requested while another one is still processing."""
