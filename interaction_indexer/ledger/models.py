"""
Data models for ledger responses.

TransactionRef is one getSignaturesForAddress entry; TransactionBody is the
countable view of one fetched transaction. Both live only within a cycle.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class TransactionRef:
    """
    Normalized signature info from getSignaturesForAddress.

    Windows are newest-first; position is the index within that fetch.
    """

    signature: str
    slot: int
    err: Any  # None if success; dict/object from RPC if failed
    block_time: int | None  # Unix timestamp; None if not available
    position: int = 0

    @property
    def failed(self) -> bool:
        return self.err is not None

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any], position: int = 0) -> "TransactionRef":
        """Build from a single getSignaturesForAddress result item."""
        return cls(
            signature=item["signature"],
            slot=int(item["slot"]),
            err=item.get("err"),
            block_time=item.get("blockTime"),
            position=position,
        )


@dataclass(frozen=True)
class TransactionBody:
    """Parsed transaction reduced to what the counting predicate needs."""

    signature: str | None
    success: bool
    attributed_wallet: str | None
    """Base58 address of the first signer (fee payer); None if no signer."""
    invoked_target_program: bool
    """True if a top-level instruction targets the indexed program."""
