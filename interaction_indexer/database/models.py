"""
Domain models for stored entities.

Wallet counters and the indexer checkpoint as plain dataclasses, returned by
CounterStore so callers never hold ORM rows outside a session.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class WalletCounter:
    """Cumulative interaction count for one wallet."""

    wallet_address: str
    interaction_count: int
    created_at: int | None = None
    updated_at: int | None = None
    """Unix timestamp (seconds) of the last increment; breaks scoreboard ties (older first)."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "wallet_address": self.wallet_address,
            "interaction_count": self.interaction_count,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class Checkpoint:
    """Most recent fully processed signature for one program."""

    program_id: str
    last_signature: str | None
    updated_at: int | None = None
