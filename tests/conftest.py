"""
Pytest fixtures for indexer tests. Uses a temporary SQLite counter store and a
scripted in-memory ledger so nothing touches Solana RPC.
"""

from __future__ import annotations

from typing import Any

import pytest

from interaction_indexer.ledger.models import TransactionRef

PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"
OTHER_PROGRAM = "11111111111111111111111111111111"


def build_parsed_tx(
    signer: str | None,
    *,
    program_id: str = PROGRAM_ID,
    err: Any = None,
    signature: str = "sig",
    extra_keys: list[str] | None = None,
) -> dict[str, Any]:
    """jsonParsed-style getTransaction result with one instruction to program_id."""
    keys: list[dict[str, Any]] = []
    if signer is not None:
        keys.append({"pubkey": signer, "signer": True, "writable": True})
    for k in extra_keys or []:
        keys.append({"pubkey": k, "signer": False, "writable": False})
    keys.append({"pubkey": program_id, "signer": False, "writable": False})
    return {
        "slot": 1,
        "blockTime": 1_700_000_000,
        "meta": {"err": err, "fee": 5000},
        "transaction": {
            "signatures": [signature],
            "message": {
                "accountKeys": keys,
                "instructions": [{"programId": program_id, "accounts": [], "data": ""}],
            },
        },
    }


class FakeLedger:
    """
    In-memory stand-in for SolanaRpcClient.

    Entries are kept newest-first. list_recent_signatures honours limit,
    until (exclusive) and before like getSignaturesForAddress.
    get_transactions can be told to fail on a given call number.
    """

    def __init__(self) -> None:
        self.entries: list[tuple[str, Any]] = []
        self.bodies: dict[str, dict[str, Any] | None] = {}
        self.signature_calls: list[dict[str, Any]] = []
        self.transaction_calls: list[list[str]] = []
        self.fail_on_transaction_call: int | None = None
        self.error: Exception | None = None

    def push(self, signature: str, body: dict[str, Any] | None, *, err: Any = None) -> None:
        """Append a new (newest) transaction to the ledger."""
        self.entries.insert(0, (signature, err))
        self.bodies[signature] = body

    def list_recent_signatures(
        self,
        program_id: str,
        limit: int,
        *,
        until: str | None = None,
        before: str | None = None,
    ) -> list[TransactionRef]:
        self.signature_calls.append({"program_id": program_id, "limit": limit, "until": until, "before": before})
        sigs = [s for s, _ in self.entries]
        start = sigs.index(before) + 1 if before in sigs else 0
        out: list[TransactionRef] = []
        for sig, err in self.entries[start:]:
            if sig == until or len(out) == limit:
                break
            out.append(TransactionRef(signature=sig, slot=1000 - len(out), err=err, block_time=None, position=len(out)))
        return out

    def get_transactions(self, signatures: list[str]) -> list[dict[str, Any] | None]:
        self.transaction_calls.append(list(signatures))
        if self.fail_on_transaction_call == len(self.transaction_calls):
            raise self.error or RuntimeError("rpc down")
        return [self.bodies.get(sig) for sig in signatures]


@pytest.fixture
def store(tmp_path):
    """CounterStore on a fresh temporary SQLite file."""
    from interaction_indexer.database import CounterStore

    s = CounterStore(f"sqlite:///{tmp_path / 'indexer.db'}", program_id=PROGRAM_ID)
    s.ensure_schema()
    yield s
    s.dispose()


@pytest.fixture
def ledger():
    return FakeLedger()


@pytest.fixture
def make_tx():
    return build_parsed_tx


@pytest.fixture
def no_sleep():
    """Records pacing delays instead of sleeping."""
    delays: list[float] = []
    delays_sleep = delays.append
    return delays, delays_sleep


@pytest.fixture
def client(store):
    """FastAPI TestClient over the temporary store; the indexer thread is not started."""
    from fastapi.testclient import TestClient

    from interaction_indexer.api_server.server import create_app

    app = create_app(store=store, program_id=PROGRAM_ID, start_indexer=False)
    return TestClient(app)
