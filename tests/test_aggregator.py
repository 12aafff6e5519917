"""
Tests for the aggregator (aggregate, InteractionTally).
"""

from __future__ import annotations

from interaction_indexer.indexer.aggregator import InteractionTally, aggregate
from interaction_indexer.ledger.models import TransactionBody
from tests.conftest import VALID_WALLET, VALID_WALLET_2


def _body(wallet: str | None, *, success: bool = True, invoked: bool = True) -> TransactionBody:
    return TransactionBody(signature=None, success=success, attributed_wallet=wallet, invoked_target_program=invoked)


def test_three_transactions_same_wallet_single_delta():
    deltas = aggregate([_body(VALID_WALLET), _body(VALID_WALLET), _body(VALID_WALLET)])
    assert deltas == {VALID_WALLET: 3}


def test_non_countable_entries_ignored():
    deltas = aggregate([
        _body(VALID_WALLET),
        _body(VALID_WALLET_2, success=False),
        _body(VALID_WALLET_2, invoked=False),
        _body(None),
        None,
        _body(VALID_WALLET_2),
    ])
    assert deltas == {VALID_WALLET: 1, VALID_WALLET_2: 1}


def test_empty_cycle_yields_empty_mapping():
    assert aggregate([]) == {}


def test_tally_accumulates_across_chunks():
    tally = InteractionTally()
    tally.add_many([_body(VALID_WALLET), None])
    tally.add_many([_body(VALID_WALLET), _body(VALID_WALLET_2, success=False)])
    assert tally.as_deltas() == {VALID_WALLET: 2}
    assert tally.counted == 2
    assert tally.skipped == 2
    assert len(tally) == 1
