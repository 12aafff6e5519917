"""
Tests for the interaction extractor (parse_transaction, is_countable).

Covers jsonParsed and json encodings, execution errors, missing signers and
transactions that never touch the indexed program.
"""

from __future__ import annotations

from interaction_indexer.ledger.parser import first_signer, is_countable, parse_transaction
from tests.conftest import OTHER_PROGRAM, PROGRAM_ID, VALID_WALLET, VALID_WALLET_2, build_parsed_tx


def test_successful_program_call_is_countable():
    body = parse_transaction(build_parsed_tx(VALID_WALLET, signature="abc"), PROGRAM_ID)
    assert body is not None
    assert body.signature == "abc"
    assert body.success is True
    assert body.attributed_wallet == VALID_WALLET
    assert body.invoked_target_program is True
    assert is_countable(body)


def test_execution_error_never_counts_even_when_program_invoked():
    raw = build_parsed_tx(VALID_WALLET, err={"InstructionError": [0, {"Custom": 1}]})
    body = parse_transaction(raw, PROGRAM_ID)
    assert body is not None
    assert body.invoked_target_program is True
    assert body.success is False
    assert not is_countable(body)


def test_other_program_not_counted():
    raw = build_parsed_tx(VALID_WALLET, program_id=OTHER_PROGRAM)
    body = parse_transaction(raw, PROGRAM_ID)
    assert body.invoked_target_program is False
    assert not is_countable(body)


def test_no_signer_not_counted():
    body = parse_transaction(build_parsed_tx(None), PROGRAM_ID)
    assert body.attributed_wallet is None
    assert not is_countable(body)


def test_first_signer_wins():
    """Attribution goes to the first signer in account order, not later signers."""
    raw = build_parsed_tx(VALID_WALLET)
    raw["transaction"]["message"]["accountKeys"].insert(
        0, {"pubkey": VALID_WALLET_2, "signer": False, "writable": True}
    )
    raw["transaction"]["message"]["accountKeys"].append(
        {"pubkey": OTHER_PROGRAM, "signer": True, "writable": False}
    )
    body = parse_transaction(raw, PROGRAM_ID)
    assert body.attributed_wallet == VALID_WALLET


def test_json_encoding_uses_header_and_program_index():
    raw = {
        "meta": {"err": None},
        "transaction": {
            "signatures": ["jsonsig"],
            "message": {
                "header": {"numRequiredSignatures": 1},
                "accountKeys": [VALID_WALLET, VALID_WALLET_2, PROGRAM_ID],
                "instructions": [{"programIdIndex": 2, "accounts": [0, 1], "data": ""}],
            },
        },
    }
    body = parse_transaction(raw, PROGRAM_ID)
    assert body.signature == "jsonsig"
    assert body.attributed_wallet == VALID_WALLET
    assert is_countable(body)


def test_json_encoding_out_of_range_program_index():
    raw = {
        "meta": {"err": None},
        "transaction": {
            "message": {
                "header": {"numRequiredSignatures": 1},
                "accountKeys": [VALID_WALLET],
                "instructions": [{"programIdIndex": 9}],
            },
        },
    }
    assert not is_countable(parse_transaction(raw, PROGRAM_ID))


def test_missing_or_malformed_body():
    assert parse_transaction(None, PROGRAM_ID) is None
    assert parse_transaction({}, PROGRAM_ID) is None
    assert parse_transaction({"transaction": {"message": None}}, PROGRAM_ID) is None
    assert not is_countable(None)


def test_missing_meta_is_not_success():
    raw = build_parsed_tx(VALID_WALLET)
    del raw["meta"]
    body = parse_transaction(raw, PROGRAM_ID)
    assert body.success is False
    assert not is_countable(body)


def test_first_signer_helper():
    assert first_signer([("a", False), ("b", True), ("c", True)]) == "b"
    assert first_signer([("a", False)]) is None


def _json_tx(**message_overrides):
    message = {
        "header": {"numRequiredSignatures": 1},
        "accountKeys": [VALID_WALLET, PROGRAM_ID],
        "instructions": [{"programIdIndex": 1, "accounts": [0], "data": ""}],
    }
    message.update(message_overrides)
    return {"meta": {"err": None}, "transaction": {"signatures": ["s"], "message": message}}


def test_account_keys_not_a_list_is_not_countable():
    body = parse_transaction(_json_tx(accountKeys={"0": VALID_WALLET}), PROGRAM_ID)
    assert not is_countable(body)


def test_non_numeric_signer_count_means_no_signer():
    body = parse_transaction(_json_tx(header={"numRequiredSignatures": "x"}), PROGRAM_ID)
    assert body is not None
    assert body.attributed_wallet is None
    assert body.invoked_target_program
    assert not is_countable(body)


def test_program_index_of_wrong_type_is_ignored():
    for idx in ("1", None, 1.0, True):
        body = parse_transaction(
            _json_tx(instructions=[{"programIdIndex": idx, "accounts": [], "data": ""}]), PROGRAM_ID
        )
        assert body is not None
        assert not body.invoked_target_program


def test_instructions_not_a_list_is_not_countable():
    body = parse_transaction(_json_tx(instructions=7), PROGRAM_ID)
    assert not is_countable(body)


def test_parsed_key_without_string_pubkey_is_skipped():
    tx = build_parsed_tx(VALID_WALLET)
    tx["transaction"]["message"]["accountKeys"].insert(0, {"pubkey": None, "signer": True})
    body = parse_transaction(tx, PROGRAM_ID)
    assert body.attributed_wallet == VALID_WALLET
