"""
Interaction extractor: raw getTransaction payloads to countable records.

A transaction counts toward a wallet iff it succeeded (meta.err is null), one
of its top-level instructions targets the indexed program, and a wallet can
be attributed. The attributed wallet is the first signer in the account key
list (fee-payer convention). Handles both jsonParsed and json encodings.
Purely structural; failed, unsigned or malformed transactions are valid
"no count" outcomes, never errors.
"""

from __future__ import annotations

from typing import Any

from interaction_indexer.indexer_logging import get_logger
from interaction_indexer.ledger.models import TransactionBody

logger = get_logger(__name__)


def _get_message_and_meta(raw: dict[str, Any]) -> tuple[dict[str, Any] | None, dict[str, Any] | None]:
    """Return (transaction.message, meta) from getTransaction-style result."""
    tx_obj = raw.get("transaction")
    if not tx_obj or not isinstance(tx_obj, dict):
        return None, None
    message = tx_obj.get("message")
    if not message or not isinstance(message, dict):
        return None, None
    meta = raw.get("meta")
    if not isinstance(meta, dict):
        meta = None
    return message, meta


def _get_account_keys(message: dict[str, Any]) -> list[tuple[str, bool]]:
    """
    Resolve accountKeys to (base58, is_signer) pairs.

    jsonParsed keys carry an explicit signer flag; plain json keys are strings
    and the first header.numRequiredSignatures of them are the signers.
    """
    keys = message.get("accountKeys")
    if not isinstance(keys, list) or not keys:
        return []
    if isinstance(keys[0], str):
        header = message.get("header")
        raw_signers = header.get("numRequiredSignatures") if isinstance(header, dict) else None
        try:
            num_signers = int(raw_signers or 0)
        except (TypeError, ValueError):
            num_signers = 0
        return [(k, i < num_signers) for i, k in enumerate(keys) if isinstance(k, str)]
    return [
        (k["pubkey"], bool(k.get("signer")))
        for k in keys
        if isinstance(k, dict) and isinstance(k.get("pubkey"), str)
    ]


def _get_program_id(account_keys: list[tuple[str, bool]], instruction: dict[str, Any]) -> str | None:
    """Resolve program id for an instruction (programId or programIdIndex -> account key)."""
    program_id = instruction.get("programId")
    if isinstance(program_id, str):
        return program_id
    idx = instruction.get("programIdIndex")
    if isinstance(idx, bool) or not isinstance(idx, int) or not (0 <= idx < len(account_keys)):
        return None
    return account_keys[idx][0]


def first_signer(account_keys: list[tuple[str, bool]]) -> str | None:
    """First account marked as signer, or None."""
    for pubkey, is_signer in account_keys:
        if is_signer and pubkey:
            return pubkey
    return None


def invokes_program(
    account_keys: list[tuple[str, bool]],
    instructions: list[dict[str, Any]],
    program_id: str,
) -> bool:
    """True if any top-level instruction targets program_id."""
    return any(
        isinstance(ix, dict) and _get_program_id(account_keys, ix) == program_id
        for ix in instructions
    )


def _signature_of(raw: dict[str, Any]) -> str | None:
    sigs = (raw.get("transaction") or {}).get("signatures") or []
    return sigs[0] if isinstance(sigs, list) and sigs else None


def parse_transaction(
    raw: dict[str, Any] | None,
    program_id: str,
    signature: str | None = None,
) -> TransactionBody | None:
    """
    Parse one raw getTransaction result into a TransactionBody.

    Returns None if the payload is missing or cannot be parsed (no message,
    or fields of the wrong shape).
    A transaction without meta is treated as not successful, since its
    execution status is unknown.
    """
    if not raw or not isinstance(raw, dict):
        return None
    message, meta = _get_message_and_meta(raw)
    if not message:
        logger.debug("parser_malformed_transaction", signature=(signature or "?")[:16])
        return None

    instructions = message.get("instructions")
    if not isinstance(instructions, list):
        instructions = []
    success = meta is not None and meta.get("err") is None

    try:
        account_keys = _get_account_keys(message)
        return TransactionBody(
            signature=signature or _signature_of(raw),
            success=success,
            attributed_wallet=first_signer(account_keys),
            invoked_target_program=invokes_program(account_keys, instructions, program_id),
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.debug("parser_malformed_transaction", signature=(signature or "?")[:16], error=str(e))
        return None


def is_countable(body: TransactionBody | None) -> bool:
    """The counting predicate: success, target program invoked, wallet attributed."""
    return (
        body is not None
        and body.success
        and body.invoked_target_program
        and body.attributed_wallet is not None
    )

