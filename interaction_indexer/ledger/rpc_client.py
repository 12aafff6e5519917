"""
Solana JSON-RPC client: signature windows and batched transaction bodies.

Synchronous httpx client used by one indexer cycle at a time. No retries:
transport errors, non-2xx responses and JSON-RPC error objects surface as
RpcError (RateLimitedError for HTTP 429 / too many requests) so the cycle
aborts and the scheduler retries on its next tick.
"""

from __future__ import annotations

import itertools
from typing import Any, Sequence

import httpx

from interaction_indexer.config.env import mask_rpc_url
from interaction_indexer.core.exceptions import RateLimitedError, RpcError
from interaction_indexer.indexer_logging import get_logger
from interaction_indexer.ledger.models import TransactionRef

logger = get_logger(__name__)

MAX_SIGNATURES_PER_REQUEST = 1000


def _is_rate_limit(code: Any, message: str) -> bool:
    text = message.lower()
    return code == 429 or "429" in text or "too many requests" in text or "rate limit" in text


def _raise_rpc_error(err: Any, method: str) -> None:
    if isinstance(err, dict):
        code = err.get("code")
        message = str(err.get("message", err))
    else:
        code = None
        message = str(err)
    exc_cls = RateLimitedError if _is_rate_limit(code, message) else RpcError
    raise exc_cls(f"Solana RPC error in {method}: {message} (code={code})", code=code, method=method)


class SolanaRpcClient:
    """
    Minimal JSON-RPC client for the two calls the indexer needs.

    list_recent_signatures() -> getSignaturesForAddress (newest-first).
    get_transactions() -> one JSON-RPC batch of getTransaction (jsonParsed).
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        commitment: str = "confirmed",
        timeout_sec: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip().rstrip("/")
        self._commitment = commitment
        self._ids = itertools.count(1)
        self._client = httpx.Client(timeout=httpx.Timeout(timeout_sec), transport=transport)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SolanaRpcClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _request(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}

    def _post(self, payload: Any, method: str) -> Any:
        """POST payload; raise RpcError / RateLimitedError on transport or HTTP failure."""
        try:
            resp = self._client.post(self._rpc_url, json=payload)
        except httpx.HTTPError as e:
            raise RpcError(f"Solana RPC transport error in {method}: {e}", method=method) from e
        if resp.status_code == 429:
            raise RateLimitedError(
                f"Solana RPC rate limited {method} (HTTP 429) at {mask_rpc_url(self._rpc_url)}",
                code=429,
                method=method,
            )
        try:
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as e:
            raise RpcError(f"Solana RPC HTTP {resp.status_code} in {method}", code=resp.status_code, method=method) from e
        except ValueError as e:
            raise RpcError(f"Solana RPC returned invalid JSON in {method}", method=method) from e

    def list_recent_signatures(
        self,
        program_id: str,
        limit: int,
        *,
        until: str | None = None,
        before: str | None = None,
    ) -> list[TransactionRef]:
        """
        Return up to limit signatures referencing program_id, newest first.

        until: stop at (and exclude) this signature; before: start strictly
        older than this signature. Empty list when the node reports none.
        """
        if not (1 <= limit <= MAX_SIGNATURES_PER_REQUEST):
            raise ValueError("limit must be between 1 and 1000")
        opts: dict[str, Any] = {"limit": limit, "commitment": self._commitment}
        if until is not None:
            opts["until"] = until
        if before is not None:
            opts["before"] = before
        method = "getSignaturesForAddress"
        data = self._post(self._request(method, [program_id, opts]), method)
        if not isinstance(data, dict):
            raise RpcError(f"Solana RPC returned malformed response in {method}", method=method)
        if "error" in data:
            _raise_rpc_error(data["error"], method)
        result = data.get("result")
        if result is None:
            raise RpcError("Solana RPC returned no result", method=method)

        refs: list[TransactionRef] = []
        for item in result:
            if not isinstance(item, dict) or "signature" not in item:
                continue
            try:
                refs.append(TransactionRef.from_rpc_item(item, position=len(refs)))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("rpc_skip_invalid_signature_item", error=str(e))
        return refs

    def get_transactions(self, signatures: Sequence[str]) -> list[dict[str, Any] | None]:
        """
        Fetch transaction bodies for signatures in one JSON-RPC batch.

        Returns one entry per requested signature in request order; None marks
        a transaction the node does not have. Responses are matched by id, so
        the node may answer in any order.
        """
        if not signatures:
            return []
        method = "getTransaction"
        config = {
            "encoding": "jsonParsed",
            "commitment": self._commitment,
            "maxSupportedTransactionVersion": 0,
        }
        requests = [self._request(method, [sig, config]) for sig in signatures]
        data = self._post(requests, method)
        if isinstance(data, dict):
            # Whole-batch rejection (e.g. rate limit) comes back as a single error object
            if "error" in data:
                _raise_rpc_error(data["error"], method)
            raise RpcError("Solana RPC returned a non-batch response", method=method)
        if not isinstance(data, list):
            raise RpcError("Solana RPC returned malformed batch response", method=method)

        by_id: dict[Any, dict[str, Any]] = {}
        for item in data:
            if isinstance(item, dict) and "id" in item:
                by_id[item["id"]] = item

        bodies: list[dict[str, Any] | None] = []
        for req, sig in zip(requests, signatures):
            item = by_id.get(req["id"])
            if item is None:
                logger.warning("rpc_batch_item_missing", signature=sig[:16])
                bodies.append(None)
                continue
            if "error" in item:
                _raise_rpc_error(item["error"], method)
            result = item.get("result")
            bodies.append(result if isinstance(result, dict) else None)
        return bodies
