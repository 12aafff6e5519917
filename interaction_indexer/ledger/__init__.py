"""
Solana ledger access: JSON-RPC client, signature/transaction models and the
interaction extractor that turns raw transactions into countable records.
"""

from interaction_indexer.ledger.models import TransactionBody, TransactionRef
from interaction_indexer.ledger.parser import is_countable, parse_transaction
from interaction_indexer.ledger.rpc_client import SolanaRpcClient

__all__ = [
    "SolanaRpcClient",
    "TransactionBody",
    "TransactionRef",
    "is_countable",
    "parse_transaction",
]
