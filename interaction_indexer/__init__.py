"""
Interaction Indexer: per-wallet interaction counters for one Solana program.

Polls the program's signature history, parses new transactions, attributes
each to the first signer and merges the counts into durable storage together
with a resumable checkpoint. A thin read-only API serves the counters.
"""

__version__ = "0.1.0"
