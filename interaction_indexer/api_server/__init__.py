"""
API server package: read-only HTTP interface over the wallet counters.

Serves a wallet's interaction count and a ranked scoreboard; never writes.
"""
