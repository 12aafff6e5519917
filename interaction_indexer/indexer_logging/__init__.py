"""
Structured logging for the interaction indexer.

JSON logs with timestamp, event_type and cycle/wallet context.
Use get_logger() in all modules for aggregation-friendly output.
"""

from interaction_indexer.indexer_logging.logger import bind_cycle, configure_logging, get_logger

__all__ = ["bind_cycle", "configure_logging", "get_logger"]
