"""
Configuration management for the interaction indexer.

Loads and validates settings from environment variables and an optional .env
file. Exposes a single source of truth for all service configuration.
"""

from interaction_indexer.config.settings import (  # noqa: F401
    IndexerSettings,
    get_settings,
    load_settings,
    reset_settings_cache,
)

__all__ = ["IndexerSettings", "get_settings", "load_settings", "reset_settings_cache"]
