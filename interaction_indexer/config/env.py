"""
Environment variable loading for the indexer.

- SOLANA_RPC_ENDPOINT: RPC endpoint (SOLANA_RPC_URL accepted as fallback)
- SOLANA_PROGRAM_ID: program whose interactions are counted (required)
- DATABASE_URL / DB_PATH: storage location
- Loads .env from project root when available.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from dotenv import load_dotenv

# Project root: config is interaction_indexer/config/, root is 2 levels up
_CONFIG_DIR = Path(__file__).resolve().parent
_PACKAGE_DIR = _CONFIG_DIR.parent
_ROOT = _PACKAGE_DIR.parent
_ENV_PATH = _ROOT / ".env"

MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"
DEVNET_RPC_URL = "https://api.devnet.solana.com"


def load_indexer_env() -> None:
    """Load .env from project root without overriding the real environment. Safe to call repeatedly."""
    if _ENV_PATH.is_file():
        load_dotenv(_ENV_PATH, override=False)


def env_str(env: Mapping[str, str], *names: str, default: str = "") -> str:
    """Return the first non-empty value among names, stripped; default otherwise."""
    for name in names:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return default


def env_csv(env: Mapping[str, str], name: str) -> list[str]:
    """Split a comma-separated variable into non-empty stripped items."""
    raw = env.get(name) or ""
    return [item.strip() for item in raw.split(",") if item.strip()]


def current_env() -> Mapping[str, str]:
    """Process environment after .env has been merged in."""
    load_indexer_env()
    return os.environ


def mask_rpc_url(url: str) -> str:
    """Hide API keys embedded in provider URLs (e.g. ?api-key=...) before logging."""
    if "api-key=" in url:
        return url.split("api-key=")[0] + "api-key=***"
    return url
