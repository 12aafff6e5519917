"""
Application settings.

Validates required settings, applies defaults for optional ones and exposes a
typed IndexerSettings for the ledger client, storage, scheduler and API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from solders.pubkey import Pubkey

from interaction_indexer.config.env import MAINNET_RPC_URL, current_env, env_csv, env_str
from interaction_indexer.core.exceptions import ConfigError

COMMITMENTS = ("processed", "confirmed", "finalized")

DEFAULT_CHECK_INTERVAL_SEC = 5 * 60.0
DEFAULT_SIGNATURE_FETCH_LIMIT = 100
DEFAULT_BATCH_FETCH_SIZE = 20
DEFAULT_BATCH_DELAY_SEC = 0.5
DEFAULT_CORS_ORIGINS = (
    "https://shitcoincleaner.com",
    "https://www.shitcoincleaner.com",
)


@dataclass(frozen=True)
class IndexerSettings:
    """Resolved configuration; build with load_settings() or get_settings()."""

    program_id: str
    rpc_url: str = MAINNET_RPC_URL
    commitment: str = "confirmed"
    database_url: str = "sqlite:///indexer.db"
    check_interval_sec: float = DEFAULT_CHECK_INTERVAL_SEC
    signature_fetch_limit: int = DEFAULT_SIGNATURE_FETCH_LIMIT
    signature_fetch_pages: int = 1
    batch_fetch_size: int = DEFAULT_BATCH_FETCH_SIZE
    batch_delay_sec: float = DEFAULT_BATCH_DELAY_SEC
    rpc_timeout_sec: float = 30.0
    api_host: str = "0.0.0.0"
    api_port: int = 3000
    cors_origins: tuple[str, ...] = field(default_factory=lambda: DEFAULT_CORS_ORIGINS)


def _parse_number(env: Mapping[str, str], name: str, default: float, cast: type) -> float:
    raw = env_str(env, name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _validate_program_id(program_id: str) -> str:
    if not program_id:
        raise ConfigError("SOLANA_PROGRAM_ID must be set")
    try:
        Pubkey.from_string(program_id)
    except Exception as e:
        raise ConfigError(f"SOLANA_PROGRAM_ID is not a valid public key: {program_id!r}") from e
    return program_id


def _database_url(env: Mapping[str, str]) -> str:
    url = env_str(env, "DATABASE_URL")
    if url:
        return url
    return f"sqlite:///{env_str(env, 'DB_PATH', default='indexer.db')}"


def load_settings(env: Mapping[str, str] | None = None) -> IndexerSettings:
    """
    Build settings from a mapping (defaults to os.environ merged with .env).

    Raises ConfigError for a missing or invalid program id, an unknown
    commitment, or out-of-range numeric values.
    """
    env = current_env() if env is None else env

    commitment = env_str(env, "SOLANA_COMMITMENT", default="confirmed").lower()
    if commitment not in COMMITMENTS:
        raise ConfigError(f"SOLANA_COMMITMENT must be one of {COMMITMENTS}, got {commitment!r}")

    limit = int(_parse_number(env, "SIGNATURE_FETCH_LIMIT", DEFAULT_SIGNATURE_FETCH_LIMIT, int))
    if not (1 <= limit <= 1000):
        raise ConfigError("SIGNATURE_FETCH_LIMIT must be between 1 and 1000")
    pages = int(_parse_number(env, "SIGNATURE_FETCH_PAGES", 1, int))
    batch_size = int(_parse_number(env, "BATCH_FETCH_SIZE", DEFAULT_BATCH_FETCH_SIZE, int))
    interval = _parse_number(env, "CHECK_INTERVAL_SEC", DEFAULT_CHECK_INTERVAL_SEC, float)
    delay = _parse_number(env, "BATCH_DELAY_SEC", DEFAULT_BATCH_DELAY_SEC, float)
    timeout = _parse_number(env, "RPC_TIMEOUT_SEC", 30.0, float)
    if pages < 1 or batch_size < 1:
        raise ConfigError("SIGNATURE_FETCH_PAGES and BATCH_FETCH_SIZE must be positive")
    if interval <= 0 or timeout <= 0 or delay < 0:
        raise ConfigError("CHECK_INTERVAL_SEC and RPC_TIMEOUT_SEC must be positive, BATCH_DELAY_SEC non-negative")

    origins = env_csv(env, "CORS_ORIGINS")

    return IndexerSettings(
        program_id=_validate_program_id(env_str(env, "SOLANA_PROGRAM_ID")),
        rpc_url=env_str(env, "SOLANA_RPC_ENDPOINT", "SOLANA_RPC_URL", default=MAINNET_RPC_URL),
        commitment=commitment,
        database_url=_database_url(env),
        check_interval_sec=interval,
        signature_fetch_limit=limit,
        signature_fetch_pages=pages,
        batch_fetch_size=batch_size,
        batch_delay_sec=delay,
        rpc_timeout_sec=timeout,
        api_host=env_str(env, "API_HOST", default="0.0.0.0"),
        api_port=int(_parse_number(env, "API_PORT", _parse_number(env, "PORT", 3000, int), int)),
        cors_origins=tuple(origins) if origins else DEFAULT_CORS_ORIGINS,
    )


_settings: IndexerSettings | None = None


def get_settings() -> IndexerSettings:
    """Return the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings_cache() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment. For tests."""
    global _settings
    _settings = None
