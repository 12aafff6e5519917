"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn interaction_indexer.api_server.app:app --host 0.0.0.0 --port 3000
Settings (SOLANA_PROGRAM_ID, DATABASE_URL, ...) are read when the app starts.
"""

import os

from interaction_indexer.api_server.server import create_app
from interaction_indexer.config.env import current_env, env_csv
from interaction_indexer.config.settings import DEFAULT_CORS_ORIGINS

_origins = env_csv(current_env(), "CORS_ORIGINS")

app = create_app(
    cors_origins=tuple(_origins) if _origins else DEFAULT_CORS_ORIGINS,
    start_indexer=os.getenv("INDEXER_DISABLED", "").strip().lower() not in ("1", "true", "yes"),
)

__all__ = ["app"]
