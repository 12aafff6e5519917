"""
FastAPI server: read-only API over the counter store.

Exposes GET /api/score/{wallet_address} and GET /api/scoreboard from the
database; the indexer scheduler runs in a background thread started by the
lifespan and never blocks requests.
"""

from __future__ import annotations

import re
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, Field
from solders.pubkey import Pubkey
from sqlalchemy.exc import SQLAlchemyError

from interaction_indexer.config.settings import DEFAULT_CORS_ORIGINS
from interaction_indexer.database import CounterStore
from interaction_indexer.indexer.scheduler import IndexerScheduler
from interaction_indexer.indexer_logging import get_logger

logger = get_logger(__name__)

DEFAULT_SCOREBOARD_SIZE = 10
MAX_SCOREBOARD_SIZE = 100
_LEADING_INT_RE = re.compile(r"\s*[+-]?\d+")


# -----------------------------------------------------------------------------
# Response models
# -----------------------------------------------------------------------------


class ScoreResponse(BaseModel):
    """GET /api/score/{wallet_address} response."""

    walletAddress: str = Field(..., description="Wallet address (base58)")
    programId: str = Field(..., description="Program whose interactions are counted")
    interactionCount: int = Field(..., ge=0, description="Counted interactions; 0 if never seen")


class ScoreboardEntry(BaseModel):
    rank: int = Field(..., ge=1)
    walletAddress: str
    score: int = Field(..., ge=0)


class ScoreboardResponse(BaseModel):
    """GET /api/scoreboard response; message is set only when the board is empty."""

    scoreboard: list[ScoreboardEntry] = Field(default_factory=list)
    message: str | None = None


# -----------------------------------------------------------------------------
# Dependencies
# -----------------------------------------------------------------------------


def get_store(request: Request) -> CounterStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=503, detail="Counter store is not ready.")
    return store


def is_valid_solana_address(address: str) -> bool:
    try:
        Pubkey.from_string(address)
        return True
    except Exception:
        return False


def _parse_top_n(raw: str | None) -> int:
    """
    Leading integer of n; missing, non-numeric or 0 falls back to the default.
    Negative values are rejected and large ones capped.
    """
    match = _LEADING_INT_RE.match(raw or "")
    n = int(match.group(0)) if match else 0
    if n == 0:
        return DEFAULT_SCOREBOARD_SIZE
    if n < 0:
        raise HTTPException(
            status_code=400,
            detail="Invalid value for query parameter 'n', must be a positive integer.",
        )
    return min(n, MAX_SCOREBOARD_SIZE)


# -----------------------------------------------------------------------------
# App factory
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the runtime from settings unless a store was injected. The scheduler
    thread starts only when start_indexer is set (otherwise API-only mode).
    """
    runtime = None
    if app.state.store is None:
        from interaction_indexer.config import get_settings
        from interaction_indexer.indexer.runtime import build_runtime

        settings = get_settings()
        runtime = build_runtime(settings)
        app.state.store = runtime.store
        app.state.program_id = settings.program_id
        if app.state.start_indexer:
            app.state.scheduler = runtime.scheduler
            runtime.scheduler.start()
            logger.info("api_indexer_started", interval_sec=settings.check_interval_sec)

    yield

    if runtime is not None:
        runtime.close()
        logger.info("api_indexer_stopped")


def create_app(
    *,
    store: CounterStore | None = None,
    scheduler: IndexerScheduler | None = None,
    program_id: str | None = None,
    cors_origins: tuple[str, ...] | list[str] = DEFAULT_CORS_ORIGINS,
    start_indexer: bool = True,
) -> FastAPI:
    """
    Build the API. Pass store (and optionally scheduler) to serve an existing
    counter store; otherwise the lifespan builds everything from settings.
    """
    app = FastAPI(
        title="Wallet Interaction Counter API",
        description="Read-only API for per-wallet program interaction counts (data from database).",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.store = store
    app.state.scheduler = scheduler
    app.state.program_id = program_id or (store.program_id if store is not None else "")
    app.state.start_indexer = start_indexer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cors_origins),
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        return "Solana Wallet Interaction Counter API (DB Powered) is running! Indexing occurs in the background."

    @app.get("/health")
    def health() -> dict[str, str]:
        """Liveness probe: API is up."""
        return {"status": "ok"}

    @app.get("/api/score/{wallet_address}", response_model=ScoreResponse)
    def get_score(wallet_address: str, request: Request, store: CounterStore = Depends(get_store)) -> ScoreResponse:
        """Interaction count for one wallet; unknown wallets report 0."""
        wallet_address = wallet_address.strip()
        if not is_valid_solana_address(wallet_address):
            raise HTTPException(status_code=400, detail="Invalid wallet address format.")
        try:
            count = store.get_interaction_count(wallet_address)
        except SQLAlchemyError as e:
            logger.exception("api_score_failed", wallet_id=wallet_address, error=str(e))
            raise HTTPException(status_code=500, detail="Failed to fetch wallet score from database.") from e
        return ScoreResponse(
            walletAddress=wallet_address,
            programId=request.app.state.program_id,
            interactionCount=count,
        )

    @app.get("/api/scoreboard", response_model=ScoreboardResponse, response_model_exclude_none=True)
    def get_scoreboard(n: str | None = None, store: CounterStore = Depends(get_store)) -> ScoreboardResponse:
        """Top n wallets by count descending; ties go to the wallet updated earliest."""
        top_n = _parse_top_n(n)
        try:
            counters = store.get_top_wallets(top_n)
        except SQLAlchemyError as e:
            logger.exception("api_scoreboard_failed", error=str(e))
            raise HTTPException(status_code=500, detail="Failed to generate scoreboard from database.") from e
        if not counters:
            return ScoreboardResponse(message="Scoreboard is currently empty.", scoreboard=[])
        return ScoreboardResponse(
            scoreboard=[
                ScoreboardEntry(rank=i + 1, walletAddress=c.wallet_address, score=c.interaction_count)
                for i, c in enumerate(counters)
            ]
        )

    @app.get("/api/indexer/status")
    def indexer_status(request: Request, store: CounterStore = Depends(get_store)) -> dict[str, Any]:
        """Scheduler state, stored checkpoint and the last cycle summary."""
        scheduler: IndexerScheduler | None = request.app.state.scheduler
        status = scheduler.status() if scheduler else {"state": "disabled"}
        try:
            checkpoint = store.read_checkpoint()
        except SQLAlchemyError as e:
            logger.exception("api_status_failed", error=str(e))
            raise HTTPException(status_code=500, detail="Failed to read indexer checkpoint.") from e
        return {
            "programId": request.app.state.program_id,
            "checkpoint": checkpoint,
            **status,
        }

    @app.exception_handler(HTTPException)
    def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
        """Consistent JSON error response for HTTPException."""
        return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})

    return app
