"""
Main entrypoint: indexer scheduler in a background thread + FastAPI server in main thread.

The scheduler runs one cycle immediately and then every CHECK_INTERVAL_SEC;
the API runs in the main thread and remains responsive. On SIGINT/SIGTERM the
server shuts down and the scheduler is stopped.

Env: SOLANA_PROGRAM_ID (required), SOLANA_RPC_ENDPOINT, DATABASE_URL or DB_PATH,
CHECK_INTERVAL_SEC, API_HOST, API_PORT, etc.

Indexer only: python main.py --no-api
Single cycle: python main.py --once
API-only (no indexer): INDEXER_DISABLED=1 uvicorn interaction_indexer.api_server.app:app
"""

import argparse
import os
import sys

# Configure structured JSON logging before other imports that may log
from interaction_indexer.indexer_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Load settings, build the indexer, then serve the API (or run headless)."""
    parser = argparse.ArgumentParser(description="Solana program wallet interaction indexer")
    parser.add_argument("--once", action="store_true", help="run a single indexer cycle and exit")
    parser.add_argument("--no-api", action="store_true", help="run the indexer without the HTTP API")
    args = parser.parse_args()

    from interaction_indexer.config import get_settings
    from interaction_indexer.config.env import mask_rpc_url
    from interaction_indexer.core.exceptions import ConfigError, IndexerError
    from interaction_indexer.indexer.runtime import build_runtime
    from sqlalchemy.exc import SQLAlchemyError

    try:
        settings = get_settings()
    except ConfigError as e:
        logger.error("main_config_error", message=str(e))
        sys.exit(1)

    logger.info(
        "main_settings_loaded",
        program_id=settings.program_id,
        rpc_url=mask_rpc_url(settings.rpc_url),
        interval_sec=settings.check_interval_sec,
    )

    try:
        runtime = build_runtime(settings)
    except (SQLAlchemyError, ValueError) as e:
        logger.error("main_storage_unavailable", error=str(e))
        sys.exit(1)

    if args.once:
        try:
            result = runtime.scheduler.run_once()
            logger.info("main_single_cycle_done", **result.to_dict())
        except IndexerError as e:
            logger.error("main_single_cycle_failed", error=str(e))
            sys.exit(1)
        finally:
            runtime.close()
        return

    if args.no_api:
        try:
            runtime.scheduler.run_forever()
        except KeyboardInterrupt:
            logger.info("main_shutdown_signal")
        finally:
            runtime.close()
        return

    runtime.scheduler.start()
    logger.info("main_indexer_started", thread="daemon")

    from interaction_indexer.api_server.server import create_app
    import uvicorn

    app = create_app(
        store=runtime.store,
        scheduler=runtime.scheduler,
        program_id=settings.program_id,
        cors_origins=settings.cors_origins,
    )
    logger.info("main_server_starting", host=settings.api_host, port=settings.api_port)
    try:
        uvicorn.run(
            app,
            host=settings.api_host,
            port=settings.api_port,
            log_level=os.getenv("LOG_LEVEL", "info").lower(),
        )
    finally:
        runtime.close()


if __name__ == "__main__":
    main()
