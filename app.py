#!/usr/bin/env python3
"""
DeAI Metrics Service - Main Application Entry Point.

============================================================
SINGLE ENTRYPOINT
============================================================
Wires configuration, storage, the provider client, the
ingestion job and the API into one process.

============================================================
USAGE
============================================================
Serve the API and run ingestion on the configured interval:
    python app.py

Run one ingestion cycle and exit:
    python app.py --once

Run ingestion only, without the HTTP API:
    python app.py --no-api

Create the database schema and exit:
    python app.py --init-db

Configuration comes from the environment (and .env), see
core/config.py.

============================================================
"""

import argparse
import asyncio
import logging
import signal
import sys
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import ArgumentError, SQLAlchemyError

from core.config import AppConfig
from core.exceptions import ConfigurationError
from core.logging_config import setup_logging
from data_ingestion.collectors.coingecko import CoinGeckoClient
from data_ingestion.ingestion_job import IngestionJob, IngestionJobConfig
from data_ingestion.scheduler import IngestionTicker
from data_ingestion.types import CoinGeckoConfig, IngestionStatus
from storage.database import (
    DatabaseConfig,
    create_database_engine,
    create_session_factory,
    init_schema,
)
from storage.observation_store import ObservationStore


logger = logging.getLogger("app")


# ============================================================
# MODULE WIRING
# ============================================================

@dataclass
class ServiceComponents:
    """Everything built once at startup."""
    config: AppConfig
    engine: Engine
    store: ObservationStore
    provider: CoinGeckoClient
    job: IngestionJob


def build_components(config: AppConfig) -> ServiceComponents:
    """
    Construct all components from one configuration value.

    Raises:
        ConfigurationError: If the database URL cannot be parsed
    """
    try:
        engine = create_database_engine(
            DatabaseConfig(
                url=config.database_url,
                timeout_seconds=config.store_timeout_seconds,
            )
        )
    except ArgumentError as e:
        raise ConfigurationError(f"Invalid DATABASE_URL: {e}", cause=e) from e

    store = ObservationStore(
        create_session_factory(engine),
        write_timeout_seconds=config.store_timeout_seconds,
    )

    provider = CoinGeckoClient(
        CoinGeckoConfig(
            base_url=config.provider_base_url,
            api_key=config.provider_api_key,
            vs_currency=config.vs_currency,
            timeout_seconds=config.provider_timeout_seconds,
            source_name=config.data_source,
        )
    )

    job = IngestionJob(
        IngestionJobConfig.from_app_config(config),
        provider=provider,
        store=store,
    )

    return ServiceComponents(
        config=config,
        engine=engine,
        store=store,
        provider=provider,
        job=job,
    )


# ============================================================
# RUN MODES
# ============================================================

async def run_once(components: ServiceComponents) -> int:
    """Run a single ingestion cycle. Exit code 0 on success."""
    result = await components.job.run()
    return 0 if result.status == IngestionStatus.SUCCESS else 2


async def run_ticker_only(components: ServiceComponents) -> int:
    """Run the ingestion ticker until SIGINT/SIGTERM."""
    config = components.config
    ticker = IngestionTicker(
        components.job,
        interval_seconds=config.ingestion_interval_seconds,
        run_immediately=config.run_on_startup,
    )

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except NotImplementedError:
            # Windows: fall back to KeyboardInterrupt
            pass

    ticker.start()
    try:
        await stop_requested.wait()
    finally:
        logger.info("Shutdown requested")
        await ticker.stop()
    return 0


def run_api(components: ServiceComponents) -> int:
    """Serve the API with the ingestion ticker attached to its lifespan."""
    import uvicorn

    from dashboard.main import create_app

    config = components.config
    ticker = IngestionTicker(
        components.job,
        interval_seconds=config.ingestion_interval_seconds,
        run_immediately=config.run_on_startup,
    )
    app = create_app(
        components.store,
        job=components.job,
        ticker=ticker,
        max_limit=config.query_max_limit,
    )
    uvicorn.run(app, host=config.api_host, port=config.api_port, log_config=None)
    return 0


# ============================================================
# CLI
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="deai-metrics",
        description="Poll market data, score it, persist it and serve the history",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        help="Run one ingestion cycle and exit",
    )
    mode.add_argument(
        "--no-api",
        action="store_true",
        help="Run the ingestion ticker without the HTTP API",
    )
    mode.add_argument(
        "--init-db",
        action="store_true",
        help="Create the database schema and exit",
    )
    parser.add_argument(
        "--env-file",
        type=str,
        default=None,
        help="Path to a .env file (default: search from cwd)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = create_parser().parse_args(argv)

    try:
        config = AppConfig.from_env(dotenv_path=args.env_file)
    except ConfigurationError as e:
        setup_logging()
        logger.critical(e.to_log_format())
        return 1

    setup_logging(config.log_level, config.log_format)
    logger.info(f"Starting with configuration: {config.redacted()}")

    try:
        components = build_components(config)
    except ConfigurationError as e:
        logger.critical(e.to_log_format())
        return 1

    try:
        init_schema(components.engine)
    except SQLAlchemyError as e:
        logger.critical(f"Could not prepare database schema: {e}")
        components.engine.dispose()
        return 1

    try:
        if args.init_db:
            return 0
        if args.once:
            return asyncio.run(run_once(components))
        if args.no_api:
            return asyncio.run(run_ticker_only(components))
        return run_api(components)
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 0
    finally:
        components.engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
