"""
Script to run the WooCommerce -> Supabase sync

Exit codes:
    0  sync completed
    1  configuration, extraction or load failure
"""

import argparse
import asyncio
import sys
import os
import logging

# Add current directory to path to allow imports from core, ingestion, etc.
sys.path.append(os.getcwd())

from core.config import get_settings
from core.exceptions import ConfigurationError, ETLException
from core.logging import setup_logging
from ingestion.runner import SyncRunner
from ingestion.scheduler import SyncScheduler

logger = logging.getLogger("run_sync")


async def run_sync(config) -> dict:
    """Run one sync and release HTTP clients"""
    runner = SyncRunner(config)
    try:
        return await runner.run()
    finally:
        await runner.close()


async def run_forever(config, interval_minutes: int):
    """Run once immediately, then on every interval until interrupted"""
    scheduler = SyncScheduler(config, interval_minutes)
    await scheduler.run_sync_job()
    scheduler.start()
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Sync WooCommerce orders and products to Supabase")
    parser.add_argument(
        "--schedule",
        action="store_true",
        help="keep running and sync every SYNC_INTERVAL_MINUTES"
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL)

    try:
        config = settings.resolve()
    except ConfigurationError as e:
        logger.error(f"Sync failed: {e.message}", extra={"error_context": e.to_dict()})
        return 1

    if args.schedule:
        try:
            asyncio.run(run_forever(config, settings.SYNC_INTERVAL_MINUTES))
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down")
        return 0

    try:
        result = asyncio.run(run_sync(config))
    except ETLException as e:
        logger.error(f"Sync failed: {e}", extra={"error_context": e.to_dict()})
        return 1

    logger.info(
        f"Sync completed: sales={result['sales_loaded']}, "
        f"products={result['products_loaded']}"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
